"""Repositories for users, roles, and permissions."""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Query, joinedload, selectinload

from ..exceptions import UserNotFoundError, RoleNotFoundError
from ..models import User, Role, Permission
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Data access layer for users. Always loads the role and its permissions."""

    model_class = User
    not_found_error = UserNotFoundError

    def _base_query(self) -> Query:
        return self.db.query(User).options(
            joinedload(User.role).selectinload(Role.permissions)
        )

    def get_by_email(self, email: str) -> Optional[User]:
        return self._base_query().filter(User.email == email).first()

    def list_all(self, search: Optional[str] = None) -> List[User]:
        query = self._base_query()
        if search:
            pattern = f"%{search}%"
            query = query.filter((User.name.ilike(pattern)) | (User.email.ilike(pattern)))
        return query.order_by(User.id.desc()).all()

    def count(self) -> int:
        return self.db.query(User).count()

    def first_active_admin(self, admin_role_name: str) -> Optional[User]:
        return (
            self._base_query()
            .join(Role, User.role_id == Role.id)
            .filter(Role.name == admin_role_name, User.is_active.is_(True))
            .order_by(User.id)
            .first()
        )


class RoleRepository(BaseRepository[Role]):
    """Data access layer for roles."""

    model_class = Role
    not_found_error = RoleNotFoundError

    def _base_query(self) -> Query:
        return self.db.query(Role).options(selectinload(Role.permissions))

    def get_by_name(self, name: str) -> Optional[Role]:
        return self._base_query().filter(Role.name == name).first()

    def list_all(self) -> List[Role]:
        return self._base_query().order_by(Role.id.desc()).all()

    def user_count(self, role_id: int) -> int:
        return self.db.query(User).filter(User.role_id == role_id).count()


class PermissionRepository:
    """Lookup helpers for the permission catalogue."""

    def __init__(self, db):
        self.db = db

    def get_by_names(self, names: Iterable[str]) -> List[Permission]:
        names = list(names)
        if not names:
            return []
        return self.db.query(Permission).filter(Permission.name.in_(names)).all()

    def list_all(self) -> List[Permission]:
        return self.db.query(Permission).order_by(Permission.name).all()

    def existing_names(self) -> set[str]:
        return {name for (name,) in self.db.query(Permission.name).all()}
