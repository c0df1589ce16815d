"""User management service."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..database import transaction
from ..exceptions import ConflictError, ValidationError
from ..models import User
from ..repositories import RoleRepository, UserRepository
from ..schemas.user import UserCreate, UserUpdate
from .auth_service import hash_password

logger = logging.getLogger(__name__)


class UserService:
    """CRUD for user accounts. Passwords are hashed before they reach the model."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.role_repo = RoleRepository(db)

    def list_users(self, search: Optional[str] = None) -> List[User]:
        return self.user_repo.list_all(search)

    def get_user(self, user_id: int) -> User:
        return self.user_repo.get_by_id(user_id)

    def create_user(self, data: UserCreate) -> User:
        self._ensure_email_free(data.email)
        if data.role_id is not None:
            self.role_repo.get_by_id(data.role_id)

        with transaction(self.db, "create user"):
            user = self.user_repo.add(User(
                name=data.name.strip(),
                email=data.email,
                password_hash=hash_password(data.password),
                phone=data.phone,
                role_id=data.role_id,
                is_active=True,
            ))
        logger.info("Created user %s", user.email, extra={"user_id": user.id})
        return self.user_repo.get_by_id(user.id)

    def update_user(self, user_id: int, data: UserUpdate, acting_user_id: Optional[int] = None) -> User:
        user = self.user_repo.get_by_id(user_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email") and changes["email"] != user.email:
            self._ensure_email_free(changes["email"])
        if changes.get("role_id") is not None:
            self.role_repo.get_by_id(changes["role_id"])
        if changes.get("is_active") is False and user_id == acting_user_id:
            raise ValidationError("You cannot deactivate your own account", field="is_active")

        with transaction(self.db, "update user"):
            password = changes.pop("password", None)
            if password:
                user.password_hash = hash_password(password)
            for field, value in changes.items():
                if value is None and field in ("name", "email", "is_active"):
                    continue
                setattr(user, field, value)

        self.db.expire(user)
        return self.user_repo.get_by_id(user_id)

    def delete_user(self, user_id: int, acting_user_id: Optional[int] = None) -> None:
        user = self.user_repo.get_by_id(user_id)
        if user_id == acting_user_id:
            raise ValidationError("You cannot delete your own account", field="user_id")
        with transaction(self.db, "delete user"):
            self.user_repo.delete(user)
        logger.info("Deleted user", extra={"user_id": user_id})

    def _ensure_email_free(self, email: str) -> None:
        if self.user_repo.get_by_email(email) is not None:
            raise ConflictError("Email already registered", details={"field": "email"})
