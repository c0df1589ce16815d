"""Role management service. The built-in Admin role is read-only."""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.permissions import RoleName, all_permissions
from ..database import transaction
from ..exceptions import ConflictError, ProtectedResourceError, ValidationError
from ..models import Permission, Role
from ..repositories import PermissionRepository, RoleRepository
from ..schemas.user import RoleCreate, RoleUpdate

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, db: Session):
        self.db = db
        self.role_repo = RoleRepository(db)
        self.perm_repo = PermissionRepository(db)

    def list_roles(self) -> List[Role]:
        return self.role_repo.list_all()

    def get_role(self, role_id: int) -> Role:
        return self.role_repo.get_by_id(role_id)

    def user_count(self, role_id: int) -> int:
        return self.role_repo.user_count(role_id)

    def create_role(self, data: RoleCreate) -> Role:
        name = data.name.strip()
        if self.role_repo.get_by_name(name) is not None:
            raise ConflictError(f"Role {name!r} already exists", details={"field": "name"})
        permissions = self._resolve_permissions(data.permissions)

        with transaction(self.db, "create role"):
            role = self.role_repo.add(Role(
                name=name,
                description=data.description,
                is_active=True,
                permissions=permissions,
            ))
        logger.info("Created role %s", name, extra={"role_id": role.id})
        return self.role_repo.get_by_id(role.id)

    def update_role(self, role_id: int, data: RoleUpdate) -> Role:
        role = self.role_repo.get_by_id(role_id)
        self._ensure_editable(role)
        name = data.name.strip()
        if name != role.name:
            if name == RoleName.ADMIN.value or self.role_repo.get_by_name(name) is not None:
                raise ConflictError(f"Role {name!r} already exists", details={"field": "name"})
        permissions = self._resolve_permissions(data.permissions)

        with transaction(self.db, "update role"):
            role.name = name
            role.description = data.description
            role.permissions = permissions
        self.db.expire(role)
        return self.role_repo.get_by_id(role_id)

    def delete_role(self, role_id: int) -> None:
        role = self.role_repo.get_by_id(role_id)
        self._ensure_editable(role)
        if self.role_repo.user_count(role_id):
            raise ConflictError("Role is still assigned to users", details={"role_id": role_id})
        with transaction(self.db, "delete role"):
            self.role_repo.delete(role)

    @staticmethod
    def _ensure_editable(role: Role) -> None:
        if role.name == RoleName.ADMIN.value:
            raise ProtectedResourceError("The Admin role cannot be modified")

    def _resolve_permissions(self, names: List[str]) -> List[Permission]:
        wanted = set(names)
        unknown = wanted - set(all_permissions())
        if unknown:
            raise ValidationError(f"Unknown permissions: {', '.join(sorted(unknown))}", field="permissions")
        return self.perm_repo.get_by_names(sorted(wanted))
