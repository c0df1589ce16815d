"""Role management API endpoints. The Admin role is read-only."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_permission
from ..core.permissions import RolePermissions as P, grouped_permissions
from ..database import get_db
from ..models import Role
from ..schemas.user import PermissionGroup, RoleCreate, RoleResponse, RoleUpdate
from ..services import RoleService

router = APIRouter(prefix="/api/roles", tags=["roles"])


def _role_response(service: RoleService, role: Role) -> RoleResponse:
    response = RoleResponse.model_validate(role)
    response.users_count = service.user_count(role.id)
    return response


@router.get("", response_model=List[RoleResponse])
def list_roles(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ROLE.value)),
):
    service = RoleService(db)
    return [_role_response(service, role) for role in service.list_roles()]


@router.get("/permissions", response_model=List[PermissionGroup])
def list_permissions(
    auth: AuthContext = Depends(require_permission(P.VIEW_ROLE.value)),
):
    """Every assignable permission, grouped for the role editor."""
    return grouped_permissions()


@router.post("", response_model=RoleResponse, status_code=201)
def create_role(
    data: RoleCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.CREATE_ROLE.value)),
):
    service = RoleService(db)
    return _role_response(service, service.create_role(data))


@router.get("/{role_id}", response_model=RoleResponse)
def get_role(
    role_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ROLE.value)),
):
    service = RoleService(db)
    return _role_response(service, service.get_role(role_id))


@router.put("/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.UPDATE_ROLE.value)),
):
    service = RoleService(db)
    return _role_response(service, service.update_role(role_id, data))


@router.delete("/{role_id}", status_code=204)
def delete_role(
    role_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.DELETE_ROLE.value)),
):
    RoleService(db).delete_role(role_id)
