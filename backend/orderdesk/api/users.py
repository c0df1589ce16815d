"""User management API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_permission
from ..core.permissions import UserPermissions as P
from ..database import get_db
from ..schemas.user import UserCreate, UserResponse, UserUpdate
from ..services import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_USER.value)),
):
    return UserService(db).list_users(search)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.CREATE_USER.value)),
):
    return UserService(db).create_user(data)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_USER.value)),
):
    return UserService(db).get_user(user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.UPDATE_USER.value)),
):
    """Partial update. An empty password keeps the current one."""
    return UserService(db).update_user(user_id, data, acting_user_id=auth.user_id)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.DELETE_USER.value)),
):
    UserService(db).delete_user(user_id, acting_user_id=auth.user_id)
