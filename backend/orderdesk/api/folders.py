"""Folder and subfolder API endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_permission
from ..core.permissions import OrderManagementPermissions as P
from ..database import get_db
from ..schemas.folder import (
    FolderCreate,
    FolderResponse,
    FolderUpdate,
    OpenStateUpdate,
    SubfolderCreate,
    SubfolderResponse,
    SubfolderUpdate,
)
from ..schemas.stats import FolderStatsResponse, StatusCountsResponse
from ..services import FolderService, StatsService
from ..services.stats_service import serialize_counts

router = APIRouter(prefix="/api", tags=["folders"])


# --- Folders ---

@router.get("/orders/{order_id}/folders", response_model=List[FolderResponse])
def list_folders(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return FolderService(db).list_folders(order_id)


@router.post("/orders/{order_id}/folders", response_model=FolderResponse, status_code=201)
def create_folder(
    order_id: int,
    data: FolderCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    return FolderService(db).create_folder(order_id, data.name)


@router.get("/folders/{folder_id}", response_model=FolderResponse)
def get_folder(
    folder_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return FolderService(db).get_folder(folder_id)


@router.put("/folders/{folder_id}", response_model=FolderResponse)
def rename_folder(
    folder_id: int,
    data: FolderUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    return FolderService(db).rename_folder(folder_id, data.name)


@router.put("/folders/{folder_id}/open", response_model=FolderResponse)
def set_folder_open(
    folder_id: int,
    data: OpenStateUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return FolderService(db).set_folder_open(folder_id, data.is_open)


@router.delete("/folders/{folder_id}", status_code=204)
def delete_folder(
    folder_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    """Delete an empty folder. 409 while it holds files or subfolders."""
    FolderService(db).delete_folder(folder_id)


@router.get("/folders/{folder_id}/stats", response_model=FolderStatsResponse)
def get_folder_stats(
    folder_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return serialize_counts(StatsService(db).folder_breakdown(folder_id))


# --- Subfolders ---

@router.post("/folders/{folder_id}/subfolders", response_model=SubfolderResponse, status_code=201)
def create_subfolder(
    folder_id: int,
    data: SubfolderCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    """Create a subfolder. 409 if the name is taken in this folder."""
    return FolderService(db).create_subfolder(folder_id, data.name)


@router.get("/subfolders/{subfolder_id}", response_model=SubfolderResponse)
def get_subfolder(
    subfolder_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return FolderService(db).get_subfolder(subfolder_id)


@router.put("/subfolders/{subfolder_id}", response_model=SubfolderResponse)
def rename_subfolder(
    subfolder_id: int,
    data: SubfolderUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    return FolderService(db).rename_subfolder(subfolder_id, data.name)


@router.put("/subfolders/{subfolder_id}/open", response_model=SubfolderResponse)
def set_subfolder_open(
    subfolder_id: int,
    data: OpenStateUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return FolderService(db).set_subfolder_open(subfolder_id, data.is_open)


@router.delete("/subfolders/{subfolder_id}", status_code=204)
def delete_subfolder(
    subfolder_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    FolderService(db).delete_subfolder(subfolder_id)


@router.get("/subfolders/{subfolder_id}/stats", response_model=StatusCountsResponse)
def get_subfolder_stats(
    subfolder_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return StatsService(db).subfolder_stats(subfolder_id).to_dict()
