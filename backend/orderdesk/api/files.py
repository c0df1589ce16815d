"""File item API endpoints: upload, download, status and assignment."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_permission
from ..core.permissions import OrderManagementPermissions as P
from ..database import get_db
from ..models import FileStatus
from ..schemas.file_item import (
    BulkFileStatusUpdate,
    BulkOperationResponse,
    FileAssignRequest,
    FileItemResponse,
    FileSelection,
    FileStatusUpdate,
)
from ..services import FileItemService, IncomingFile

router = APIRouter(prefix="/api", tags=["files"])


def _incoming(upload: UploadFile) -> IncomingFile:
    return IncomingFile(
        filename=upload.filename or "",
        content=upload.file.read(),
        content_type=upload.content_type,
    )


# --- Order-scoped ---

@router.get("/orders/{order_id}/files", response_model=List[FileItemResponse])
def list_files(
    order_id: int,
    status: Optional[FileStatus] = None,
    folder_id: Optional[int] = None,
    subfolder_id: Optional[int] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_FILES.value)),
):
    return FileItemService(db).list_files(
        order_id,
        status=status.value if status else None,
        folder_id=folder_id,
        subfolder_id=subfolder_id,
    )


@router.post("/orders/{order_id}/files", response_model=List[FileItemResponse], status_code=201)
def upload_files(
    order_id: int,
    files: List[UploadFile] = File(...),
    folder_id: Optional[int] = Form(None),
    subfolder_id: Optional[int] = Form(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.CREATE_FILES.value)),
):
    """Upload files into the order, a folder, or a subfolder. New files are pending."""
    return FileItemService(db).upload_files(
        order_id,
        [_incoming(f) for f in files],
        folder_id=folder_id,
        subfolder_id=subfolder_id,
    )


@router.post("/orders/{order_id}/files/zip")
def download_zip(
    order_id: int,
    selection: FileSelection,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_FILES.value)),
):
    content = FileItemService(db).build_zip(order_id, selection.file_ids)
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="order_{order_id}_selected_files.zip"'},
    )


@router.post("/orders/{order_id}/files/status", response_model=BulkOperationResponse)
def bulk_update_status(
    order_id: int,
    data: BulkFileStatusUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    updated = FileItemService(db).bulk_update_status(order_id, data.file_ids, data.status, auth.user_id)
    return BulkOperationResponse(updated=updated, message=f"{updated} files set to {data.status.value}")


@router.post("/orders/{order_id}/files/assign", response_model=BulkOperationResponse)
def assign_files(
    order_id: int,
    data: FileAssignRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    """Assign files to a user, the caller when ``user_id`` is omitted."""
    user_id = data.user_id if data.user_id is not None else auth.require_user_id()
    updated = FileItemService(db).assign(order_id, data.file_ids, user_id)
    return BulkOperationResponse(updated=updated, message=f"{updated} files assigned")


@router.post("/orders/{order_id}/files/unassign", response_model=BulkOperationResponse)
def unassign_files(
    order_id: int,
    selection: FileSelection,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    updated = FileItemService(db).unassign(order_id, selection.file_ids)
    return BulkOperationResponse(updated=updated, message=f"{updated} files unassigned")


# --- Single file ---

@router.get("/files/{file_id}", response_model=FileItemResponse)
def get_file(
    file_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_FILES.value)),
):
    return FileItemService(db).get_file(file_id)


@router.get("/files/{file_id}/download")
def download_file(
    file_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_FILES.value)),
):
    item, path = FileItemService(db).get_download(file_id)
    return FileResponse(
        path,
        media_type=item.file_type or "application/octet-stream",
        filename=item.original_name or item.name,
    )


@router.put("/files/{file_id}/content", response_model=FileItemResponse)
def replace_file_content(
    file_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    """Replace the stored file with an edited version."""
    return FileItemService(db).replace_content(file_id, _incoming(file))


@router.put("/files/{file_id}/status", response_model=FileItemResponse)
def update_file_status(
    file_id: int,
    data: FileStatusUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    return FileItemService(db).update_status(file_id, data.status, auth.user_id)


@router.post("/files/{file_id}/complete", response_model=FileItemResponse)
def complete_file(
    file_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    return FileItemService(db).mark_completed(file_id)


@router.delete("/files/{file_id}", status_code=204)
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.DELETE_FILES.value)),
):
    FileItemService(db).delete_file(file_id)
