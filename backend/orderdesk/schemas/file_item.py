"""File item schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from ..models.file_item import FileStatus


class AssigneeSummary(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class FileItemResponse(BaseModel):
    """Schema for file item response."""
    id: int
    order_id: int
    folder_id: Optional[int] = None
    subfolder_id: Optional[int] = None
    name: str
    original_name: str
    path: str
    file_type: Optional[str] = None
    file_size: int
    is_processed: bool
    status: str
    assigned_to: Optional[int] = None
    assignee: Optional[AssigneeSummary] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class FileStatusUpdate(BaseModel):
    """Change the status of one file."""
    status: FileStatus


class BulkFileStatusUpdate(BaseModel):
    """Change the status of several files of one order."""
    file_ids: List[int] = Field(..., min_length=1)
    status: FileStatus


class FileAssignRequest(BaseModel):
    """Assign files of one order to a user (defaults to the caller)."""
    file_ids: List[int] = Field(..., min_length=1)
    user_id: Optional[int] = None


class FileSelection(BaseModel):
    file_ids: List[int] = Field(..., min_length=1)


class BulkOperationResponse(BaseModel):
    updated: int
    message: str
