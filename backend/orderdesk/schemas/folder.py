"""Folder and subfolder schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from .file_item import FileItemResponse


class _NamedBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        if '/' in v or '\\' in v:
            raise ValueError("Name cannot contain path separators")
        return v


class FolderCreate(_NamedBase):
    """Schema for creating a folder in an order."""
    pass


class FolderUpdate(_NamedBase):
    """Schema for renaming a folder."""
    pass


class SubfolderCreate(_NamedBase):
    """Schema for creating a subfolder in a folder."""
    pass


class SubfolderUpdate(_NamedBase):
    """Schema for renaming a subfolder."""
    pass


class SubfolderResponse(BaseModel):
    id: int
    folder_id: int
    name: str
    is_open: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class FolderResponse(BaseModel):
    id: int
    order_id: int
    name: str
    is_open: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SubfolderTree(SubfolderResponse):
    files: List[FileItemResponse] = []


class FolderTree(FolderResponse):
    """Folder with its direct files and subfolders, as shown in the order view."""
    files: List[FileItemResponse] = []
    subfolders: List[SubfolderTree] = []


class OrderStructureResponse(BaseModel):
    order_id: int
    folders: List[FolderTree]
    unfiled: List[FileItemResponse] = []


class OpenStateUpdate(BaseModel):
    """Expand/collapse state of a folder or subfolder in the order view."""
    is_open: bool
