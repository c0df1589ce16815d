"""Data access repositories."""

from .base import BaseRepository
from .order_repository import OrderRepository
from .folder_repository import FolderRepository, SubfolderRepository
from .file_item_repository import FileItemRepository
from .claim_repository import FileClaimRepository
from .user_repository import UserRepository, RoleRepository, PermissionRepository

__all__ = [
    "BaseRepository",
    "OrderRepository",
    "FolderRepository",
    "SubfolderRepository",
    "FileItemRepository",
    "FileClaimRepository",
    "UserRepository",
    "RoleRepository",
    "PermissionRepository",
]
