"""Database models."""

from .user import User, Role, Permission, role_permissions
from .order import Order, OrderStatus
from .folder import Folder, Subfolder
from .file_item import FileItem, FileStatus, ASSIGNED_STATUSES
from .file_claim import FileClaim

__all__ = [
    "User", "Role", "Permission", "role_permissions",
    "Order", "OrderStatus",
    "Folder", "Subfolder",
    "FileItem", "FileStatus", "ASSIGNED_STATUSES",
    "FileClaim",
]
