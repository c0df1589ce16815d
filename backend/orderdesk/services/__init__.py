"""Business logic services."""

from .file_batch_service import FileBatchService
from .file_item_service import FileItemService, IncomingFile
from .folder_service import FolderService
from .order_service import OrderService
from .role_service import RoleService
from .stats_service import StatsService, StatusCounts
from .user_service import UserService

__all__ = [
    "FileBatchService",
    "FileItemService",
    "IncomingFile",
    "FolderService",
    "OrderService",
    "RoleService",
    "StatsService",
    "StatusCounts",
    "UserService",
]
