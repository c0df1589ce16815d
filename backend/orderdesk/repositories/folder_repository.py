"""Repositories for folders and subfolders."""

from typing import List, Optional

from sqlalchemy import func

from ..exceptions import FolderNotFoundError, SubfolderNotFoundError
from ..models import Folder, Subfolder, FileItem
from .base import BaseRepository


class FolderRepository(BaseRepository[Folder]):
    """Data access layer for folders."""

    model_class = Folder
    not_found_error = FolderNotFoundError

    def list_for_order(self, order_id: int) -> List[Folder]:
        return (
            self.db.query(Folder)
            .filter(Folder.order_id == order_id)
            .order_by(Folder.id)
            .all()
        )

    def get_by_name(self, order_id: int, name: str) -> Optional[Folder]:
        return (
            self.db.query(Folder)
            .filter(Folder.order_id == order_id, Folder.name == name)
            .first()
        )

    def is_empty(self, folder_id: int) -> bool:
        """True when the folder has no files (direct or nested) and no subfolders."""
        file_count = (
            self.db.query(func.count(FileItem.id))
            .filter(FileItem.folder_id == folder_id)
            .scalar()
        )
        subfolder_count = (
            self.db.query(func.count(Subfolder.id))
            .filter(Subfolder.folder_id == folder_id)
            .scalar()
        )
        return not file_count and not subfolder_count


class SubfolderRepository(BaseRepository[Subfolder]):
    """Data access layer for subfolders."""

    model_class = Subfolder
    not_found_error = SubfolderNotFoundError

    def get_by_name(self, folder_id: int, name: str) -> Optional[Subfolder]:
        return (
            self.db.query(Subfolder)
            .filter(Subfolder.folder_id == folder_id, Subfolder.name == name)
            .first()
        )

    def is_empty(self, subfolder_id: int) -> bool:
        file_count = (
            self.db.query(func.count(FileItem.id))
            .filter(FileItem.subfolder_id == subfolder_id)
            .scalar()
        )
        return not file_count
