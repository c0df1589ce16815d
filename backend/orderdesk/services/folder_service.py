"""Folder service — folders and subfolders inside an order.

Folders group files of one order; subfolders group files of one folder.
Neither can be deleted while it still holds anything, so files never lose
their place silently.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..database import transaction
from ..exceptions import ConflictError
from ..models import Folder, Subfolder
from ..repositories import FolderRepository, OrderRepository, SubfolderRepository

logger = logging.getLogger(__name__)


class FolderService:
    """All folder and subfolder operations behind a simple interface.

    Public methods:
        list_folders / get_folder / create_folder / rename_folder
        set_folder_open / delete_folder
        get_subfolder / create_subfolder / rename_subfolder
        set_subfolder_open / delete_subfolder
    """

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.folder_repo = FolderRepository(db)
        self.subfolder_repo = SubfolderRepository(db)

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def list_folders(self, order_id: int) -> List[Folder]:
        self.order_repo.get_by_id(order_id)
        return self.folder_repo.list_for_order(order_id)

    def get_folder(self, folder_id: int) -> Folder:
        return self.folder_repo.get_by_id(folder_id)

    def create_folder(self, order_id: int, name: str) -> Folder:
        self.order_repo.get_by_id(order_id)
        with transaction(self.db, "create folder"):
            folder = self.folder_repo.add(Folder(order_id=order_id, name=name, is_open=True))
        self.db.refresh(folder)
        logger.info("Created folder %r", name, extra={"order_id": order_id, "folder_id": folder.id})
        return folder

    def rename_folder(self, folder_id: int, name: str) -> Folder:
        folder = self.folder_repo.get_by_id(folder_id)
        with transaction(self.db, "rename folder"):
            folder.name = name
        self.db.refresh(folder)
        return folder

    def set_folder_open(self, folder_id: int, is_open: bool) -> Folder:
        folder = self.folder_repo.get_by_id(folder_id)
        with transaction(self.db, "update folder"):
            folder.is_open = is_open
        self.db.refresh(folder)
        return folder

    def delete_folder(self, folder_id: int) -> None:
        """Delete an empty folder. Raises ConflictError if it holds files or subfolders."""
        folder = self.folder_repo.get_by_id(folder_id)
        if not self.folder_repo.is_empty(folder_id):
            raise ConflictError(
                "Folder is not empty. Move or delete its files and subfolders first",
                details={"folder_id": folder_id},
            )
        with transaction(self.db, "delete folder"):
            self.folder_repo.delete(folder)
        logger.info("Deleted folder", extra={"folder_id": folder_id})

    # ------------------------------------------------------------------
    # Subfolders
    # ------------------------------------------------------------------

    def get_subfolder(self, subfolder_id: int) -> Subfolder:
        return self.subfolder_repo.get_by_id(subfolder_id)

    def create_subfolder(self, folder_id: int, name: str) -> Subfolder:
        self.folder_repo.get_by_id(folder_id)
        self._ensure_unique_subfolder(folder_id, name)
        with transaction(self.db, "create subfolder"):
            subfolder = self.subfolder_repo.add(Subfolder(folder_id=folder_id, name=name, is_open=True))
        self.db.refresh(subfolder)
        return subfolder

    def rename_subfolder(self, subfolder_id: int, name: str) -> Subfolder:
        subfolder = self.subfolder_repo.get_by_id(subfolder_id)
        if subfolder.name != name:
            self._ensure_unique_subfolder(subfolder.folder_id, name)
        with transaction(self.db, "rename subfolder"):
            subfolder.name = name
        self.db.refresh(subfolder)
        return subfolder

    def set_subfolder_open(self, subfolder_id: int, is_open: bool) -> Subfolder:
        subfolder = self.subfolder_repo.get_by_id(subfolder_id)
        with transaction(self.db, "update subfolder"):
            subfolder.is_open = is_open
        self.db.refresh(subfolder)
        return subfolder

    def delete_subfolder(self, subfolder_id: int) -> None:
        subfolder = self.subfolder_repo.get_by_id(subfolder_id)
        if not self.subfolder_repo.is_empty(subfolder_id):
            raise ConflictError(
                "Subfolder is not empty. Move or delete its files first",
                details={"subfolder_id": subfolder_id},
            )
        with transaction(self.db, "delete subfolder"):
            self.subfolder_repo.delete(subfolder)

    def _ensure_unique_subfolder(self, folder_id: int, name: str) -> None:
        if self.subfolder_repo.get_by_name(folder_id, name) is not None:
            raise ConflictError(
                f"A subfolder named {name!r} already exists in this folder",
                details={"folder_id": folder_id, "name": name},
            )
