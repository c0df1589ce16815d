"""File item service — uploads, downloads, status changes and assignment.

Status and assignee are always written together so that a file with an
assignee is never ``pending``:

    pending              -> assignee cleared
    claimed / processing -> assignee kept, or set to the acting user
    completed            -> assignee kept, ``is_processed`` set

Completion is the only change allowed on a file held by an open claim
(``release_batch`` is the way back to the pool) or on a file of a completed
or approved order. Closed orders accept no new uploads.
"""

import io
import logging
import zipfile
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import transaction
from ..exceptions import (
    AuthenticationError,
    ConflictError,
    FileItemNotFoundError,
    FolderNotFoundError,
    OrderStateError,
    SubfolderNotFoundError,
    ValidationError,
)
from ..models import ASSIGNED_STATUSES, FileItem, FileStatus, OrderStatus
from ..repositories import (
    FileClaimRepository,
    FileItemRepository,
    FolderRepository,
    OrderRepository,
    SubfolderRepository,
    UserRepository,
)
from ..storage import LocalStorage, get_storage

logger = logging.getLogger(__name__)

_CLOSED_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED.value, OrderStatus.APPROVED.value})


@dataclass(frozen=True)
class IncomingFile:
    """One uploaded file as received from the client."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


class FileItemService:
    """Deep module for file items of an order."""

    def __init__(self, db: Session, storage: Optional[LocalStorage] = None):
        self.db = db
        self.file_repo = FileItemRepository(db)
        self.claim_repo = FileClaimRepository(db)
        self.order_repo = OrderRepository(db)
        self.folder_repo = FolderRepository(db)
        self.subfolder_repo = SubfolderRepository(db)
        self.user_repo = UserRepository(db)
        self._storage = storage

    @property
    def storage(self) -> LocalStorage:
        if self._storage is None:
            self._storage = get_storage()
        return self._storage

    # ------------------------------------------------------------------
    # Upload / download / delete
    # ------------------------------------------------------------------

    def upload_files(
        self,
        order_id: int,
        files: List[IncomingFile],
        folder_id: Optional[int] = None,
        subfolder_id: Optional[int] = None,
    ) -> List[FileItem]:
        """Store blobs and create ``pending`` file rows.

        A subfolder implies its folder. Blobs already written are removed
        again if the database write fails. Completed and approved orders
        accept no uploads.
        """
        order = self.order_repo.get_by_id(order_id)
        if order.status in _CLOSED_ORDER_STATUSES:
            raise OrderStateError(order.id, order.status, f"Cannot upload files to a {order.status} order")
        if not files:
            raise ValidationError("No files uploaded", field="files")

        folder_id, subfolder_id = self._resolve_location(order_id, folder_id, subfolder_id)
        for incoming in files:
            if not incoming.filename:
                raise ValidationError("Uploaded file has no name", field="files")
            if len(incoming.content) > settings.max_upload_size:
                raise ValidationError(
                    f"{incoming.filename} exceeds the {settings.max_upload_size} byte upload limit",
                    field="files",
                )

        stored: List[str] = []
        try:
            with transaction(self.db, "upload files"):
                items = []
                for incoming in files:
                    path = self.storage.build_path(order_id, incoming.filename, folder_id, subfolder_id)
                    size = self.storage.save(path, incoming.content)
                    stored.append(path)
                    items.append(self.file_repo.add(FileItem(
                        order_id=order_id,
                        folder_id=folder_id,
                        subfolder_id=subfolder_id,
                        name=incoming.filename,
                        original_name=incoming.filename,
                        path=path,
                        file_type=incoming.content_type,
                        file_size=size,
                        is_processed=False,
                        status=FileStatus.PENDING.value,
                    )))
        except Exception:
            for path in stored:
                self.storage.delete(path)
            raise

        for item in items:
            self.db.refresh(item)
        logger.info(
            "Uploaded %d files",
            len(items),
            extra={"order_id": order_id, "folder_id": folder_id, "subfolder_id": subfolder_id},
        )
        return items

    def list_files(
        self,
        order_id: int,
        status: Optional[str] = None,
        folder_id: Optional[int] = None,
        subfolder_id: Optional[int] = None,
    ) -> List[FileItem]:
        self.order_repo.get_by_id(order_id)
        query = self.db.query(FileItem).filter(FileItem.order_id == order_id)
        if status:
            query = query.filter(FileItem.status == status)
        if folder_id is not None:
            query = query.filter(FileItem.folder_id == folder_id)
        if subfolder_id is not None:
            query = query.filter(FileItem.subfolder_id == subfolder_id)
        return query.order_by(FileItem.id).all()

    def get_file(self, file_id: int) -> FileItem:
        return self.file_repo.get_by_id(file_id)

    def get_download(self, file_id: int):
        """``(file_item, absolute_path)`` of a stored file. 404 if the blob is gone."""
        item = self.file_repo.get_by_id(file_id)
        if not self.storage.exists(item.path):
            logger.warning("Blob missing for file %d at %s", item.id, item.path)
            raise FileItemNotFoundError(file_id)
        return item, self.storage.resolve(item.path)

    def replace_content(self, file_id: int, incoming: IncomingFile) -> FileItem:
        """Swap the stored blob for an edited version and mark the file processed."""
        item = self.file_repo.get_by_id(file_id)
        if len(incoming.content) > settings.max_upload_size:
            raise ValidationError("File exceeds the upload limit", field="file")

        old_path = item.path
        new_path = self.storage.build_path(item.order_id, incoming.filename or item.name, item.folder_id, item.subfolder_id)
        self.storage.save(new_path, incoming.content)
        try:
            with transaction(self.db, "replace file"):
                item.path = new_path
                item.file_size = len(incoming.content)
                item.file_type = incoming.content_type or item.file_type
                item.is_processed = True
        except Exception:
            self.storage.delete(new_path)
            raise
        self.storage.delete(old_path)
        self.db.refresh(item)
        return item

    def delete_file(self, file_id: int) -> None:
        item = self.file_repo.get_by_id(file_id)
        path = item.path
        with transaction(self.db, "delete file"):
            self.file_repo.delete(item)
        self.storage.delete(path)
        logger.info("Deleted file", extra={"file_id": file_id})

    def build_zip(self, order_id: int, file_ids: Iterable[int]) -> bytes:
        """Zip the selected files of an order, laid out as ``folder/subfolder/name``.

        Ids from other orders are ignored; missing blobs are skipped.
        """
        self.order_repo.get_by_id(order_id)
        items = self.file_repo.get_many_for_order(order_id, file_ids)
        if not items:
            raise ValidationError("No files found for the specified ids", field="file_ids")

        buffer = io.BytesIO()
        used: set[str] = set()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for item in items:
                if not self.storage.exists(item.path):
                    logger.warning("Skipping missing blob for file %d", item.id)
                    continue
                arcname = self._unique_name(self._archive_name(item), used)
                archive.write(self.storage.resolve(item.path), arcname)
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Status and assignment
    # ------------------------------------------------------------------

    def update_status(self, file_id: int, status: FileStatus, acting_user_id: Optional[int]) -> FileItem:
        item = self.file_repo.get_by_id(file_id)
        self._ensure_changeable(item.order_id, [item], status)
        with transaction(self.db, "update file status"):
            self._apply_status(item, status, acting_user_id)
        self.db.refresh(item)
        return item

    def bulk_update_status(
        self,
        order_id: int,
        file_ids: List[int],
        status: FileStatus,
        acting_user_id: Optional[int],
    ) -> int:
        """Apply one status to several files of an order. Returns files changed."""
        self.order_repo.get_by_id(order_id)
        items = self.file_repo.get_many_for_order(order_id, file_ids)
        self._ensure_changeable(order_id, items, status)
        with transaction(self.db, "update file status"):
            for item in items:
                self._apply_status(item, status, acting_user_id)
        return len(items)

    def mark_completed(self, file_id: int) -> FileItem:
        return self.update_status(file_id, FileStatus.COMPLETED, None)

    def assign(self, order_id: int, file_ids: List[int], user_id: int) -> int:
        """Assign files of an order to a user. Pending files become ``claimed``."""
        self.order_repo.get_by_id(order_id)
        self.user_repo.get_by_id(user_id)
        items = self.file_repo.get_many_for_order(order_id, file_ids)
        self._ensure_changeable(order_id, items)
        with transaction(self.db, "assign files"):
            for item in items:
                item.assigned_to = user_id
                if item.status == FileStatus.PENDING.value:
                    item.status = FileStatus.CLAIMED.value
        logger.info("Assigned %d files", len(items), extra={"order_id": order_id, "user_id": user_id})
        return len(items)

    def unassign(self, order_id: int, file_ids: List[int]) -> int:
        """Remove the assignee; unfinished files go back to ``pending``."""
        self.order_repo.get_by_id(order_id)
        items = self.file_repo.get_many_for_order(order_id, file_ids)
        self._ensure_changeable(order_id, items)
        with transaction(self.db, "unassign files"):
            for item in items:
                if item.status in ASSIGNED_STATUSES:
                    item.status = FileStatus.PENDING.value
                    item.assigned_to = None
                elif item.status == FileStatus.PENDING.value:
                    item.assigned_to = None
        return len(items)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_changeable(
        self, order_id: int, items: List[FileItem], status: Optional[FileStatus] = None
    ) -> None:
        """Refuse anything but completion on closed orders and open-claim files.

        *status* None means an assignee change.
        """
        if status is not None and FileStatus(status) == FileStatus.COMPLETED:
            return
        order = self.order_repo.get_by_id(order_id)
        if order.status in _CLOSED_ORDER_STATUSES:
            raise OrderStateError(order.id, order.status, f"Files of a {order.status} order cannot be changed")
        held = self.claim_repo.open_member_ids(order_id) & {item.id for item in items}
        if held:
            raise ConflictError(
                "Files belong to an open claim. Release the claim first",
                details={"order_id": order_id, "file_ids": sorted(held)},
            )

    @staticmethod
    def _apply_status(item: FileItem, status: FileStatus, acting_user_id: Optional[int]) -> None:
        value = FileStatus(status).value
        if value == FileStatus.PENDING.value:
            item.assigned_to = None
            item.is_processed = False
        elif value in ASSIGNED_STATUSES:
            if item.assigned_to is None:
                if acting_user_id is None:
                    raise AuthenticationError("An authenticated user is required to take a file")
                item.assigned_to = acting_user_id
        else:
            item.is_processed = True
        item.status = value

    def _resolve_location(self, order_id: int, folder_id: Optional[int], subfolder_id: Optional[int]):
        if subfolder_id is not None:
            subfolder = self.subfolder_repo.get_by_id(subfolder_id)
            if subfolder.order_id != order_id or (folder_id is not None and subfolder.folder_id != folder_id):
                raise SubfolderNotFoundError(subfolder_id)
            return subfolder.folder_id, subfolder.id
        if folder_id is not None:
            folder = self.folder_repo.get_by_id(folder_id)
            if folder.order_id != order_id:
                raise FolderNotFoundError(folder_id)
        return folder_id, None

    @staticmethod
    def _archive_name(item: FileItem) -> str:
        parts = []
        if item.folder is not None:
            parts.append(item.folder.name)
        if item.subfolder is not None:
            parts.append(item.subfolder.name)
        parts.append(item.original_name or item.name)
        return "/".join(parts)

    @staticmethod
    def _unique_name(name: str, used: set) -> str:
        candidate, n = name, 1
        while candidate in used:
            stem, dot, ext = name.rpartition(".")
            candidate = f"{stem} ({n}).{ext}" if dot else f"{name} ({n})"
            n += 1
        used.add(candidate)
        return candidate
