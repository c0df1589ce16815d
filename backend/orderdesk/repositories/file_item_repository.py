"""Repository for file item queries, including claim selection and status counts."""

from typing import Iterable, List, Optional

from sqlalchemy import func

from ..database import is_postgresql
from ..exceptions import FileItemNotFoundError
from ..models import FileItem, FileStatus
from .base import BaseRepository


class FileItemRepository(BaseRepository[FileItem]):
    """Data access layer for file items.

    Bulk updates use ``synchronize_session="fetch"`` so objects already
    loaded into the session see the new status/assignee.
    """

    model_class = FileItem
    not_found_error = FileItemNotFoundError

    def lock_claimable(
        self,
        order_id: int,
        limit: int,
        folder_id: Optional[int] = None,
        subfolder_id: Optional[int] = None,
    ) -> List[FileItem]:
        """Select and row-lock up to *limit* pending, unassigned files of an order.

        Rows are returned in primary-key order. On PostgreSQL the lock uses
        SKIP LOCKED so a concurrent claimer moves on to the next free rows
        instead of waiting for (and then losing) the ones held here.
        SQLite has no row locks; the guarded update in ``assign_pending``
        detects the race there.
        """
        query = self.db.query(FileItem).filter(
            FileItem.order_id == order_id,
            FileItem.status == FileStatus.PENDING.value,
            FileItem.assigned_to.is_(None),
        )
        if folder_id is not None:
            query = query.filter(FileItem.folder_id == folder_id)
        if subfolder_id is not None:
            query = query.filter(FileItem.subfolder_id == subfolder_id)

        return (
            query.order_by(FileItem.id.asc())
            .limit(limit)
            .with_for_update(skip_locked=is_postgresql())
            .all()
        )

    def assign_pending(self, file_ids: List[int], user_id: int) -> int:
        """Move still-pending, unassigned files to ``claimed`` for *user_id*.

        Returns the number of rows changed; less than ``len(file_ids)`` means
        another transaction took some of them first.
        """
        if not file_ids:
            return 0
        return (
            self.db.query(FileItem)
            .filter(
                FileItem.id.in_(file_ids),
                FileItem.status == FileStatus.PENDING.value,
                FileItem.assigned_to.is_(None),
            )
            .update(
                {"status": FileStatus.CLAIMED.value, "assigned_to": user_id},
                synchronize_session="fetch",
            )
        )

    def release_claimed(self, file_ids: List[int]) -> int:
        """Return files still in ``claimed`` state to the unassigned pool."""
        if not file_ids:
            return 0
        return (
            self.db.query(FileItem)
            .filter(
                FileItem.id.in_(file_ids),
                FileItem.status == FileStatus.CLAIMED.value,
            )
            .update(
                {"status": FileStatus.PENDING.value, "assigned_to": None},
                synchronize_session="fetch",
            )
        )

    def mark_completed(self, file_ids: List[int]) -> int:
        if not file_ids:
            return 0
        return (
            self.db.query(FileItem)
            .filter(FileItem.id.in_(file_ids))
            .update(
                {"status": FileStatus.COMPLETED.value, "is_processed": True},
                synchronize_session="fetch",
            )
        )

    def get_many(self, file_ids: Iterable[int]) -> List[FileItem]:
        ids = list(file_ids)
        if not ids:
            return []
        return (
            self.db.query(FileItem)
            .filter(FileItem.id.in_(ids))
            .order_by(FileItem.id.asc())
            .all()
        )

    def get_many_for_order(self, order_id: int, file_ids: Iterable[int]) -> List[FileItem]:
        """Files among *file_ids* that belong to *order_id*; foreign ids are dropped."""
        ids = list(file_ids)
        if not ids:
            return []
        return (
            self.db.query(FileItem)
            .filter(FileItem.order_id == order_id, FileItem.id.in_(ids))
            .order_by(FileItem.id.asc())
            .all()
        )

    def count_not_completed(self, file_ids: Optional[List[int]] = None, order_id: Optional[int] = None) -> int:
        """Fresh count of files not yet completed, scoped by ids and/or order."""
        query = self.db.query(func.count(FileItem.id)).filter(
            FileItem.status != FileStatus.COMPLETED.value
        )
        if file_ids is not None:
            if not file_ids:
                return 0
            query = query.filter(FileItem.id.in_(file_ids))
        if order_id is not None:
            query = query.filter(FileItem.order_id == order_id)
        return query.scalar() or 0

    def count_by_status(self, *criteria) -> dict[str, int]:
        """``{status: count}`` for files matching the given filter criteria."""
        rows = (
            self.db.query(FileItem.status, func.count(FileItem.id))
            .filter(*criteria)
            .group_by(FileItem.status)
            .all()
        )
        return {status: count for status, count in rows}

    def count_by_status_grouped(self, group_column, *criteria) -> dict[int, dict[str, int]]:
        """``{group_value: {status: count}}`` in a single grouped query."""
        rows = (
            self.db.query(group_column, FileItem.status, func.count(FileItem.id))
            .filter(*criteria)
            .group_by(group_column, FileItem.status)
            .all()
        )
        grouped: dict[int, dict[str, int]] = {}
        for key, status, count in rows:
            grouped.setdefault(key, {})[status] = count
        return grouped
