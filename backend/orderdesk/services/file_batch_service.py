"""File batch service — claim, release and complete batches of files.

A batch (``FileClaim``) reserves up to N pending files of one order for one
user. Every public write runs in a single transaction: either the claim row,
the file status/assignee changes and the order status change all commit, or
none of them do.

Concurrency: candidate rows are selected with ``SELECT ... FOR UPDATE``
(``SKIP LOCKED`` on PostgreSQL) and then moved to ``claimed`` with an
update guarded on the still-pending state. If the guarded update touches
fewer rows than were selected another claimer got there first; the
transaction is rolled back and ``ConflictError`` is raised. Two claims can
therefore never share a file.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import transaction
from ..exceptions import (
    ConflictError,
    FileNotInBatchError,
    FolderNotFoundError,
    ForbiddenError,
    SubfolderNotFoundError,
    ValidationError,
)
from ..models import FileClaim, FileItem, FileStatus
from ..repositories import (
    FileClaimRepository,
    FileItemRepository,
    FolderRepository,
    OrderRepository,
    SubfolderRepository,
)
from .stats_service import percentage

logger = logging.getLogger(__name__)


class FileBatchService:
    """Deep module for batch operations.

    Public methods:
        claim_batch            -- reserve up to N pending files for a user
        release_batch          -- give claimed files back and drop the claim
        complete_batch         -- finish every file of a claim
        complete_file_in_batch -- finish one file; cascades when it was the last
        get_claim / ensure_can_manage
        get_batch_files / get_user_active_batches / get_order_claims / get_batch_stats

    All ids are passed in explicitly; nothing is read from request state.
    """

    def __init__(self, db: Session):
        self.db = db
        self.claim_repo = FileClaimRepository(db)
        self.file_repo = FileItemRepository(db)
        self.order_repo = OrderRepository(db)
        self.folder_repo = FolderRepository(db)
        self.subfolder_repo = SubfolderRepository(db)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def claim_batch(
        self,
        order_id: int,
        user_id: int,
        batch_size: Optional[int] = None,
        folder_id: Optional[int] = None,
        subfolder_id: Optional[int] = None,
    ) -> Optional[FileClaim]:
        """Claim the lowest-id pending, unassigned files of an order.

        Returns the new claim, or None when no file is eligible (nothing is
        written in that case). Raises ConflictError when a concurrent claim
        took some of the selected files.
        """
        size = self._validate_batch_size(batch_size)
        self.order_repo.get_by_id(order_id)
        self._validate_scope(order_id, folder_id, subfolder_id)

        with transaction(self.db, "claim batch"):
            candidates = self.file_repo.lock_claimable(
                order_id, size, folder_id=folder_id, subfolder_id=subfolder_id
            )
            if not candidates:
                logger.info(
                    "No files available to claim",
                    extra={"order_id": order_id, "user_id": user_id},
                )
                return None

            file_ids = [f.id for f in candidates]
            updated = self.file_repo.assign_pending(file_ids, user_id)
            if updated != len(file_ids):
                raise ConflictError(
                    "Files were claimed concurrently, try again",
                    details={"order_id": order_id, "requested": len(file_ids), "claimed": updated},
                )

            claim = self.claim_repo.add(FileClaim(
                user_id=user_id,
                order_id=order_id,
                file_ids=file_ids,
                claimed_at=datetime.now(timezone.utc),
                is_completed=False,
            ))
            self.order_repo.advance_from_pending(order_id)

        self.db.refresh(claim)
        logger.info(
            "Claimed %d files",
            len(file_ids),
            extra={"order_id": order_id, "user_id": user_id, "claim_id": claim.id},
        )
        return claim

    def release_batch(self, claim_id: int) -> int:
        """Return the claim's still-``claimed`` files to the pool and delete the claim.

        Files already moved to ``processing`` or ``completed`` keep their
        state. Returns the number of files released.
        """
        claim = self.claim_repo.get_by_id(claim_id)
        with transaction(self.db, "release batch"):
            released = self.file_repo.release_claimed(list(claim.file_ids or []))
            self.claim_repo.delete(claim)

        logger.info("Released %d files", released, extra={"claim_id": claim_id})
        return released

    def complete_batch(self, claim_id: int) -> FileClaim:
        """Complete the claim and all of its files.

        When this leaves the order without unfinished files, a pending or
        in-progress order moves to ``completed``.
        """
        claim = self.claim_repo.get_by_id(claim_id)
        with transaction(self.db, "complete batch"):
            self._complete_claim(claim)

        self.db.refresh(claim)
        return claim

    def complete_file_in_batch(self, claim_id: int, file_id: int) -> FileItem:
        """Complete one file of a claim.

        Raises FileNotInBatchError, without changing anything, when the file
        is not a member of the claim. Completing the last open file runs the
        full batch completion in the same transaction.
        """
        claim = self.claim_repo.get_by_id(claim_id)
        file_item = self.file_repo.get_by_id(file_id)
        if not claim.contains(file_item.id):
            raise FileNotInBatchError(claim_id, file_id)

        with transaction(self.db, "complete file"):
            self.file_repo.mark_completed([file_item.id])
            if not claim.is_completed and self.file_repo.count_not_completed(file_ids=list(claim.file_ids)) == 0:
                self._complete_claim(claim)

        self.db.refresh(file_item)
        return file_item

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_claim(self, claim_id: int) -> FileClaim:
        return self.claim_repo.get_by_id(claim_id)

    @staticmethod
    def ensure_can_manage(claim: FileClaim, user_id: Optional[int], is_admin: bool) -> None:
        """Only the claim's owner or an Admin may complete or release it."""
        if is_admin or (user_id is not None and claim.user_id == user_id):
            return
        raise ForbiddenError("Only the user who claimed this batch can change it")

    def get_batch_files(self, claim_id: int) -> List[FileItem]:
        claim = self.claim_repo.get_by_id(claim_id)
        return self.file_repo.get_many(claim.file_ids or [])

    def get_user_active_batches(self, user_id: int) -> List[FileClaim]:
        return self.claim_repo.active_for_user(user_id)

    def get_order_claims(self, order_id: int) -> List[FileClaim]:
        self.order_repo.get_by_id(order_id)
        return self.claim_repo.for_order(order_id)

    def get_batch_stats(self, claim_id: int) -> dict:
        """Total/completed/pending counts and rounded progress of a claim.

        Deleted files drop out of every count, so ``total_files`` can shrink
        below the number of ids the claim was created with.
        """
        claim = self.claim_repo.get_by_id(claim_id)
        file_ids = list(claim.file_ids or [])
        by_status = self.file_repo.count_by_status(FileItem.id.in_(file_ids)) if file_ids else {}
        total = sum(by_status.values())
        completed = by_status.get(FileStatus.COMPLETED.value, 0)
        return {
            "claim_id": claim.id,
            "total_files": total,
            "completed_files": completed,
            "pending_files": total - completed,
            "progress_percentage": percentage(completed, total),
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _complete_claim(self, claim: FileClaim) -> None:
        """Batch completion cascade. Caller owns the transaction."""
        if not claim.is_completed:
            claim.is_completed = True
            claim.completed_at = datetime.now(timezone.utc)
        self.file_repo.mark_completed(list(claim.file_ids or []))
        self.db.flush()

        remaining = self.file_repo.count_not_completed(order_id=claim.order_id)
        if remaining == 0 and self.order_repo.complete_if_open(claim.order_id):
            logger.info("Order completed", extra={"order_id": claim.order_id, "claim_id": claim.id})

    def _validate_batch_size(self, batch_size: Optional[int]) -> int:
        size = settings.claim_default_batch_size if batch_size is None else batch_size
        if size < 1 or size > settings.claim_max_batch_size:
            raise ValidationError(
                f"batch_size must be between 1 and {settings.claim_max_batch_size}",
                field="batch_size",
            )
        return size

    def _validate_scope(
        self, order_id: int, folder_id: Optional[int], subfolder_id: Optional[int]
    ) -> None:
        """Folder and subfolder filters must point inside the order."""
        if folder_id is not None:
            folder = self.folder_repo.get_by_id(folder_id)
            if folder.order_id != order_id:
                raise FolderNotFoundError(folder_id)
        if subfolder_id is not None:
            subfolder = self.subfolder_repo.get_by_id(subfolder_id)
            if subfolder.order_id != order_id or (
                folder_id is not None and subfolder.folder_id != folder_id
            ):
                raise SubfolderNotFoundError(subfolder_id)

