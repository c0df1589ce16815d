"""Repository for file claims."""

from typing import List

from sqlalchemy.orm import joinedload

from ..exceptions import ClaimNotFoundError
from ..models import FileClaim
from .base import BaseRepository


class FileClaimRepository(BaseRepository[FileClaim]):
    """Data access layer for file claims."""

    model_class = FileClaim
    not_found_error = ClaimNotFoundError

    def active_for_user(self, user_id: int) -> List[FileClaim]:
        return (
            self.db.query(FileClaim)
            .options(joinedload(FileClaim.order))
            .filter(FileClaim.user_id == user_id, FileClaim.is_completed.is_(False))
            .order_by(FileClaim.claimed_at.desc(), FileClaim.id.desc())
            .all()
        )

    def for_order(self, order_id: int) -> List[FileClaim]:
        return (
            self.db.query(FileClaim)
            .options(joinedload(FileClaim.user))
            .filter(FileClaim.order_id == order_id)
            .order_by(FileClaim.claimed_at.desc(), FileClaim.id.desc())
            .all()
        )

    def open_member_ids(self, order_id: int) -> set[int]:
        """Ids of files held by any not-yet-completed claim of the order."""
        rows = (
            self.db.query(FileClaim.file_ids)
            .filter(FileClaim.order_id == order_id, FileClaim.is_completed.is_(False))
            .all()
        )
        return {file_id for (file_ids,) in rows for file_id in (file_ids or [])}
