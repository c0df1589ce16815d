"""FileClaim model: a batch of files reserved by one user."""

from sqlalchemy import Column, Boolean, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ..database import Base


class FileClaim(Base):
    """
    Reservation of a batch of files for one user on one order.

    ``file_ids`` is a denormalized, ordered list of FileItem ids, not a
    foreign-key relation. FileBatchService is the only writer and keeps it
    consistent with the files' status/assignee.

    Lifecycle: created on claim -> is_completed on completion; deleted on release.
    """

    __tablename__ = "file_claims"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    file_ids = Column(JSON, nullable=False, default=list)

    claimed_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)

    user = relationship("User")
    order = relationship("Order", back_populates="claims")

    def contains(self, file_id: int) -> bool:
        return file_id in (self.file_ids or [])

    @property
    def file_count(self) -> int:
        return len(self.file_ids or [])
