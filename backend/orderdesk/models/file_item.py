"""FileItem model: one uploaded file with a processing status."""

import enum

from sqlalchemy import Column, Index, String, Boolean, Integer, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class FileStatus(str, enum.Enum):
    """Processing status of a single file."""
    PENDING = "pending"
    CLAIMED = "claimed"
    PROCESSING = "processing"
    COMPLETED = "completed"


# Statuses that require an assignee.
ASSIGNED_STATUSES = frozenset({FileStatus.CLAIMED.value, FileStatus.PROCESSING.value})


class FileItem(Base):
    """
    A file belonging to an order, optionally placed in a folder/subfolder.

    Invariant: a file with a non-null ``assigned_to`` is never ``pending``.
    Services always write ``status`` and ``assigned_to`` together.
    """

    __tablename__ = "file_items"
    __table_args__ = (
        # Claim selection: order + status + unassigned, in id order.
        Index("ix_file_items_order_status", "order_id", "status", "assigned_to"),
        Index("ix_file_items_folder_id", "folder_id"),
        Index("ix_file_items_subfolder_id", "subfolder_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True)
    subfolder_id = Column(Integer, ForeignKey("subfolders.id", ondelete="SET NULL"), nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Storage
    name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    path = Column(String(1000), nullable=False)  # relative to the blob store root
    file_type = Column(String(100), nullable=True)
    file_size = Column(BigInteger, nullable=False, default=0)

    # Processing
    is_processed = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=FileStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="file_items")
    folder = relationship("Folder")
    subfolder = relationship("Subfolder", back_populates="files")
    assignee = relationship("User")

    def __repr__(self):
        return f"<FileItem {self.id} {self.name} status={self.status}>"
