"""Folder and Subfolder models: the two optional grouping levels of an order."""

from sqlalchemy import Column, String, Boolean, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Folder(Base):
    """Top-level grouping inside an order. ``is_open`` is UI state only."""

    __tablename__ = "folders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="folders")
    subfolders = relationship(
        "Subfolder",
        back_populates="folder",
        cascade="all, delete-orphan",
        order_by="Subfolder.id",
    )
    # Files placed directly in this folder (not in one of its subfolders).
    files = relationship(
        "FileItem",
        primaryjoin="and_(Folder.id == foreign(FileItem.folder_id), FileItem.subfolder_id.is_(None))",
        viewonly=True,
        order_by="FileItem.id",
    )


class Subfolder(Base):
    """Second grouping level. Names are unique within a folder."""

    __tablename__ = "subfolders"
    __table_args__ = (
        UniqueConstraint("folder_id", "name", name="uq_subfolders_folder_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    folder = relationship("Folder", back_populates="subfolders")
    files = relationship("FileItem", back_populates="subfolder", order_by="FileItem.id")

    @property
    def order_id(self) -> int:
        return self.folder.order_id
