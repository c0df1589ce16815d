"""Order model."""

import enum

from sqlalchemy import Column, Index, String, Text, Integer, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class OrderStatus(str, enum.Enum):
    """Order lifecycle. Transitions only move forward."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"


class Order(Base):
    """Top-level unit of work owning folders, files, and claims.

    Status transitions: pending -> in_progress -> completed -> approved.
    Deleting an order removes its folders, files, and claims.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_status", "status"),
        Index("ix_orders_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(50), unique=True, nullable=False)  # ORD-2025-04-001
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    customer_name = Column(String(255), nullable=True)
    deadline = Column(Date, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Allowed values: see OrderStatus
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship("User")
    folders = relationship(
        "Folder",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Folder.id",
    )
    file_items = relationship(
        "FileItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    claims = relationship(
        "FileClaim",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
