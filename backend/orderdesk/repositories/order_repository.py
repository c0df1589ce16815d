"""Repository for order database operations."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import or_

from ..exceptions import OrderNotFoundError
from ..models import Order, OrderStatus
from .base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Data access layer for orders."""

    model_class = Order
    not_found_error = OrderNotFoundError

    def search(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        """Newest-first page of orders matching *search* and *status*, plus the total match count."""
        query = self.db.query(Order)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Order.name.ilike(pattern),
                Order.order_number.ilike(pattern),
                Order.customer_name.ilike(pattern),
            ))
        if status:
            query = query.filter(Order.status == status)

        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return orders, total

    def max_sequence_for_prefix(self, prefix: str) -> int:
        """Highest numeric suffix among order numbers starting with *prefix* (0 if none)."""
        numbers = (
            self.db.query(Order.order_number)
            .filter(Order.order_number.like(f"{prefix}%"))
            .all()
        )
        sequences = [int(n[len(prefix):]) for (n,) in numbers if n[len(prefix):].isdigit()]
        return max(sequences, default=0)

    def advance_from_pending(self, order_id: int) -> int:
        """Conditionally move a pending order to in_progress. Returns rows changed."""
        return (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
            .update(
                {"status": OrderStatus.IN_PROGRESS.value},
                synchronize_session="fetch",
            )
        )

    def complete_if_open(self, order_id: int) -> int:
        """Move a pending/in_progress order to completed. Never regresses an approved order."""
        return (
            self.db.query(Order)
            .filter(
                Order.id == order_id,
                Order.status.in_([OrderStatus.PENDING.value, OrderStatus.IN_PROGRESS.value]),
            )
            .update(
                {
                    "status": OrderStatus.COMPLETED.value,
                    "completed_at": datetime.now(timezone.utc),
                },
                synchronize_session="fetch",
            )
        )
