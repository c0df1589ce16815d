"""Order service — order lifecycle, listing and the folder tree view."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload, selectinload

from ..database import transaction
from ..exceptions import OrderStateError
from ..models import FileItem, Folder, Order, OrderStatus, Subfolder
from ..repositories import FileItemRepository, FolderRepository, OrderRepository
from ..schemas.order import OrderCreate, OrderUpdate
from ..storage import LocalStorage, get_storage
from .stats_service import StatsService, StatusCounts

# Folders every new order starts with.
DEFAULT_FOLDERS = ("Original Images", "Edited Images")

logger = logging.getLogger(__name__)


class OrderService:
    """Create, list, update, complete, approve and delete orders.

    Status only moves forward: pending -> in_progress (first claim) ->
    completed (all files done) -> approved (explicit review).
    """

    def __init__(self, db: Session, storage: Optional[LocalStorage] = None):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.folder_repo = FolderRepository(db)
        self.file_repo = FileItemRepository(db)
        self.stats = StatsService(db)
        self._storage = storage

    @property
    def storage(self) -> LocalStorage:
        if self._storage is None:
            self._storage = get_storage()
        return self._storage

    def generate_order_number(self, now: Optional[datetime] = None) -> str:
        """Next ``ORD-YYYY-MM-NNN`` number for the current month."""
        now = now or datetime.now(timezone.utc)
        prefix = f"ORD-{now:%Y-%m}-"
        return f"{prefix}{self.order_repo.max_sequence_for_prefix(prefix) + 1:03d}"

    def create_order(self, data: OrderCreate, user_id: Optional[int]) -> Order:
        with transaction(self.db, "create order"):
            order = self.order_repo.add(Order(
                order_number=self.generate_order_number(),
                name=data.name,
                description=data.description,
                customer_name=data.customer_name,
                deadline=data.deadline,
                created_by=user_id,
                status=OrderStatus.PENDING.value,
            ))
            for name in DEFAULT_FOLDERS:
                self.folder_repo.add(Folder(order_id=order.id, name=name, is_open=True))

        self.db.refresh(order)
        logger.info("Created order %s", order.order_number, extra={"order_id": order.id, "user_id": user_id})
        return order

    def list_orders(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Order], Dict[int, StatusCounts], int]:
        """A page of orders, per-order file counts, and the total match count."""
        orders, total = self.order_repo.search(search, status, limit, offset)
        grouped = self.file_repo.count_by_status_grouped(
            FileItem.order_id, FileItem.order_id.in_([o.id for o in orders])
        ) if orders else {}
        counts = {o.id: StatusCounts.from_mapping(grouped.get(o.id, {})) for o in orders}
        return orders, counts, total

    def get_order(self, order_id: int) -> Order:
        return self.order_repo.get_by_id(order_id)

    def update_order(self, order_id: int, data: OrderUpdate) -> Order:
        order = self.order_repo.get_by_id(order_id)
        with transaction(self.db, "update order"):
            for field, value in data.model_dump(exclude_unset=True).items():
                if field == "name" and not (value or "").strip():
                    continue
                setattr(order, field, value.strip() if field == "name" else value)

        self.db.refresh(order)
        return order

    def delete_order(self, order_id: int) -> None:
        """Delete the order with its folders, files and claims, then its blobs."""
        order = self.order_repo.get_by_id(order_id)
        with transaction(self.db, "delete order"):
            self.order_repo.delete(order)
        self.storage.delete_order(order_id)
        logger.info("Deleted order", extra={"order_id": order_id})

    def mark_completed(self, order_id: int) -> Order:
        """Complete the order by hand. Every file must already be completed."""
        order = self.order_repo.get_by_id(order_id)
        if order.status == OrderStatus.APPROVED.value:
            raise OrderStateError(order.id, order.status, "Order is already approved")
        if order.status == OrderStatus.COMPLETED.value:
            return order

        counts = self.stats.order_stats(order_id)
        if not counts.is_completed:
            raise OrderStateError(
                order.id,
                order.status,
                f"Order still has {counts.total - counts.completed} unfinished of {counts.total} files",
            )

        with transaction(self.db, "complete order"):
            order.status = OrderStatus.COMPLETED.value
            order.completed_at = datetime.now(timezone.utc)

        self.db.refresh(order)
        return order

    def approve(self, order_id: int) -> Order:
        order = self.order_repo.get_by_id(order_id)
        if order.status != OrderStatus.COMPLETED.value:
            raise OrderStateError(order.id, order.status, "Only completed orders can be approved")

        with transaction(self.db, "approve order"):
            order.status = OrderStatus.APPROVED.value
            order.approved_at = datetime.now(timezone.utc)

        self.db.refresh(order)
        logger.info("Approved order %s", order.order_number, extra={"order_id": order.id})
        return order

    def get_structure(self, order_id: int) -> dict:
        """Folders -> subfolders -> files, plus files not filed in any folder.

        Shaped like ``OrderStructureResponse``.
        """
        self.order_repo.get_by_id(order_id)
        folders = (
            self.db.query(Folder)
            .options(
                selectinload(Folder.files).joinedload(FileItem.assignee),
                selectinload(Folder.subfolders)
                .selectinload(Subfolder.files)
                .joinedload(FileItem.assignee),
            )
            .filter(Folder.order_id == order_id)
            .order_by(Folder.id)
            .all()
        )
        unfiled = (
            self.db.query(FileItem)
            .options(joinedload(FileItem.assignee))
            .filter(FileItem.order_id == order_id, FileItem.folder_id.is_(None))
            .order_by(FileItem.id)
            .all()
        )
        return {"order_id": order_id, "folders": folders, "unfiled": unfiled}
