"""Order API endpoints.

Endpoints are thin; OrderService and StatsService do the work.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_permission
from ..core.permissions import OrderManagementPermissions as P
from ..database import get_db
from ..models import OrderStatus
from ..schemas.folder import OrderStructureResponse
from ..schemas.order import (
    OrderCreate,
    OrderListItem,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
)
from ..schemas.stats import OrderStatsResponse
from ..services import OrderService, StatsService
from ..services.stats_service import serialize_counts

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=OrderListResponse)
def list_orders(
    search: Optional[str] = Query(None, max_length=255),
    status: Optional[OrderStatus] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    """Newest orders first, each with per-status file counts."""
    orders, counts, total = OrderService(db).list_orders(
        search=search,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )
    items = [
        OrderListItem(
            **OrderResponse.model_validate(order).model_dump(),
            file_counts=counts[order.id].to_dict(),
        )
        for order in orders
    ]
    return OrderListResponse(items=items, total=total, limit=limit, offset=offset)


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.CREATE_ORDERS.value)),
):
    """Create an order with its default folders."""
    return OrderService(db).create_order(data, user_id=auth.user_id)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    return OrderService(db).get_order(order_id)


@router.put("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: int,
    data: OrderUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    return OrderService(db).update_order(order_id, data)


@router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.DELETE_ORDERS.value)),
):
    """Delete the order, everything in it, and its stored files."""
    OrderService(db).delete_order(order_id)


@router.post("/{order_id}/complete", response_model=OrderResponse)
def complete_order(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    """Mark the order completed. 409 while any file is unfinished."""
    return OrderService(db).mark_completed(order_id)


@router.post("/{order_id}/approve", response_model=OrderResponse)
def approve_order(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_ORDERS.value)),
):
    """Approve a completed order. 409 from any other status."""
    return OrderService(db).approve(order_id)


@router.get("/{order_id}/stats", response_model=OrderStatsResponse)
def get_order_stats(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_ORDERS.value)),
):
    """Recursive status counts with the per-folder breakdown."""
    return serialize_counts(StatsService(db).order_breakdown(order_id))


@router.get("/{order_id}/structure", response_model=OrderStructureResponse)
def get_order_structure(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_FILES.value)),
):
    """Folders, subfolders and files of the order with each file's assignee."""
    return OrderService(db).get_structure(order_id)
