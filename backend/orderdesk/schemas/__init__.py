"""Pydantic schemas for API validation."""

from .order import OrderCreate, OrderUpdate, OrderResponse, OrderListItem, OrderListResponse
from .folder import (
    FolderCreate,
    FolderUpdate,
    FolderResponse,
    SubfolderCreate,
    SubfolderUpdate,
    SubfolderResponse,
    OrderStructureResponse,
)
from .file_item import FileItemResponse, FileStatusUpdate, BulkFileStatusUpdate, FileAssignRequest
from .claim import ClaimRequest, ClaimResponse, ClaimResultResponse, ClaimDetailResponse, ReleaseResponse
from .stats import StatusCountsResponse, OrderStatsResponse, BatchStatsResponse

__all__ = [
    "OrderCreate",
    "OrderUpdate",
    "OrderResponse",
    "OrderListItem",
    "OrderListResponse",
    "FolderCreate",
    "FolderUpdate",
    "FolderResponse",
    "SubfolderCreate",
    "SubfolderUpdate",
    "SubfolderResponse",
    "OrderStructureResponse",
    "FileItemResponse",
    "FileStatusUpdate",
    "BulkFileStatusUpdate",
    "FileAssignRequest",
    "ClaimRequest",
    "ClaimResponse",
    "ClaimResultResponse",
    "ClaimDetailResponse",
    "ReleaseResponse",
    "StatusCountsResponse",
    "OrderStatsResponse",
    "BatchStatsResponse",
]
