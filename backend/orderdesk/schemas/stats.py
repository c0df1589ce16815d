"""Status aggregation schemas."""

from pydantic import BaseModel
from typing import List, Optional


class StatusCountsResponse(BaseModel):
    """Per-status file counts for one node of the order tree."""
    total: int = 0
    pending: int = 0
    claimed: int = 0
    processing: int = 0
    in_progress: int = 0
    completed: int = 0
    progress_percentage: int = 0
    is_completed: bool = False


class SubfolderStatsResponse(BaseModel):
    id: int
    name: str
    counts: StatusCountsResponse


class FolderStatsResponse(BaseModel):
    id: int
    name: str
    counts: StatusCountsResponse
    direct: StatusCountsResponse
    subfolders: List[SubfolderStatsResponse] = []


class OrderStatsResponse(BaseModel):
    """Recursive counts: unfiled order-level files plus every folder subtree."""
    order_id: int
    status: str
    counts: StatusCountsResponse
    unfiled: StatusCountsResponse
    folders: List[FolderStatsResponse] = []


class BatchStatsResponse(BaseModel):
    total_files: int
    completed_files: int
    pending_files: int
    progress_percentage: int
    claim_id: Optional[int] = None
