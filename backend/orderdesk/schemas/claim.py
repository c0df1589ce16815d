"""File claim (batch) schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from .file_item import FileItemResponse
from .stats import BatchStatsResponse


class ClaimRequest(BaseModel):
    """Claim a batch of pending files of an order.

    ``batch_size`` falls back to CLAIM_DEFAULT_BATCH_SIZE and is capped by
    CLAIM_MAX_BATCH_SIZE in the service.
    """
    batch_size: Optional[int] = Field(None, ge=1)
    folder_id: Optional[int] = None
    subfolder_id: Optional[int] = None


class OrderSummary(BaseModel):
    id: int
    order_number: str
    name: str
    status: str

    model_config = {"from_attributes": True}


class ClaimResponse(BaseModel):
    """Schema for file claim response."""
    id: int
    user_id: int
    order_id: int
    file_ids: List[int]
    file_count: int
    claimed_at: datetime
    completed_at: Optional[datetime] = None
    is_completed: bool
    order: Optional[OrderSummary] = None

    model_config = {"from_attributes": True}


class ClaimResultResponse(BaseModel):
    """Outcome of a claim request. ``claim`` is null when nothing was available."""
    claimed: bool
    message: str
    claim: Optional[ClaimResponse] = None


class ClaimDetailResponse(BaseModel):
    claim: ClaimResponse
    files: List[FileItemResponse]
    stats: BatchStatsResponse


class ReleaseResponse(BaseModel):
    claim_id: int
    released_files: int
    message: str
