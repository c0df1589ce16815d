"""Order schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List

from .stats import StatusCountsResponse


class OrderBase(BaseModel):
    """Base order schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    customer_name: Optional[str] = Field(None, max_length=255)
    deadline: Optional[date] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class OrderCreate(OrderBase):
    """Schema for creating an order."""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Spring catalogue retouch",
                    "description": "Background removal for 240 product shots",
                    "customer_name": "Acme Apparel",
                    "deadline": "2025-05-30",
                }
            ]
        }
    }


class OrderUpdate(BaseModel):
    """Schema for updating an order. Omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    customer_name: Optional[str] = Field(None, max_length=255)
    deadline: Optional[date] = None


class UserSummary(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class OrderResponse(OrderBase):
    """Schema for order response."""
    id: int
    order_number: str
    status: str
    created_by: Optional[int] = None
    creator: Optional[UserSummary] = None
    completed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OrderListItem(OrderResponse):
    """Order row in a list, with aggregated file counts."""
    file_counts: StatusCountsResponse


class OrderListResponse(BaseModel):
    """Paginated list of orders."""
    items: List[OrderListItem]
    total: int
    limit: int
    offset: int
