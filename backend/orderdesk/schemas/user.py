"""User, role, and authentication schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not v or "@" not in v:
        raise ValueError("Valid email address required")
    return v


class RoleSummary(BaseModel):
    id: int
    name: str
    permission_names: List[str] = []

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., min_length=8)
    role_id: Optional[int] = None
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdate(BaseModel):
    """Omitted fields are left unchanged; an empty password keeps the current one."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    password: Optional[str] = None
    role_id: Optional[int] = None
    phone: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_email(v) if v is not None else None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v or None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role_id: Optional[int] = None
    role: Optional[RoleSummary] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = []


class RoleUpdate(RoleCreate):
    pass


class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    permission_names: List[str] = []
    users_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class PermissionOption(BaseModel):
    id: str
    name: str


class PermissionGroup(BaseModel):
    name: str
    permissions: List[PermissionOption]


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., description="Email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "alice@company.com", "password": "securepass", "name": "Alice"}]
        }
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user: UserResponse
