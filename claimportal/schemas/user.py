"""
User Schemas
Pydantic models for user API contracts
Source: https://docs.pydantic.dev/latest/
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from claimportal.core.enums import ClaimStatus, UserRole
from claimportal.schemas.common import Pagination


class UserBase(BaseModel):
    """Base user schema with common fields"""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None


class UserCreate(UserBase):
    """
    Schema for signup.

    The role is chosen here and cannot be changed afterwards.
    """

    password: str = Field(..., min_length=8, max_length=72, description="Password (min 8 chars)")
    role: UserRole

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(BaseModel):
    """Schema for user responses (excludes password)"""

    id: UUID
    email: str
    name: str
    role: UserRole
    phone: str | None = None
    address: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserClaimSummary(BaseModel):
    """Claim row embedded in a user listing"""

    id: UUID
    claim_number: str
    status: ClaimStatus
    claim_amount: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class UserWithClaims(UserResponse):
    """User with the claims they filed as patient"""

    claims: list[UserClaimSummary] = []


class UserListResponse(BaseModel):
    """Paginated user listing"""

    users: list[UserWithClaims]
    pagination: Pagination
