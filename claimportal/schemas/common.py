"""
Common Schemas
Pagination and shared field helpers
Source: https://docs.pydantic.dev/latest/
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from fastapi import Query
from pydantic import BaseModel

from claimportal.api.config import settings
from claimportal.core.enums import UserRole

CENT = Decimal("0.01")


def quantize_money(value: Decimal | None) -> Decimal | None:
    """Round a money amount to cents."""
    if value is None:
        return None
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# =============================================================================
# Pagination
# =============================================================================


@dataclass(frozen=True)
class PageParams:
    """Validated `page`/`limit` query parameters."""

    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"
    ),
) -> PageParams:
    """FastAPI dependency for list endpoints."""
    return PageParams(page=page, limit=limit)


class Pagination(BaseModel):
    """Pagination block returned by every list endpoint."""

    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, params: PageParams, total: int) -> "Pagination":
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=math.ceil(total / params.limit),
        )


# =============================================================================
# Embedded summaries
# =============================================================================


class UserSummary(BaseModel):
    """User fields safe to embed in other resources"""

    id: UUID
    name: str
    email: str
    role: UserRole
    phone: str | None = None

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Plain acknowledgement"""

    message: str
