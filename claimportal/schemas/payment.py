"""
Payment Schemas
Pydantic models for bank payments
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from claimportal.core.enums import ClaimStatus, PaymentStatus
from claimportal.schemas.common import Pagination, UserSummary, quantize_money


class PaymentCreate(BaseModel):
    """Schema for issuing a payment"""

    claim_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_method: str | None = Field(None, max_length=50)
    transaction_id: str | None = Field(None, max_length=255)
    notes: str | None = None

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        return quantize_money(v)  # type: ignore[return-value]


class PaymentUpdate(BaseModel):
    """
    Status change for a payment.

    `status` is checked against PaymentStatus by the service so that an
    unknown value yields a specific message.
    """

    status: str
    transaction_id: str | None = Field(None, max_length=255)
    failure_reason: str | None = None
    notes: str | None = None


class PaymentSummary(BaseModel):
    """Payment embedded in a claim"""

    id: UUID
    amount: Decimal
    status: PaymentStatus
    payment_method: str | None = None
    transaction_id: str | None = None
    payment_date: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentClaim(BaseModel):
    """Claim fields shown with a payment"""

    id: UUID
    claim_number: str
    status: ClaimStatus
    claim_amount: Decimal
    approved_amount: Decimal | None = None
    patient: UserSummary

    model_config = {"from_attributes": True}


class PaymentResponse(PaymentSummary):
    """Full payment"""

    claim_id: UUID
    notes: str | None = None
    failure_reason: str | None = None
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    updated_at: datetime

    claim: PaymentClaim
    processor: UserSummary | None = None


class PaymentListResponse(BaseModel):
    """Paginated payment listing"""

    payments: list[PaymentResponse]
    pagination: Pagination
