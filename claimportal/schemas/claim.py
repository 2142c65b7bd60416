"""
Claim Schemas
Pydantic models for claim API contracts
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from claimportal.core.enums import ClaimStatus
from claimportal.schemas.common import Pagination, UserSummary, ensure_aware, quantize_money
from claimportal.schemas.document import DocumentResponse
from claimportal.schemas.patient_report import PatientReportSummary
from claimportal.schemas.payment import PaymentSummary


class ClaimCreate(BaseModel):
    """Schema for filing a claim. New claims always start in DRAFT."""

    diagnosis: str = Field(..., min_length=1)
    treatment_date: datetime
    claim_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = None
    doctor_id: UUID | None = None

    @field_validator("claim_amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        return quantize_money(v)  # type: ignore[return-value]

    @field_validator("treatment_date")
    @classmethod
    def treatment_date_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)  # type: ignore[return-value]


class ClaimStatusFields(BaseModel):
    """Status change plus its per-edge payload"""

    approved_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    rejection_reason: str | None = None

    @field_validator("approved_amount")
    @classmethod
    def round_approved(cls, v: Decimal | None) -> Decimal | None:
        return quantize_money(v)


class ClaimUpdate(ClaimStatusFields):
    """
    General update.

    Which descriptive fields a caller may send depends on their role; the
    service rejects fields outside that set.
    """

    diagnosis: str | None = Field(None, min_length=1)
    description: str | None = None
    treatment_date: datetime | None = None
    claim_amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    doctor_id: UUID | None = None
    status: ClaimStatus | None = None

    @field_validator("claim_amount")
    @classmethod
    def round_amount(cls, v: Decimal | None) -> Decimal | None:
        return quantize_money(v)

    @field_validator("treatment_date")
    @classmethod
    def treatment_date_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class ClaimStatusUpdate(ClaimStatusFields):
    """Reviewer status transition"""

    status: ClaimStatus


class ReportAttachmentRequest(BaseModel):
    """Body of attach/detach report calls"""

    report_id: UUID | None = None


class AttachedReport(BaseModel):
    """Report attachment embedded in a claim"""

    id: UUID
    report_id: UUID
    attached_by: UUID
    attached_at: datetime
    report: PatientReportSummary

    model_config = {"from_attributes": True}


class ClaimResponse(BaseModel):
    """Full claim with its related records"""

    id: UUID
    claim_number: str
    patient_id: UUID
    doctor_id: UUID | None = None
    diagnosis: str
    description: str | None = None
    treatment_date: datetime
    claim_amount: Decimal
    approved_amount: Decimal | None = None
    status: ClaimStatus
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    paid_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    patient: UserSummary
    doctor: UserSummary | None = None
    documents: list[DocumentResponse] = []
    payments: list[PaymentSummary] = []
    attached_reports: list[AttachedReport] = []

    model_config = {"from_attributes": True}


class ClaimStatusResponse(BaseModel):
    """Result of a status transition"""

    message: str
    claim: ClaimResponse


class ClaimReportResponse(BaseModel):
    """Result of attaching a report"""

    message: str
    attachment: AttachedReport


class ClaimListResponse(BaseModel):
    """Paginated claim listing"""

    claims: list[ClaimResponse]
    pagination: Pagination
