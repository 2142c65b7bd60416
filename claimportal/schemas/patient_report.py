"""
Patient Report Schemas
Pydantic models for doctor-authored reports
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from claimportal.core.enums import ClaimStatus, ReportType
from claimportal.schemas.common import Pagination, UserSummary, ensure_aware


class PatientReportCreate(BaseModel):
    """Schema for creating a report"""

    patient_id: UUID
    appointment_id: UUID | None = None
    report_type: ReportType
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    diagnosis: str | None = None
    treatment: str | None = None
    medications: str | None = None
    recommendations: str | None = None
    follow_up_date: datetime | None = None
    document_url: str | None = None

    @field_validator("follow_up_date")
    @classmethod
    def follow_up_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class PatientReportUpdate(BaseModel):
    """Partial update; only the fields sent are changed"""

    report_type: ReportType | None = None
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    diagnosis: str | None = None
    treatment: str | None = None
    medications: str | None = None
    recommendations: str | None = None
    follow_up_date: datetime | None = None
    document_url: str | None = None
    is_active: bool | None = None

    @field_validator("follow_up_date")
    @classmethod
    def follow_up_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class PatientReportSummary(BaseModel):
    """Report fields embedded in appointments and claims"""

    id: UUID
    report_type: ReportType
    title: str
    diagnosis: str | None = None
    medications: str | None = None
    follow_up_date: datetime | None = None
    doctor_id: UUID
    appointment_id: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AttachedClaim(BaseModel):
    """Claim a report is attached to"""

    id: UUID
    claim_number: str
    status: ClaimStatus

    model_config = {"from_attributes": True}


class PatientReportResponse(BaseModel):
    """Full report"""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_id: UUID | None = None
    report_type: ReportType
    title: str
    description: str
    diagnosis: str | None = None
    treatment: str | None = None
    medications: str | None = None
    recommendations: str | None = None
    follow_up_date: datetime | None = None
    document_url: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    patient: UserSummary
    doctor: UserSummary
    claims: list[AttachedClaim] = []

    model_config = {"from_attributes": True}


class PatientReportListResponse(BaseModel):
    """Paginated report listing"""

    reports: list[PatientReportResponse]
    pagination: Pagination
