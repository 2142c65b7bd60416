"""
Appointment Schemas
Pydantic models for appointment API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from claimportal.core.enums import AppointmentStatus
from claimportal.schemas.common import Pagination, UserSummary, ensure_aware
from claimportal.schemas.document import DocumentResponse
from claimportal.schemas.patient_report import PatientReportSummary


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    doctor_id: UUID
    scheduled_at: datetime
    notes: str | None = Field(None, max_length=5000)

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_at_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)  # type: ignore[return-value]


class AppointmentUpdate(BaseModel):
    """Status change, notes and/or reschedule"""

    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=5000)
    scheduled_at: datetime | None = None

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_at_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class AppointmentResponse(BaseModel):
    """Appointment with both parties"""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    scheduled_at: datetime
    status: AppointmentStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    patient: UserSummary
    doctor: UserSummary

    model_config = {"from_attributes": True}


class AppointmentDetail(AppointmentResponse):
    """Appointment with its reports and documents"""

    reports: list[PatientReportSummary] = []
    documents: list[DocumentResponse] = []


class AppointmentListResponse(BaseModel):
    """Paginated appointment listing"""

    appointments: list[AppointmentResponse]
    pagination: Pagination


# =============================================================================
# Patient roster (doctor view)
# =============================================================================


class RosterAppointment(BaseModel):
    """Completed or consulted visit, enriched with the doctor's report"""

    id: UUID
    scheduled_at: datetime
    status: AppointmentStatus
    notes: str | None = None
    diagnosis: str | None = None
    medications: str | None = None
    follow_up_date: datetime | None = None
    reports: list[PatientReportSummary] = []


class PatientRecord(BaseModel):
    """A patient the doctor has seen"""

    id: UUID
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    appointments: list[RosterAppointment] = []


class PatientRosterResponse(BaseModel):
    """Paginated roster"""

    patients: list[PatientRecord]
    pagination: Pagination
