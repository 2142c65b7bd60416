"""
Patient Report Model
Doctor-authored clinical record that can back a claim.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimportal.core.enums import ReportType
from claimportal.models.base import Base, TimeStampedModel, UUIDModel

if TYPE_CHECKING:
    from claimportal.models.appointment import Appointment
    from claimportal.models.claim import Claim, ClaimReport
    from claimportal.models.user import User


class PatientReport(Base, UUIDModel, TimeStampedModel):
    """
    Clinical report written by a doctor for one of their patients.

    While attached to any claim (through ClaimReport) the report cannot be
    deleted.
    """

    __tablename__ = "patient_reports"

    patient_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    doctor_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    appointment_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, index=True
    )

    report_type: Mapped[ReportType] = mapped_column(Enum(ReportType), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Clinical detail
    diagnosis: Mapped[Optional[str]] = mapped_column(Text)
    treatment: Mapped[Optional[str]] = mapped_column(Text)
    medications: Mapped[Optional[str]] = mapped_column(Text)
    recommendations: Mapped[Optional[str]] = mapped_column(Text)
    follow_up_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    document_url: Mapped[Optional[str]] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    patient: Mapped["User"] = relationship(foreign_keys=[patient_id])
    doctor: Mapped["User"] = relationship(foreign_keys=[doctor_id])
    appointment: Mapped[Optional["Appointment"]] = relationship(back_populates="reports")
    claim_links: Mapped[list["ClaimReport"]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
    )

    @property
    def claims(self) -> list["Claim"]:
        """Claims this report is attached to (requires claim_links.claim loaded)."""
        return [link.claim for link in self.claim_links]

    def __repr__(self) -> str:
        return f"<PatientReport {self.title} ({self.report_type.value})>"
