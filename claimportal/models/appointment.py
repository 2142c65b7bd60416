"""
Appointment Model
A patient's booking with a doctor.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimportal.core.enums import AppointmentStatus
from claimportal.models.base import Base, TimeStampedModel, UUIDModel

if TYPE_CHECKING:
    from claimportal.models.document import Document
    from claimportal.models.patient_report import PatientReport
    from claimportal.models.user import User


class Appointment(Base, UUIDModel, TimeStampedModel):
    """
    Appointment between a patient and a doctor.

    Created PENDING by the patient. Reaches COMPLETED only as a side effect
    of the doctor writing a report for it.
    """

    __tablename__ = "appointments"

    patient_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    doctor_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    patient: Mapped["User"] = relationship(foreign_keys=[patient_id])
    doctor: Mapped["User"] = relationship(foreign_keys=[doctor_id])
    reports: Mapped[list["PatientReport"]] = relationship(
        back_populates="appointment",
        order_by="PatientReport.created_at.desc()",
    )
    documents: Mapped[list["Document"]] = relationship(
        back_populates="appointment",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_appointments_doctor_scheduled", "doctor_id", "scheduled_at"),
        Index("ix_appointments_patient_scheduled", "patient_id", "scheduled_at"),
    )

    def __repr__(self) -> str:
        return f"<Appointment {self.id} ({self.status.value})>"
