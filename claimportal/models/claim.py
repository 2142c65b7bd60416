"""
Claim Models
Reimbursement claims and their attached patient reports.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimportal.core.enums import ClaimStatus
from claimportal.models.base import Base, TimeStampedModel, UUIDModel, utcnow

if TYPE_CHECKING:
    from claimportal.models.document import Document
    from claimportal.models.patient_report import PatientReport
    from claimportal.models.payment import Payment
    from claimportal.models.user import User


class Claim(Base, UUIDModel, TimeStampedModel):
    """
    Patient reimbursement claim.

    Lifecycle: DRAFT -> SUBMITTED -> UNDER_REVIEW -> APPROVED | REJECTED,
    then APPROVED -> PAID once a payment completes. Each forward step stamps
    its own timestamp column.
    """

    __tablename__ = "claims"

    claim_number: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable number (e.g., CLM-123456-A1B2C3)",
    )

    patient_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    doctor_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Clinical summary
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    treatment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Financial
    claim_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Amount requested by the patient",
    )
    approved_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Amount granted on approval",
    )

    # Status
    status: Mapped[ClaimStatus] = mapped_column(
        Enum(ClaimStatus),
        default=ClaimStatus.DRAFT,
        nullable=False,
        index=True,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    patient: Mapped["User"] = relationship(foreign_keys=[patient_id])
    doctor: Mapped[Optional["User"]] = relationship(foreign_keys=[doctor_id])
    documents: Mapped[list["Document"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="Payment.created_at.desc()",
    )
    attached_reports: Mapped[list["ClaimReport"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_claims_patient_status", "patient_id", "status"),
        Index("ix_claims_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Claim {self.claim_number} ({self.status.value})>"


class ClaimReport(Base, UUIDModel):
    """
    Attachment of a patient report to a claim.

    A given report can be attached to a given claim once.
    """

    __tablename__ = "claim_reports"

    claim_id: Mapped[UUID] = mapped_column(
        ForeignKey("claims.id", ondelete="CASCADE"), nullable=False, index=True
    )
    report_id: Mapped[UUID] = mapped_column(
        ForeignKey("patient_reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attached_by: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    attached_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    claim: Mapped["Claim"] = relationship(back_populates="attached_reports")
    report: Mapped["PatientReport"] = relationship(back_populates="claim_links")

    __table_args__ = (UniqueConstraint("claim_id", "report_id", name="uq_claim_reports_pair"),)

    def __repr__(self) -> str:
        return f"<ClaimReport claim={self.claim_id} report={self.report_id}>"
