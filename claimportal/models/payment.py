"""
Payment Model
Bank disbursement against an approved claim.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimportal.core.enums import PaymentStatus
from claimportal.models.base import Base, TimeStampedModel, UUIDModel

if TYPE_CHECKING:
    from claimportal.models.claim import Claim
    from claimportal.models.user import User


class Payment(Base, UUIDModel, TimeStampedModel):
    """
    Payment issued by a bank user.

    Completing a payment moves its claim to PAID in the same transaction.
    """

    __tablename__ = "payments"

    claim_id: Mapped[UUID] = mapped_column(
        ForeignKey("claims.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )

    payment_method: Mapped[Optional[str]] = mapped_column(String(50))
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text)

    processed_by: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    claim: Mapped["Claim"] = relationship(back_populates="payments")
    processor: Mapped[Optional["User"]] = relationship(foreign_keys=[processed_by])

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.amount} ({self.status.value})>"
