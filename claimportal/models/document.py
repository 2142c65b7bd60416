"""
Document Model
Uploaded medical files kept in object storage.
"""

from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import BigInteger, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimportal.core.enums import DocumentType
from claimportal.models.base import Base, TimeStampedModel, UUIDModel

if TYPE_CHECKING:
    from claimportal.models.appointment import Appointment
    from claimportal.models.claim import Claim
    from claimportal.models.user import User


class Document(Base, UUIDModel, TimeStampedModel):
    """
    Metadata for a stored file.

    A document belongs either to an appointment (doctor upload) or to a
    claim (presigned upload flow). `filename` is the object storage key.
    """

    __tablename__ = "documents"

    type: Mapped[DocumentType] = mapped_column(Enum(DocumentType), nullable=False)
    filename: Mapped[str] = mapped_column(Text, nullable=False)  # MinIO object key
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    appointment_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    claim_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("claims.id", ondelete="CASCADE"), nullable=True, index=True
    )
    uploaded_by_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    appointment: Mapped[Optional["Appointment"]] = relationship(back_populates="documents")
    claim: Mapped[Optional["Claim"]] = relationship(back_populates="documents")
    uploaded_by: Mapped["User"] = relationship()

    def __repr__(self) -> str:
        return f"<Document {self.original_name}>"
