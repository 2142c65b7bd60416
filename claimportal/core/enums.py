"""
Core Enumerations for the Claims Portal.

Every status and role shared by the models, the authorization policy and the
state machines lives here so that each layer imports the same values.
"""

from enum import Enum


# =============================================================================
# Identity Enums
# =============================================================================


class UserRole(str, Enum):
    """Portal roles. Assigned at signup and never changed afterwards."""

    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    INSURANCE = "INSURANCE"  # Claim reviewers
    BANK = "BANK"  # Payment processors


# =============================================================================
# Appointment Enums
# =============================================================================


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status.

    State Machine Transitions:
    PENDING -> ACCEPTED | REJECTED | CANCELLED
    ACCEPTED -> CONSULTED
    ACCEPTED -> COMPLETED   (automatic, on report creation)
    CONSULTED -> COMPLETED  (automatic, on report creation)
    """

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    CONSULTED = "CONSULTED"
    COMPLETED = "COMPLETED"


# =============================================================================
# Clinical Record Enums
# =============================================================================


class ReportType(str, Enum):
    """Kinds of doctor-authored patient reports."""

    DIAGNOSIS_REPORT = "DIAGNOSIS_REPORT"
    TREATMENT_SUMMARY = "TREATMENT_SUMMARY"
    PRESCRIPTION_REPORT = "PRESCRIPTION_REPORT"
    LAB_REPORT = "LAB_REPORT"
    SCAN_REPORT = "SCAN_REPORT"
    FOLLOW_UP_REPORT = "FOLLOW_UP_REPORT"
    DISCHARGE_SUMMARY = "DISCHARGE_SUMMARY"


class DocumentType(str, Enum):
    """Types of uploaded documents."""

    MEDICAL_REPORT = "MEDICAL_REPORT"
    PRESCRIPTION = "PRESCRIPTION"
    SCAN_REPORT = "SCAN_REPORT"


# =============================================================================
# Claim Enums
# =============================================================================


class ClaimStatus(str, Enum):
    """Claim lifecycle status.

    State Machine Transitions:
    DRAFT -> SUBMITTED
    SUBMITTED -> UNDER_REVIEW
    UNDER_REVIEW -> APPROVED | REJECTED
    APPROVED -> PAID
    """

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


# =============================================================================
# Payment Enums
# =============================================================================


class PaymentStatus(str, Enum):
    """Payment disbursement status.

    State Machine Transitions:
    PENDING -> PROCESSING | COMPLETED | FAILED | CANCELLED
    PROCESSING -> COMPLETED | FAILED | CANCELLED
    COMPLETED -> REFUNDED
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


# Payments in these states block a new payment for the same claim
ACTIVE_PAYMENT_STATUSES = (
    PaymentStatus.PENDING,
    PaymentStatus.PROCESSING,
    PaymentStatus.COMPLETED,
)
