"""Initial claims portal schema.

Revision ID: 20260101_001
Revises:
Create Date: 2026-01-01
"""

import sqlalchemy as sa
from alembic import op

revision = "20260101_001"
down_revision = None
branch_labels = None
depends_on = None

# Enum types store member names, matching sqlalchemy.Enum on the models
user_role = sa.Enum("PATIENT", "DOCTOR", "INSURANCE", "BANK", name="userrole")
appointment_status = sa.Enum(
    "PENDING", "ACCEPTED", "REJECTED", "CANCELLED", "CONSULTED", "COMPLETED",
    name="appointmentstatus",
)
report_type = sa.Enum(
    "DIAGNOSIS_REPORT",
    "TREATMENT_SUMMARY",
    "PRESCRIPTION_REPORT",
    "LAB_REPORT",
    "SCAN_REPORT",
    "FOLLOW_UP_REPORT",
    "DISCHARGE_SUMMARY",
    name="reporttype",
)
claim_status = sa.Enum(
    "DRAFT", "SUBMITTED", "UNDER_REVIEW", "APPROVED", "REJECTED", "PAID", name="claimstatus"
)
payment_status = sa.Enum(
    "PENDING", "PROCESSING", "COMPLETED", "FAILED", "CANCELLED", "REFUNDED",
    name="paymentstatus",
)
document_type = sa.Enum("MEDICAL_REPORT", "PRESCRIPTION", "SCAN_REPORT", name="documenttype")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def _user_fk(name: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name, sa.Uuid(), sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable
    )


def upgrade() -> None:
    """Create users, appointments, reports, claims, attachments, documents and payments."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.Text()),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("last_login", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("patient_id"),
        _user_fk("doctor_id"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", appointment_status, nullable=False),
        sa.Column("notes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    op.create_index(
        "ix_appointments_doctor_scheduled", "appointments", ["doctor_id", "scheduled_at"]
    )
    op.create_index(
        "ix_appointments_patient_scheduled", "appointments", ["patient_id", "scheduled_at"]
    )

    op.create_table(
        "patient_reports",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("patient_id"),
        _user_fk("doctor_id"),
        sa.Column(
            "appointment_id",
            sa.Uuid(),
            sa.ForeignKey("appointments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("report_type", report_type, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("diagnosis", sa.Text()),
        sa.Column("treatment", sa.Text()),
        sa.Column("medications", sa.Text()),
        sa.Column("recommendations", sa.Text()),
        sa.Column("follow_up_date", sa.DateTime(timezone=True)),
        sa.Column("document_url", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_patient_reports_patient_id", "patient_reports", ["patient_id"])
    op.create_index("ix_patient_reports_doctor_id", "patient_reports", ["doctor_id"])
    op.create_index("ix_patient_reports_appointment_id", "patient_reports", ["appointment_id"])

    op.create_table(
        "claims",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("claim_number", sa.String(32), nullable=False),
        _user_fk("patient_id"),
        _user_fk("doctor_id", nullable=True, ondelete="SET NULL"),
        sa.Column("diagnosis", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("treatment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("claim_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("approved_amount", sa.Numeric(12, 2)),
        sa.Column("status", claim_status, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("rejected_at", sa.DateTime(timezone=True)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("rejection_reason", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_claims_claim_number", "claims", ["claim_number"], unique=True)
    op.create_index("ix_claims_patient_id", "claims", ["patient_id"])
    op.create_index("ix_claims_doctor_id", "claims", ["doctor_id"])
    op.create_index("ix_claims_status", "claims", ["status"])
    op.create_index("ix_claims_patient_status", "claims", ["patient_id", "status"])
    op.create_index("ix_claims_status_created", "claims", ["status", "created_at"])

    op.create_table(
        "claim_reports",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "claim_id", sa.Uuid(), sa.ForeignKey("claims.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "report_id",
            sa.Uuid(),
            sa.ForeignKey("patient_reports.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("attached_by"),
        sa.Column(
            "attached_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("claim_id", "report_id", name="uq_claim_reports_pair"),
    )
    op.create_index("ix_claim_reports_claim_id", "claim_reports", ["claim_id"])
    op.create_index("ix_claim_reports_report_id", "claim_reports", ["report_id"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("type", document_type, nullable=False),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("original_name", sa.String(500), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column(
            "appointment_id",
            sa.Uuid(),
            sa.ForeignKey("appointments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "claim_id", sa.Uuid(), sa.ForeignKey("claims.id", ondelete="CASCADE"), nullable=True
        ),
        _user_fk("uploaded_by_id"),
        *_timestamps(),
    )
    op.create_index("ix_documents_appointment_id", "documents", ["appointment_id"])
    op.create_index("ix_documents_claim_id", "documents", ["claim_id"])
    op.create_index("ix_documents_uploaded_by_id", "documents", ["uploaded_by_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "claim_id", sa.Uuid(), sa.ForeignKey("claims.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("transaction_id", sa.String(255)),
        sa.Column("notes", sa.Text()),
        sa.Column("failure_reason", sa.Text()),
        _user_fk("processed_by", nullable=True, ondelete="SET NULL"),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.Column("payment_date", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_payments_claim_id", "payments", ["claim_id"])
    op.create_index("ix_payments_status", "payments", ["status"])


def downgrade() -> None:
    """Drop all portal tables and enum types."""
    for table in (
        "payments",
        "documents",
        "claim_reports",
        "claims",
        "patient_reports",
        "appointments",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        document_type,
        payment_status,
        claim_status,
        report_type,
        appointment_status,
        user_role,
    ):
        enum.drop(bind, checkfirst=True)
