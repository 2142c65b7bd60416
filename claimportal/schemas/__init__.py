"""
Pydantic Schemas for the Claims Portal.

This module exports all request/response schemas for the API.
"""

from claimportal.schemas.auth import LoginRequest, LoginResponse, RefreshTokenRequest, Token
from claimportal.schemas.common import MessageResponse, PageParams, Pagination, UserSummary
from claimportal.schemas.user import UserCreate, UserListResponse, UserResponse, UserWithClaims
from claimportal.schemas.appointment import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    PatientRecord,
    PatientRosterResponse,
)
from claimportal.schemas.patient_report import (
    PatientReportCreate,
    PatientReportListResponse,
    PatientReportResponse,
    PatientReportUpdate,
)
from claimportal.schemas.claim import (
    ClaimCreate,
    ClaimListResponse,
    ClaimReportResponse,
    ClaimResponse,
    ClaimStatusResponse,
    ClaimStatusUpdate,
    ClaimUpdate,
    ReportAttachmentRequest,
)
from claimportal.schemas.payment import (
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentUpdate,
)
from claimportal.schemas.document import (
    DocumentListResponse,
    DocumentResponse,
    DocumentUploadResponse,
    PresignedUploadRequest,
    PresignedUploadResponse,
    RegisterDocumentsRequest,
)

__all__ = [
    # Auth & users
    "LoginRequest",
    "LoginResponse",
    "RefreshTokenRequest",
    "Token",
    "UserCreate",
    "UserListResponse",
    "UserResponse",
    "UserWithClaims",
    # Common
    "MessageResponse",
    "PageParams",
    "Pagination",
    "UserSummary",
    # Appointments
    "AppointmentCreate",
    "AppointmentDetail",
    "AppointmentListResponse",
    "AppointmentResponse",
    "AppointmentUpdate",
    "PatientRecord",
    "PatientRosterResponse",
    # Reports
    "PatientReportCreate",
    "PatientReportListResponse",
    "PatientReportResponse",
    "PatientReportUpdate",
    # Claims
    "ClaimCreate",
    "ClaimListResponse",
    "ClaimReportResponse",
    "ClaimResponse",
    "ClaimStatusResponse",
    "ClaimStatusUpdate",
    "ClaimUpdate",
    "ReportAttachmentRequest",
    # Payments
    "PaymentCreate",
    "PaymentListResponse",
    "PaymentResponse",
    "PaymentUpdate",
    # Documents
    "DocumentListResponse",
    "DocumentResponse",
    "DocumentUploadResponse",
    "PresignedUploadRequest",
    "PresignedUploadResponse",
    "RegisterDocumentsRequest",
]
