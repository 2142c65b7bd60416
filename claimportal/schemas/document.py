"""
Document Schemas
Pydantic models for medical document uploads
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from claimportal.core.enums import DocumentType
from claimportal.schemas.common import Pagination


class DocumentResponse(BaseModel):
    """Stored document metadata"""

    id: UUID
    type: DocumentType
    filename: str
    original_name: str
    url: str
    size: int
    mime_type: str
    appointment_id: UUID | None = None
    claim_id: UUID | None = None
    uploaded_by_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    """Paginated document listing"""

    documents: list[DocumentResponse]
    pagination: Pagination


class DocumentUploadResponse(BaseModel):
    """Result of a multipart upload"""

    message: str
    documents: list[DocumentResponse]


class PresignedUploadRequest(BaseModel):
    """Request for a direct-to-storage upload URL"""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1, max_length=100, description="MIME type")
    claim_id: UUID | None = None


class PresignedUploadResponse(BaseModel):
    """Presigned PUT URL and where the object will live"""

    upload_url: str
    download_url: str
    key: str


class UploadedDocument(BaseModel):
    """Metadata of an object the client already uploaded"""

    key: str = Field(..., min_length=1)
    original_name: str = Field(..., min_length=1, max_length=500)
    url: str
    size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1, max_length=100)
    type: DocumentType = DocumentType.MEDICAL_REPORT


class RegisterDocumentsRequest(BaseModel):
    """Attach previously uploaded objects to a claim"""

    claim_id: UUID
    documents: list[UploadedDocument] = Field(..., min_length=1)
