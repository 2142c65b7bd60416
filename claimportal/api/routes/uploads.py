"""
Upload Routes
Presigned direct-to-storage uploads for claim documents
Source: https://min.io/docs/minio/linux/developers/python/API.html#presigned_put_object
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.db.connection import get_session
from claimportal.schemas.document import (
    DocumentResponse,
    DocumentUploadResponse,
    PresignedUploadRequest,
    PresignedUploadResponse,
    RegisterDocumentsRequest,
)
from claimportal.services.documents_service import get_documents_service
from claimportal.services.policy import Principal
from claimportal.services.storage import StorageService, get_storage

router = APIRouter(prefix="/upload", tags=["Uploads"])


@router.post("", response_model=PresignedUploadResponse)
async def request_upload_url(
    upload_request: PresignedUploadRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
    storage: StorageService = Depends(get_storage),
) -> PresignedUploadResponse:
    """
    Get a presigned PUT URL for a claim document.

    The client uploads the file itself, then registers it with PUT /upload.
    """
    presigned = await get_documents_service(session, storage).presign_upload(
        principal, upload_request
    )
    return PresignedUploadResponse(**presigned)


@router.put("", response_model=DocumentUploadResponse, status_code=status.HTTP_201_CREATED)
async def register_uploads(
    register_request: RegisterDocumentsRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
    storage: StorageService = Depends(get_storage),
) -> DocumentUploadResponse:
    """Record documents already uploaded for a claim."""
    documents = await get_documents_service(session, storage).register_claim_documents(
        principal, register_request
    )
    return DocumentUploadResponse(
        message=f"{len(documents)} document(s) registered successfully",
        documents=[DocumentResponse.model_validate(d) for d in documents],
    )
