"""
Document Routes
Medical document upload, listing and download
Source: https://fastapi.tiangolo.com/tutorial/request-files/
"""

import unicodedata
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.db.connection import get_session
from claimportal.schemas.common import PageParams, Pagination, page_params
from claimportal.schemas.document import (
    DocumentListResponse,
    DocumentResponse,
    DocumentUploadResponse,
)
from claimportal.services.documents_service import get_documents_service
from claimportal.services.policy import Principal
from claimportal.services.storage import StorageService, get_storage

router = APIRouter(prefix="/documents", tags=["Documents"])


def attachment_disposition(file_name: str) -> str:
    """
    Content-Disposition for a download (RFC 6266).

    Header values must be latin-1, so the real name goes in `filename*` as
    percent-encoded UTF-8 and `filename` carries an ASCII approximation.

    Example:
        >>> attachment_disposition("检查报告.pdf")
        'attachment; filename="download.pdf"; filename*=UTF-8\'\'%E6%A3%80%E6%9F%A5%E6%8A%A5%E5%91%8A.pdf'
    """
    folded = unicodedata.normalize("NFKD", file_name).encode("ascii", "ignore").decode("ascii")
    fallback = "".join(c for c in folded if c.isprintable() and c not in '"\\').strip()
    stem, dot, suffix = fallback.rpartition(".")
    if not fallback or (dot and not stem.strip()):
        fallback = f"download.{suffix}" if dot and suffix else "download"
    encoded = quote(file_name, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


@router.post("", response_model=DocumentUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_documents(
    appointment_id: UUID = Form(..., description="Accepted or consulted appointment"),
    patient_id: UUID = Form(..., description="Patient of the appointment"),
    files: list[UploadFile] = File(..., description="Documents to upload"),
    types: list[str] = Form(..., description="One document type per file"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
    storage: StorageService = Depends(get_storage),
) -> DocumentUploadResponse:
    """
    Upload documents for an appointment (treating doctor only).

    Example:
        curl -X POST /documents -F appointment_id=... -F patient_id=... \\
            -F files=@xray.png -F types=SCAN_REPORT
    """
    documents = await get_documents_service(session, storage).upload_for_appointment(
        principal, appointment_id, patient_id, files, types
    )
    return DocumentUploadResponse(
        message=f"{len(documents)} document(s) uploaded successfully",
        documents=[DocumentResponse.model_validate(d) for d in documents],
    )


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    appointment_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None, description="Reviewers only"),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
    storage: StorageService = Depends(get_storage),
) -> DocumentListResponse:
    """List documents visible to the caller, newest first."""
    documents, total = await get_documents_service(session, storage).list_documents(
        principal, params, appointment_id=appointment_id, patient_id=patient_id
    )
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(d) for d in documents],
        pagination=Pagination.build(params, total),
    )


@router.get("/{document_id}/view")
async def view_document(
    document_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
    storage: StorageService = Depends(get_storage),
) -> StreamingResponse:
    """Stream the stored file as an attachment."""
    document, data = await get_documents_service(session, storage).open_document(
        principal, document_id
    )
    return StreamingResponse(
        data,
        media_type=document.mime_type,
        headers={
            "Content-Disposition": attachment_disposition(document.original_name),
            "Cache-Control": "private, max-age=3600",
        },
    )
