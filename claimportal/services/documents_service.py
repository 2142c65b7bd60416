"""
Documents Service.

Provides:
- Multipart uploads of appointment documents by doctors
- Presigned direct-to-storage uploads for claim documents
- Document listing and streaming with view checks
"""

import time
from io import BytesIO
from pathlib import PurePath
from uuid import UUID, uuid4

from fastapi import UploadFile
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from claimportal.api.config import settings
from claimportal.core.enums import AppointmentStatus, DocumentType
from claimportal.models.appointment import Appointment
from claimportal.models.claim import Claim
from claimportal.models.document import Document
from claimportal.schemas.common import PageParams
from claimportal.schemas.document import PresignedUploadRequest, RegisterDocumentsRequest
from claimportal.services.policy import (
    Action,
    ListScope,
    Principal,
    Resource,
    ResourceFacts,
    enforce,
    list_scope,
)
from claimportal.services.queries import get_or_404, paginate
from claimportal.services.storage import ObjectNotFoundError, StorageService
from claimportal.utils.errors import NotFoundError, ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

# Appointment statuses that accept uploaded documents
UPLOADABLE_STATUSES = (AppointmentStatus.ACCEPTED, AppointmentStatus.CONSULTED)


def _safe_name(file_name: str) -> str:
    """Basename only, so a client cannot choose the folder."""
    return PurePath(file_name.replace("\\", "/")).name or "file"


def _check_file(name: str, size: int, mime_type: str) -> None:
    if size > settings.upload_max_size_bytes:
        raise ValidationError(
            f"File {name} exceeds the maximum size of {settings.UPLOAD_MAX_SIZE_MB} MB"
        )
    if mime_type not in settings.UPLOAD_ALLOWED_MIME_TYPES:
        raise ValidationError(f"File type {mime_type} is not allowed")


def _parse_types(types: list[str], count: int) -> list[DocumentType]:
    if len(types) != count:
        raise ValidationError("Each file needs a document type")
    try:
        return [DocumentType(t) for t in types]
    except ValueError as err:
        raise ValidationError("Invalid document type") from err


class DocumentsService:
    """Service for document storage and metadata."""

    def __init__(self, session: AsyncSession, storage: StorageService):
        self.session = session
        self.storage = storage

    async def _discard_objects(self, keys: list[str]) -> None:
        """Remove objects stored by a request that did not complete."""
        for key in keys:
            try:
                await self.storage.delete_file(key)
            except Exception as e:
                logger.warning(f"Could not remove orphaned object {key}: {e}")
        if keys:
            logger.info(f"Removed {len(keys)} object(s) from a failed upload")

    # =========================================================================
    # Appointment uploads
    # =========================================================================

    async def upload_for_appointment(
        self,
        principal: Principal,
        appointment_id: UUID,
        patient_id: UUID,
        files: list[UploadFile],
        types: list[str],
    ) -> list[Document]:
        """
        Store files for an accepted or consulted appointment.

        Every file is checked before any is uploaded.

        Raises:
            NotFoundError: Appointment missing, for another patient, or not
                in an uploadable status
            PermissionDeniedError: Caller is not the appointment's doctor
            ValidationError: Bad type list, oversize or disallowed file
        """
        appointment = await self.session.get(Appointment, appointment_id)
        if (
            appointment is None
            or appointment.patient_id != patient_id
            or appointment.status not in UPLOADABLE_STATUSES
        ):
            raise NotFoundError("Appointment not found or not accessible")

        enforce(
            principal,
            Action.UPLOAD,
            Resource.APPOINTMENT,
            ResourceFacts(patient_id=appointment.patient_id, doctor_id=appointment.doctor_id),
        )

        if not files:
            raise ValidationError("No files provided")
        doc_types = _parse_types(types, len(files))

        payloads: list[tuple[UploadFile, bytes, str]] = []
        for upload in files:
            content = await upload.read()
            mime_type = upload.content_type or "application/octet-stream"
            _check_file(upload.filename or "file", len(content), mime_type)
            payloads.append((upload, content, mime_type))

        documents = []
        stored: list[str] = []
        try:
            for (upload, content, mime_type), doc_type in zip(payloads, doc_types):
                original_name = _safe_name(upload.filename or "file")
                key = f"medical-reports/{appointment_id}/{uuid4()}{PurePath(original_name).suffix}"
                url = await self.storage.upload_file(key, BytesIO(content), content_type=mime_type)
                stored.append(key)

                document = Document(
                    type=doc_type,
                    filename=key,
                    original_name=original_name,
                    url=url,
                    size=len(content),
                    mime_type=mime_type,
                    appointment_id=appointment_id,
                    uploaded_by_id=principal.id,
                )
                self.session.add(document)
                documents.append(document)

            await self.session.commit()
        except Exception:
            await self._discard_objects(stored)
            raise
        logger.info(f"Uploaded {len(documents)} document(s) for appointment {appointment_id}")
        return documents

    # =========================================================================
    # Claim uploads (presigned)
    # =========================================================================

    async def _claim_for_upload(self, principal: Principal, claim_id: UUID) -> Claim:
        claim = await get_or_404(self.session, Claim, claim_id, "Claim not found")
        enforce(
            principal,
            Action.UPLOAD,
            Resource.CLAIM,
            ResourceFacts(patient_id=claim.patient_id, doctor_id=claim.doctor_id),
        )
        return claim

    async def presign_upload(
        self, principal: Principal, data: PresignedUploadRequest
    ) -> dict[str, str]:
        """
        Presigned PUT URL for a claim document.

        Without a claim id the object goes under a temporary folder and is
        registered against a claim later.
        """
        if data.claim_id is not None:
            await self._claim_for_upload(principal, data.claim_id)
        if data.file_type not in settings.UPLOAD_ALLOWED_MIME_TYPES:
            raise ValidationError(f"File type {data.file_type} is not allowed")

        folder = str(data.claim_id) if data.claim_id else "temp"
        key = f"claims/{folder}/{int(time.time() * 1000)}-{_safe_name(data.file_name)}"
        upload_url = await self.storage.get_presigned_upload_url(
            key, settings.PRESIGNED_UPLOAD_EXPIRE_SECONDS
        )
        return {
            "upload_url": upload_url,
            "download_url": self.storage.object_url(key),
            "key": key,
        }

    async def register_claim_documents(
        self, principal: Principal, data: RegisterDocumentsRequest
    ) -> list[Document]:
        """Record metadata for objects already uploaded for a claim."""
        claim = await self._claim_for_upload(principal, data.claim_id)

        for item in data.documents:
            _check_file(item.original_name, item.size, item.mime_type)

        documents = [
            Document(
                type=item.type,
                filename=item.key,
                original_name=_safe_name(item.original_name),
                url=item.url,
                size=item.size,
                mime_type=item.mime_type,
                claim_id=claim.id,
                uploaded_by_id=principal.id,
            )
            for item in data.documents
        ]
        self.session.add_all(documents)
        await self.session.commit()

        logger.info(f"Registered {len(documents)} document(s) for claim {claim.claim_number}")
        return documents

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def list_documents(
        self,
        principal: Principal,
        params: PageParams,
        appointment_id: UUID | None = None,
        patient_id: UUID | None = None,
    ) -> tuple[list[Document], int]:
        """
        Documents visible to the principal, newest first.

        Patients and doctors see documents of their own appointments and
        claims; reviewers see everything.
        """
        scope = list_scope(principal, Resource.DOCUMENT)
        query = select(Document)

        if scope is ListScope.ALL:
            if appointment_id is not None:
                query = query.where(Document.appointment_id == appointment_id)
            if patient_id is not None:
                query = query.where(
                    or_(
                        Document.appointment_id.in_(
                            select(Appointment.id).where(Appointment.patient_id == patient_id)
                        ),
                        Document.claim_id.in_(
                            select(Claim.id).where(Claim.patient_id == patient_id)
                        ),
                    )
                )
        else:
            as_patient = scope is ListScope.AS_PATIENT
            appointment_owner = Appointment.patient_id if as_patient else Appointment.doctor_id
            claim_owner = Claim.patient_id if as_patient else Claim.doctor_id

            if appointment_id is not None:
                appointment = await self.session.get(Appointment, appointment_id)
                owner = None
                if appointment is not None:
                    owner = appointment.patient_id if as_patient else appointment.doctor_id
                if owner != principal.id:
                    raise NotFoundError("Appointment not found")
                query = query.where(Document.appointment_id == appointment_id)
            else:
                query = query.where(
                    or_(
                        Document.appointment_id.in_(
                            select(Appointment.id).where(appointment_owner == principal.id)
                        ),
                        Document.claim_id.in_(select(Claim.id).where(claim_owner == principal.id)),
                    )
                )

        return await paginate(self.session, query, params, Document.created_at.desc(), Document.id)

    async def open_document(self, principal: Principal, document_id: UUID) -> tuple[Document, BytesIO]:
        """
        Load a document the principal may view, with its stored bytes.

        Raises:
            NotFoundError: Unknown document or missing stored object
            PermissionDeniedError: Caller may not view the linked record
        """
        document = await get_or_404(
            self.session,
            Document,
            document_id,
            "Document not found",
            options=(selectinload(Document.appointment), selectinload(Document.claim)),
        )

        linked = document.appointment or document.claim
        facts = ResourceFacts()
        if linked is not None:
            facts = ResourceFacts(patient_id=linked.patient_id, doctor_id=linked.doctor_id)
        enforce(principal, Action.VIEW, Resource.DOCUMENT, facts)

        try:
            data = await self.storage.download_file(document.filename)
        except ObjectNotFoundError as err:
            logger.warning(f"Stored object missing for document {document.id}: {document.filename}")
            raise NotFoundError("Document file not found") from err

        return document, data


def get_documents_service(session: AsyncSession, storage: StorageService) -> DocumentsService:
    """Get documents service instance."""
    return DocumentsService(session, storage)
