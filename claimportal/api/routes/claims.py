"""
Claim Routes
Insurance claim filing, review and report attachments
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.core.enums import ClaimStatus
from claimportal.db.connection import get_session
from claimportal.models.claim import Claim
from claimportal.schemas.claim import (
    AttachedReport,
    ClaimCreate,
    ClaimListResponse,
    ClaimReportResponse,
    ClaimResponse,
    ClaimStatusResponse,
    ClaimStatusUpdate,
    ClaimUpdate,
    ReportAttachmentRequest,
)
from claimportal.schemas.common import MessageResponse, PageParams, Pagination, page_params
from claimportal.services.claims_service import get_claims_service
from claimportal.services.policy import Principal

router = APIRouter(prefix="/claims", tags=["Claims"])


@router.get("", response_model=ClaimListResponse)
async def list_claims(
    status_filter: ClaimStatus | None = Query(None, alias="status"),
    include_drafts: bool = Query(False, description="Reviewers: include DRAFT claims"),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> ClaimListResponse:
    """
    List claims visible to the caller, newest first.

    Example:
        GET /claims?status=SUBMITTED&page=2&limit=10
    """
    claims, total = await get_claims_service(session).list_claims(
        principal, params, status=status_filter, include_drafts=include_drafts
    )
    return ClaimListResponse(
        claims=[ClaimResponse.model_validate(c) for c in claims],
        pagination=Pagination.build(params, total),
    )


@router.post("", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def create_claim(
    claim_data: ClaimCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Claim:
    """File a new claim in DRAFT (patients only)."""
    return await get_claims_service(session).create_claim(principal, claim_data)


@router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Claim:
    """Get a claim with documents, payments and attached reports."""
    return await get_claims_service(session).get_claim(principal, claim_id)


@router.put("/{claim_id}", response_model=ClaimResponse)
async def update_claim(
    claim_id: UUID,
    claim_data: ClaimUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Claim:
    """Update claim fields allowed for the caller's role, optionally with a status."""
    return await get_claims_service(session).update_claim(principal, claim_id, claim_data)


@router.patch("/{claim_id}", response_model=ClaimStatusResponse)
async def change_claim_status(
    claim_id: UUID,
    status_data: ClaimStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> ClaimStatusResponse:
    """Move a claim along its review workflow (insurance and bank users)."""
    claim = await get_claims_service(session).change_status(principal, claim_id, status_data)
    return ClaimStatusResponse(
        message=f"Claim status updated to {claim.status.value}",
        claim=ClaimResponse.model_validate(claim),
    )


@router.delete("/{claim_id}", response_model=MessageResponse)
async def delete_claim(
    claim_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete a draft claim (owning patient only)."""
    await get_claims_service(session).delete_claim(principal, claim_id)
    return MessageResponse(message="Claim deleted successfully")


@router.post(
    "/{claim_id}/attach-report",
    response_model=ClaimReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def attach_report(
    claim_id: UUID,
    attachment: ReportAttachmentRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> ClaimReportResponse:
    """Attach one of the patient's reports to their claim."""
    link = await get_claims_service(session).attach_report(
        principal, claim_id, attachment.report_id
    )
    return ClaimReportResponse(
        message="Report attached to claim successfully",
        attachment=AttachedReport.model_validate(link),
    )


@router.post("/{claim_id}/detach-report", response_model=MessageResponse)
async def detach_report(
    claim_id: UUID,
    attachment: ReportAttachmentRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Remove a report attachment from the patient's claim."""
    await get_claims_service(session).detach_report(principal, claim_id, attachment.report_id)
    return MessageResponse(message="Report detached from claim successfully")
