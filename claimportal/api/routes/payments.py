"""
Payment Routes
Bank payments against approved claims
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.core.enums import PaymentStatus
from claimportal.db.connection import get_session
from claimportal.models.payment import Payment
from claimportal.schemas.common import PageParams, Pagination, page_params
from claimportal.schemas.payment import (
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentUpdate,
)
from claimportal.services.payments_service import get_payments_service
from claimportal.services.policy import Principal

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PaymentListResponse:
    """List payments visible to the caller, newest first."""
    payments, total = await get_payments_service(session).list_payments(
        principal, params, status=status_filter
    )
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        pagination=Pagination.build(params, total),
    )


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Payment:
    """Issue a payment for an approved claim (bank users only)."""
    return await get_payments_service(session).create_payment(principal, payment_data)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Payment:
    return await get_payments_service(session).get_payment(principal, payment_id)


@router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment_status(
    payment_id: UUID,
    payment_data: PaymentUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Payment:
    """
    Move a payment along its workflow (bank users only).

    Completing a payment marks its claim PAID in the same transaction.
    """
    return await get_payments_service(session).update_payment_status(
        principal, payment_id, payment_data
    )
