"""
Payments Service.

Bank payments against approved claims. Completing a payment marks its claim
PAID; both updates are committed together or not at all.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from claimportal.core.enums import ACTIVE_PAYMENT_STATUSES, ClaimStatus, PaymentStatus
from claimportal.models.claim import Claim
from claimportal.models.payment import Payment
from claimportal.schemas.common import PageParams
from claimportal.schemas.payment import PaymentCreate, PaymentUpdate
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
from claimportal.services.state_machines import claim_machine, payment_machine
from claimportal.utils.errors import ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_LOAD = (
    selectinload(Payment.claim).selectinload(Claim.patient),
    selectinload(Payment.processor),
)

# Claim statuses that accept a payment
PAYABLE_CLAIM_STATUSES = (ClaimStatus.APPROVED, ClaimStatus.PAID)


def payment_facts(payment: Payment) -> ResourceFacts:
    return ResourceFacts(patient_id=payment.claim.patient_id, status=payment.status)


class PaymentsService:
    """Service for payment operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(self, payment_id: UUID, refresh: bool = False) -> Payment:
        return await get_or_404(
            self.session, Payment, payment_id, "Payment not found", options=PAYMENT_LOAD, refresh=refresh
        )

    async def list_payments(
        self,
        principal: Principal,
        params: PageParams,
        status: PaymentStatus | None = None,
    ) -> tuple[list[Payment], int]:
        """List payments visible to the principal, newest first."""
        scope = list_scope(principal, Resource.PAYMENT)

        query = select(Payment).options(*PAYMENT_LOAD)
        if scope is ListScope.AS_PATIENT:
            own_claims = select(Claim.id).where(Claim.patient_id == principal.id)
            query = query.where(Payment.claim_id.in_(own_claims))

        if status is not None:
            query = query.where(Payment.status == status)

        return await paginate(self.session, query, params, Payment.created_at.desc(), Payment.id)

    async def get_payment(self, principal: Principal, payment_id: UUID) -> Payment:
        payment = await self._load(payment_id)
        enforce(principal, Action.VIEW, Resource.PAYMENT, payment_facts(payment))
        return payment

    async def create_payment(self, principal: Principal, data: PaymentCreate) -> Payment:
        """
        Issue a payment for an approved (or already paid) claim.

        The payment starts in PROCESSING, stamped with the bank user.

        Raises:
            ValidationError: Claim not payable, or an active payment exists
        """
        enforce(principal, Action.CREATE, Resource.PAYMENT)

        claim = await get_or_404(self.session, Claim, data.claim_id, "Claim not found")
        if claim.status not in PAYABLE_CLAIM_STATUSES:
            raise ValidationError("Can only create payments for approved or paid claims")

        existing = await self.session.execute(
            select(Payment.id).where(
                Payment.claim_id == claim.id,
                Payment.status.in_(ACTIVE_PAYMENT_STATUSES),
            )
        )
        if existing.first() is not None:
            raise ValidationError("Payment already exists for this claim")

        payment = Payment(
            claim_id=claim.id,
            amount=data.amount,
            status=PaymentStatus.PROCESSING,
            payment_method=data.payment_method,
            transaction_id=data.transaction_id,
            notes=data.notes,
            processed_by=principal.id,
            processed_at=datetime.now(UTC),
        )
        self.session.add(payment)
        await self.session.commit()

        logger.info(f"Payment {payment.id} of {payment.amount} created for claim {claim.claim_number}")
        return await self._load(payment.id, refresh=True)

    async def update_payment_status(
        self, principal: Principal, payment_id: UUID, data: PaymentUpdate
    ) -> Payment:
        """
        Move a payment along its state machine.

        Reaching COMPLETED stamps the payment date and marks the claim PAID
        in the same transaction. A claim that is already PAID is left as is.

        Raises:
            ValidationError: Unknown status or invalid transition
        """
        payment = await self._load(payment_id)
        enforce(principal, Action.TRANSITION, Resource.PAYMENT, payment_facts(payment))

        try:
            target = PaymentStatus(data.status)
        except ValueError as err:
            raise ValidationError("Invalid payment status") from err

        try:
            payment_machine.apply(payment, target)
            if data.transaction_id is not None:
                payment.transaction_id = data.transaction_id
            if data.notes is not None:
                payment.notes = data.notes
            if target is PaymentStatus.FAILED and data.failure_reason is not None:
                payment.failure_reason = data.failure_reason

            if target is PaymentStatus.COMPLETED:
                claim = payment.claim
                if claim.status is not ClaimStatus.PAID:
                    claim_machine.apply(claim, ClaimStatus.PAID, now=payment.payment_date)

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Payment {payment.id} moved to {target.value}")
        return await self._load(payment.id, refresh=True)


def get_payments_service(session: AsyncSession) -> PaymentsService:
    """Get payments service instance."""
    return PaymentsService(session)
