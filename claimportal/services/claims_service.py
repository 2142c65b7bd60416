"""
Claims Service.

Provides:
- Claim CRUD for patients, doctors, insurers and banks
- Status transitions through the claim state machine
- Attaching and detaching patient reports
- Claim number generation
"""

import secrets
import string
import time
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from claimportal.core.enums import ClaimStatus
from claimportal.models.claim import Claim, ClaimReport
from claimportal.models.patient_report import PatientReport
from claimportal.schemas.claim import ClaimCreate, ClaimStatusUpdate, ClaimUpdate
from claimportal.schemas.common import PageParams
from claimportal.services.policy import (
    Action,
    ListScope,
    Principal,
    Resource,
    ResourceFacts,
    claim_status_action,
    editable_claim_fields,
    enforce,
    list_scope,
)
from claimportal.services.queries import get_or_404, paginate
from claimportal.services.state_machines import claim_machine
from claimportal.services.users_service import UsersService
from claimportal.utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

CLAIM_LOAD = (
    selectinload(Claim.patient),
    selectinload(Claim.doctor),
    selectinload(Claim.documents),
    selectinload(Claim.payments),
    selectinload(Claim.attached_reports).selectinload(ClaimReport.report),
)

# Columns that may not be cleared through an update
REQUIRED_CLAIM_FIELDS = ("diagnosis", "treatment_date", "claim_amount")

CLAIM_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


# =============================================================================
# Claim Numbers
# =============================================================================


def generate_claim_number(now_ms: int | None = None) -> str:
    """
    Generate a claim number.

    Format: CLM-{last 6 digits of epoch millis}-{6 random A-Z0-9}
    Example: CLM-482913-Q7K2ZD
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(CLAIM_NUMBER_ALPHABET) for _ in range(6))
    return f"CLM-{str(now_ms)[-6:].zfill(6)}-{suffix}"


def claim_facts(claim: Claim, target_status: ClaimStatus | None = None) -> ResourceFacts:
    return ResourceFacts(
        patient_id=claim.patient_id,
        doctor_id=claim.doctor_id,
        status=claim.status,
        target_status=target_status,
    )


class ClaimsService:
    """
    Service for claims management operations.

    Handles:
    - Claim CRUD with role scoping
    - Status transitions and their per-edge side effects
    - Report attachments
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(self, claim_id: UUID, refresh: bool = False) -> Claim:
        return await get_or_404(
            self.session, Claim, claim_id, "Claim not found", options=CLAIM_LOAD, refresh=refresh
        )

    async def _unique_claim_number(self, attempts: int = 5) -> str:
        for _ in range(attempts):
            number = generate_claim_number()
            existing = await self.session.execute(
                select(Claim.id).where(Claim.claim_number == number)
            )
            if existing.scalar_one_or_none() is None:
                return number
        raise RuntimeError("Could not generate a unique claim number")

    async def _check_doctor(self, doctor_id: UUID | None) -> None:
        if doctor_id is not None and await UsersService(self.session).get_doctor(doctor_id) is None:
            raise ValidationError("Invalid doctor selected")

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def list_claims(
        self,
        principal: Principal,
        params: PageParams,
        status: ClaimStatus | None = None,
        include_drafts: bool = False,
    ) -> tuple[list[Claim], int]:
        """
        List claims visible to the principal, newest first.

        Reviewers do not see drafts unless they filter by status or ask for
        them explicitly.
        """
        scope = list_scope(principal, Resource.CLAIM)

        query = select(Claim).options(*CLAIM_LOAD)
        if scope is ListScope.AS_PATIENT:
            query = query.where(Claim.patient_id == principal.id)
        elif scope is ListScope.AS_DOCTOR:
            query = query.where(Claim.doctor_id == principal.id)
        elif status is None and not include_drafts:
            query = query.where(Claim.status != ClaimStatus.DRAFT)

        if status is not None:
            query = query.where(Claim.status == status)

        return await paginate(self.session, query, params, Claim.created_at.desc(), Claim.id)

    async def get_claim(self, principal: Principal, claim_id: UUID) -> Claim:
        claim = await self._load(claim_id)
        enforce(principal, Action.VIEW, Resource.CLAIM, claim_facts(claim))
        return claim

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create_claim(self, principal: Principal, data: ClaimCreate) -> Claim:
        """
        File a new claim as the calling patient.

        Claims always start in DRAFT with a generated claim number.
        """
        enforce(principal, Action.CREATE, Resource.CLAIM)
        await self._check_doctor(data.doctor_id)

        claim = Claim(
            claim_number=await self._unique_claim_number(),
            patient_id=principal.id,
            doctor_id=data.doctor_id,
            diagnosis=data.diagnosis,
            description=data.description,
            treatment_date=data.treatment_date,
            claim_amount=data.claim_amount,
            status=ClaimStatus.DRAFT,
        )
        self.session.add(claim)
        await self.session.commit()

        logger.info(f"Created claim {claim.claim_number} for patient {principal.id}")
        return await self._load(claim.id, refresh=True)

    def _transition(
        self,
        principal: Principal,
        claim: Claim,
        target: ClaimStatus,
        action: Action,
        approved_amount: Decimal | None = None,
        rejection_reason: str | None = None,
    ) -> None:
        enforce(principal, action, Resource.CLAIM, claim_facts(claim, target_status=target))
        claim_machine.apply(claim, target)

        if target is ClaimStatus.APPROVED and approved_amount is not None:
            claim.approved_amount = approved_amount
        elif target is ClaimStatus.REJECTED and rejection_reason is not None:
            claim.rejection_reason = rejection_reason

    async def update_claim(self, principal: Principal, claim_id: UUID, data: ClaimUpdate) -> Claim:
        """
        General update.

        Descriptive fields are limited per role. A `status` different from the
        current one is routed through the policy and the claim machine; the
        same status is ignored.
        """
        claim = await self._load(claim_id)
        enforce(principal, Action.UPDATE, Resource.CLAIM, claim_facts(claim))

        fields: dict[str, Any] = data.model_dump(exclude_unset=True)
        target = fields.pop("status", None)
        approved_amount = fields.pop("approved_amount", None)
        rejection_reason = fields.pop("rejection_reason", None)

        forbidden = set(fields) - editable_claim_fields(principal.role)
        if forbidden:
            raise PermissionDeniedError(
                f"Not allowed to update claim fields: {', '.join(sorted(forbidden))}"
            )
        for name in REQUIRED_CLAIM_FIELDS:
            if name in fields and fields[name] is None:
                raise ValidationError(f"{name} cannot be empty")
        if "doctor_id" in fields:
            await self._check_doctor(fields["doctor_id"])

        for name, value in fields.items():
            setattr(claim, name, value)

        if target is not None and target != claim.status:
            self._transition(
                principal,
                claim,
                target,
                claim_status_action(principal),
                approved_amount=approved_amount,
                rejection_reason=rejection_reason,
            )

        await self.session.commit()
        return await self._load(claim.id, refresh=True)

    async def change_status(
        self, principal: Principal, claim_id: UUID, data: ClaimStatusUpdate
    ) -> Claim:
        """Reviewer status transition (insurance and bank)."""
        claim = await self._load(claim_id)
        self._transition(
            principal,
            claim,
            data.status,
            Action.TRANSITION,
            approved_amount=data.approved_amount,
            rejection_reason=data.rejection_reason,
        )

        await self.session.commit()
        return await self._load(claim.id, refresh=True)

    async def delete_claim(self, principal: Principal, claim_id: UUID) -> None:
        """Delete a draft claim owned by the calling patient."""
        claim = await self._load(claim_id)
        enforce(principal, Action.DELETE, Resource.CLAIM, claim_facts(claim))

        await self.session.delete(claim)
        await self.session.commit()
        logger.info(f"Deleted claim {claim.claim_number}")

    # =========================================================================
    # Report Attachments
    # =========================================================================

    async def attach_report(
        self, principal: Principal, claim_id: UUID, report_id: UUID | None
    ) -> ClaimReport:
        """
        Attach one of the patient's reports to their claim.

        Raises:
            ValidationError: Missing report id or duplicate attachment
            NotFoundError: Unknown claim or report
            PermissionDeniedError: Caller does not own both
        """
        if report_id is None:
            raise ValidationError("Report ID is required")

        claim = await get_or_404(self.session, Claim, claim_id, "Claim not found")
        report = await get_or_404(self.session, PatientReport, report_id, "Report not found")

        facts = ResourceFacts(
            patient_id=claim.patient_id,
            doctor_id=claim.doctor_id,
            status=claim.status,
            report_patient_id=report.patient_id,
        )
        enforce(principal, Action.ATTACH_REPORT, Resource.CLAIM, facts)

        if await self._find_link(claim_id, report_id) is not None:
            raise ValidationError("Report is already attached to this claim")

        link = ClaimReport(claim_id=claim_id, report_id=report_id, attached_by=principal.id)
        self.session.add(link)
        try:
            await self.session.commit()
        except IntegrityError as err:
            await self.session.rollback()
            raise ValidationError("Report is already attached to this claim") from err

        logger.info(f"Report {report_id} attached to claim {claim.claim_number}")
        return await get_or_404(
            self.session,
            ClaimReport,
            link.id,
            "Attachment not found",
            options=(selectinload(ClaimReport.report),),
            refresh=True,
        )

    async def detach_report(
        self, principal: Principal, claim_id: UUID, report_id: UUID | None
    ) -> None:
        """Remove a report attachment from the calling patient's claim."""
        if report_id is None:
            raise ValidationError("Report ID is required")

        claim = await get_or_404(self.session, Claim, claim_id, "Claim not found")
        enforce(principal, Action.DETACH_REPORT, Resource.CLAIM, claim_facts(claim))

        link = await self._find_link(claim_id, report_id)
        if link is None:
            raise NotFoundError("Report is not attached to this claim")

        await self.session.delete(link)
        await self.session.commit()
        logger.info(f"Report {report_id} detached from claim {claim.claim_number}")

    async def _find_link(self, claim_id: UUID, report_id: UUID) -> ClaimReport | None:
        result = await self.session.execute(
            select(ClaimReport).where(
                ClaimReport.claim_id == claim_id,
                ClaimReport.report_id == report_id,
            )
        )
        return result.scalar_one_or_none()


def get_claims_service(session: AsyncSession) -> ClaimsService:
    """Get claims service instance."""
    return ClaimsService(session)
