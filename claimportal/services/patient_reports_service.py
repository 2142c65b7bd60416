"""
Patient Reports Service.

Doctor-authored clinical reports. Writing a report for an accepted or
consulted appointment completes that appointment in the same commit.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from claimportal.core.enums import AppointmentStatus, ReportType
from claimportal.models.appointment import Appointment
from claimportal.models.claim import ClaimReport
from claimportal.models.patient_report import PatientReport
from claimportal.schemas.common import PageParams
from claimportal.schemas.patient_report import PatientReportCreate, PatientReportUpdate
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
from claimportal.services.state_machines import appointment_machine
from claimportal.services.users_service import UsersService
from claimportal.utils.errors import ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

REPORT_LOAD = (
    selectinload(PatientReport.patient),
    selectinload(PatientReport.doctor),
    selectinload(PatientReport.claim_links).selectinload(ClaimReport.claim),
)

# Columns that may not be cleared through an update
REQUIRED_REPORT_FIELDS = ("report_type", "title", "description", "is_active")


def report_facts(report: PatientReport) -> ResourceFacts:
    return ResourceFacts(patient_id=report.patient_id, doctor_id=report.doctor_id)


class PatientReportsService:
    """Service for patient report operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(self, report_id: UUID, refresh: bool = False) -> PatientReport:
        return await get_or_404(
            self.session,
            PatientReport,
            report_id,
            "Report not found",
            options=REPORT_LOAD,
            refresh=refresh,
        )

    async def list_reports(
        self,
        principal: Principal,
        params: PageParams,
        patient_id: UUID | None = None,
        doctor_id: UUID | None = None,
        appointment_id: UUID | None = None,
        report_type: ReportType | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[PatientReport], int]:
        """List reports visible to the principal, newest first."""
        scope = list_scope(principal, Resource.PATIENT_REPORT)

        query = select(PatientReport).options(*REPORT_LOAD)
        if scope is ListScope.AS_PATIENT:
            query = query.where(PatientReport.patient_id == principal.id)
        elif scope is ListScope.AS_DOCTOR:
            query = query.where(PatientReport.doctor_id == principal.id)

        if patient_id is not None:
            query = query.where(PatientReport.patient_id == patient_id)
        if doctor_id is not None:
            query = query.where(PatientReport.doctor_id == doctor_id)
        if appointment_id is not None:
            query = query.where(PatientReport.appointment_id == appointment_id)
        if report_type is not None:
            query = query.where(PatientReport.report_type == report_type)
        if is_active is not None:
            query = query.where(PatientReport.is_active.is_(is_active))

        return await paginate(
            self.session, query, params, PatientReport.created_at.desc(), PatientReport.id
        )

    async def get_report(self, principal: Principal, report_id: UUID) -> PatientReport:
        report = await self._load(report_id)
        enforce(principal, Action.VIEW, Resource.PATIENT_REPORT, report_facts(report))
        return report

    async def create_report(
        self, principal: Principal, data: PatientReportCreate
    ) -> PatientReport:
        """
        Write a report as the calling doctor.

        With an appointment, the appointment must be the caller's and belong
        to the same patient. An ACCEPTED or CONSULTED appointment moves to
        COMPLETED; other statuses are left as they are.
        """
        enforce(principal, Action.CREATE, Resource.PATIENT_REPORT)

        if await UsersService(self.session).get_patient(data.patient_id) is None:
            raise ValidationError("Invalid patient selected")

        appointment: Appointment | None = None
        if data.appointment_id is not None:
            appointment = await get_or_404(
                self.session, Appointment, data.appointment_id, "Appointment not found"
            )
            enforce(
                principal,
                Action.CREATE,
                Resource.PATIENT_REPORT,
                ResourceFacts(patient_id=appointment.patient_id, doctor_id=appointment.doctor_id),
            )
            if appointment.patient_id != data.patient_id:
                raise ValidationError("Appointment does not belong to this patient")

        report = PatientReport(doctor_id=principal.id, is_active=True, **data.model_dump())
        self.session.add(report)

        if appointment is not None:
            if appointment_machine.can_transition(
                appointment.status, AppointmentStatus.COMPLETED, automatic=True
            ):
                appointment_machine.apply(appointment, AppointmentStatus.COMPLETED, automatic=True)
            else:
                logger.warning(
                    f"Report written for appointment {appointment.id} in status "
                    f"{appointment.status.value}; appointment left unchanged"
                )

        await self.session.commit()
        logger.info(f"Report {report.id} created by doctor {principal.id}")
        return await self._load(report.id, refresh=True)

    async def update_report(
        self, principal: Principal, report_id: UUID, data: PatientReportUpdate
    ) -> PatientReport:
        """Partial update by the creating doctor."""
        report = await self._load(report_id)
        enforce(principal, Action.UPDATE, Resource.PATIENT_REPORT, report_facts(report))

        fields: dict[str, Any] = data.model_dump(exclude_unset=True)
        for name in REQUIRED_REPORT_FIELDS:
            if name in fields and fields[name] is None:
                raise ValidationError(f"{name} cannot be empty")

        for name, value in fields.items():
            setattr(report, name, value)

        await self.session.commit()
        return await self._load(report.id, refresh=True)

    async def delete_report(self, principal: Principal, report_id: UUID) -> None:
        """
        Delete a report created by the calling doctor.

        Raises:
            ValidationError: While the report is attached to any claim
        """
        report = await self._load(report_id)
        enforce(principal, Action.DELETE, Resource.PATIENT_REPORT, report_facts(report))

        if report.claim_links:
            raise ValidationError(
                "Cannot delete report that is attached to claims. Detach from claims first."
            )

        await self.session.delete(report)
        await self.session.commit()
        logger.info(f"Report {report_id} deleted by doctor {principal.id}")


def get_patient_reports_service(session: AsyncSession) -> PatientReportsService:
    """Get patient reports service instance."""
    return PatientReportsService(session)
