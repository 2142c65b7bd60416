"""
Appointments Service.

Provides:
- Booking, listing, updating and deleting appointments
- Status changes through the appointment state machine
- The doctor's roster of patients they have seen
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from claimportal.core.enums import AppointmentStatus
from claimportal.models.appointment import Appointment
from claimportal.models.patient_report import PatientReport
from claimportal.models.user import User
from claimportal.schemas.appointment import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentUpdate,
    PatientRecord,
    RosterAppointment,
)
from claimportal.schemas.common import PageParams
from claimportal.schemas.patient_report import PatientReportSummary
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
from claimportal.utils.errors import NotFoundError, ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

APPOINTMENT_LOAD = (
    selectinload(Appointment.patient),
    selectinload(Appointment.doctor),
)
APPOINTMENT_DETAIL_LOAD = APPOINTMENT_LOAD + (
    selectinload(Appointment.reports),
    selectinload(Appointment.documents),
)

# Visits that put a patient on the doctor's roster
SEEN_STATUSES = (AppointmentStatus.CONSULTED, AppointmentStatus.COMPLETED)


def appointment_facts(
    appointment: Appointment, target_status: AppointmentStatus | None = None
) -> ResourceFacts:
    return ResourceFacts(
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        status=appointment.status,
        target_status=target_status,
    )


def _require_future(scheduled_at: datetime) -> None:
    if scheduled_at <= datetime.now(UTC):
        raise ValidationError("Appointment must be scheduled in the future")


class AppointmentsService:
    """Service for appointment operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(
        self, appointment_id: UUID, detail: bool = False, refresh: bool = False
    ) -> Appointment:
        return await get_or_404(
            self.session,
            Appointment,
            appointment_id,
            "Appointment not found",
            options=APPOINTMENT_DETAIL_LOAD if detail else APPOINTMENT_LOAD,
            refresh=refresh,
        )

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def list_appointments(
        self,
        principal: Principal,
        params: PageParams,
        status: AppointmentStatus | None = None,
        doctor_id: UUID | None = None,
        patient_id: UUID | None = None,
    ) -> tuple[list[Appointment], int]:
        """List appointments visible to the principal, newest schedule first."""
        scope = list_scope(principal, Resource.APPOINTMENT)

        query = select(Appointment).options(*APPOINTMENT_LOAD)
        if scope is ListScope.AS_PATIENT:
            query = query.where(Appointment.patient_id == principal.id)
        elif scope is ListScope.AS_DOCTOR:
            query = query.where(Appointment.doctor_id == principal.id)

        if status is not None:
            query = query.where(Appointment.status == status)
        if doctor_id is not None:
            query = query.where(Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.where(Appointment.patient_id == patient_id)

        return await paginate(
            self.session, query, params, Appointment.scheduled_at.desc(), Appointment.id
        )

    async def _visible_reports(self, principal: Principal, patient_id: UUID) -> list[PatientReport]:
        """All of a patient's reports the principal may read, newest first."""
        query = select(PatientReport).where(PatientReport.patient_id == patient_id)
        scope = list_scope(principal, Resource.PATIENT_REPORT)
        if scope is ListScope.AS_PATIENT:
            query = query.where(PatientReport.patient_id == principal.id)
        elif scope is ListScope.AS_DOCTOR:
            query = query.where(PatientReport.doctor_id == principal.id)

        result = await self.session.execute(
            query.order_by(PatientReport.created_at.desc(), PatientReport.id)
        )
        return list(result.scalars())

    async def get_appointment(self, principal: Principal, appointment_id: UUID) -> AppointmentDetail:
        """
        Appointment with its documents and the patient's report history.

        Reports are not limited to this visit: every report on the patient
        that the caller can read is included.
        """
        appointment = await self._load(appointment_id, detail=True)
        enforce(principal, Action.VIEW, Resource.APPOINTMENT, appointment_facts(appointment))

        reports = await self._visible_reports(principal, appointment.patient_id)
        return AppointmentDetail.model_validate(appointment).model_copy(
            update={"reports": [PatientReportSummary.model_validate(r) for r in reports]}
        )

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create_appointment(
        self, principal: Principal, data: AppointmentCreate
    ) -> Appointment:
        """
        Book an appointment as the calling patient.

        Raises:
            PermissionDeniedError: Caller is not a patient
            ValidationError: Unknown doctor or a past date
        """
        enforce(principal, Action.CREATE, Resource.APPOINTMENT)

        doctor = await UsersService(self.session).get_doctor(data.doctor_id)
        if doctor is None:
            raise ValidationError("Invalid doctor selected")
        _require_future(data.scheduled_at)

        appointment = Appointment(
            patient_id=principal.id,
            doctor_id=doctor.id,
            scheduled_at=data.scheduled_at,
            status=AppointmentStatus.PENDING,
            notes=data.notes,
        )
        self.session.add(appointment)
        await self.session.commit()

        logger.info(f"Appointment {appointment.id} booked by {principal.id} with {doctor.id}")
        return await self._load(appointment.id, refresh=True)

    async def update_appointment(
        self, principal: Principal, appointment_id: UUID, data: AppointmentUpdate
    ) -> Appointment:
        """
        Change status, notes and/or schedule.

        A status equal to the current one is ignored. Rescheduling is limited
        to the two parties and must stay in the future.
        """
        appointment = await self._load(appointment_id)
        fields = data.model_dump(exclude_unset=True)

        target = fields.get("status")
        if target == appointment.status:
            target = None
        new_time = fields.get("scheduled_at")

        facts = appointment_facts(appointment, target_status=target)
        enforce(principal, Action.UPDATE, Resource.APPOINTMENT, facts)
        if new_time is not None:
            enforce(principal, Action.RESCHEDULE, Resource.APPOINTMENT, facts)
        if target is not None:
            enforce(principal, Action.TRANSITION, Resource.APPOINTMENT, facts)

        if new_time is not None:
            _require_future(new_time)
            appointment.scheduled_at = new_time
        if target is not None:
            appointment_machine.apply(appointment, target)
        if "notes" in fields:
            appointment.notes = fields["notes"]

        await self.session.commit()
        return await self._load(appointment.id, refresh=True)

    async def delete_appointment(self, principal: Principal, appointment_id: UUID) -> None:
        """Delete a pending appointment owned by the calling patient."""
        appointment = await self._load(appointment_id, detail=True)
        enforce(principal, Action.DELETE, Resource.APPOINTMENT, appointment_facts(appointment))

        await self.session.delete(appointment)
        await self.session.commit()
        logger.info(f"Appointment {appointment_id} deleted by {principal.id}")

    # =========================================================================
    # Patient Roster
    # =========================================================================

    async def _seen_appointments(
        self, doctor_id: UUID, patient_ids: list[UUID]
    ) -> dict[UUID, list[Appointment]]:
        result = await self.session.execute(
            select(Appointment)
            .where(
                Appointment.doctor_id == doctor_id,
                Appointment.patient_id.in_(patient_ids),
                Appointment.status.in_(SEEN_STATUSES),
            )
            .options(selectinload(Appointment.reports))
            .order_by(Appointment.scheduled_at.desc())
        )
        grouped: dict[UUID, list[Appointment]] = {pid: [] for pid in patient_ids}
        for appointment in result.scalars():
            grouped[appointment.patient_id].append(appointment)
        return grouped

    @staticmethod
    def _roster_entry(doctor_id: UUID, appointment: Appointment) -> RosterAppointment:
        reports = [r for r in appointment.reports if r.doctor_id == doctor_id]
        latest = reports[0] if reports else None  # reports are ordered newest first
        return RosterAppointment(
            id=appointment.id,
            scheduled_at=appointment.scheduled_at,
            status=appointment.status,
            notes=appointment.notes,
            diagnosis=latest.diagnosis if latest else None,
            medications=latest.medications if latest else None,
            follow_up_date=latest.follow_up_date if latest else None,
            reports=[PatientReportSummary.model_validate(r) for r in reports],
        )

    def _patient_record(
        self, doctor_id: UUID, patient: User, appointments: list[Appointment]
    ) -> PatientRecord:
        return PatientRecord(
            id=patient.id,
            name=patient.name,
            email=patient.email,
            phone=patient.phone,
            address=patient.address,
            appointments=[self._roster_entry(doctor_id, a) for a in appointments],
        )

    async def list_patients(
        self, principal: Principal, params: PageParams, search: str | None = None
    ) -> tuple[list[PatientRecord], int]:
        """Patients with a consulted or completed visit with the calling doctor."""
        enforce(principal, Action.VIEW, Resource.PATIENT_ROSTER)

        seen = select(Appointment.patient_id).where(
            Appointment.doctor_id == principal.id,
            Appointment.status.in_(SEEN_STATUSES),
        )
        query = select(User).where(User.id.in_(seen))
        if search:
            query = query.where(User.name.ilike(f"%{search.strip()}%"))

        patients, total = await paginate(self.session, query, params, User.name.asc(), User.id)
        if not patients:
            return [], total

        grouped = await self._seen_appointments(principal.id, [p.id for p in patients])
        records = [self._patient_record(principal.id, p, grouped[p.id]) for p in patients]
        return records, total

    async def get_patient(self, principal: Principal, patient_id: UUID) -> PatientRecord:
        """One roster patient with their visits."""
        enforce(principal, Action.VIEW, Resource.PATIENT_ROSTER)

        grouped = await self._seen_appointments(principal.id, [patient_id])
        patient = await self.session.get(User, patient_id)
        if patient is None or not grouped[patient_id]:
            raise NotFoundError("Patient not found")

        return self._patient_record(principal.id, patient, grouped[patient_id])


def get_appointments_service(session: AsyncSession) -> AppointmentsService:
    """Get appointments service instance."""
    return AppointmentsService(session)
