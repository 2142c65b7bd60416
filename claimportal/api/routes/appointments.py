"""
Appointment Routes
Booking, review and rescheduling of patient/doctor appointments
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.core.enums import AppointmentStatus
from claimportal.db.connection import get_session
from claimportal.models.appointment import Appointment
from claimportal.schemas.appointment import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
)
from claimportal.schemas.common import MessageResponse, PageParams, Pagination, page_params
from claimportal.services.appointments_service import get_appointments_service
from claimportal.services.policy import Principal

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    doctor_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> AppointmentListResponse:
    """List appointments visible to the caller, latest schedule first."""
    appointments, total = await get_appointments_service(session).list_appointments(
        principal, params, status=status_filter, doctor_id=doctor_id, patient_id=patient_id
    )
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        pagination=Pagination.build(params, total),
    )


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Appointment:
    """Book an appointment with a doctor (patients only)."""
    return await get_appointments_service(session).create_appointment(principal, appointment_data)


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> AppointmentDetail:
    """Appointment with its reports and uploaded documents."""
    return await get_appointments_service(session).get_appointment(principal, appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: UUID,
    appointment_data: AppointmentUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> Appointment:
    """Change status, notes or schedule."""
    return await get_appointments_service(session).update_appointment(
        principal, appointment_id, appointment_data
    )


@router.delete("/{appointment_id}", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Cancel a pending appointment (owning patient only)."""
    await get_appointments_service(session).delete_appointment(principal, appointment_id)
    return MessageResponse(message="Appointment deleted successfully")
