"""
Patient Roster Routes
A doctor's patients with their consulted and completed visits
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.db.connection import get_session
from claimportal.schemas.appointment import PatientRecord, PatientRosterResponse
from claimportal.schemas.common import PageParams, Pagination, page_params
from claimportal.services.appointments_service import get_appointments_service
from claimportal.services.policy import Principal

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("", response_model=PatientRosterResponse)
async def list_patients(
    search: str | None = Query(None, description="Patient name substring"),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PatientRosterResponse:
    """Patients the calling doctor has seen (doctors only)."""
    patients, total = await get_appointments_service(session).list_patients(
        principal, params, search=search
    )
    return PatientRosterResponse(patients=patients, pagination=Pagination.build(params, total))


@router.get("/{patient_id}", response_model=PatientRecord)
async def get_patient(
    patient_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PatientRecord:
    """One patient's visits with the calling doctor and the doctor's findings."""
    return await get_appointments_service(session).get_patient(principal, patient_id)
