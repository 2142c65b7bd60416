"""
Patient Report Routes
Doctor-authored clinical reports
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_principal
from claimportal.core.enums import ReportType
from claimportal.db.connection import get_session
from claimportal.models.patient_report import PatientReport
from claimportal.schemas.common import MessageResponse, PageParams, Pagination, page_params
from claimportal.schemas.patient_report import (
    PatientReportCreate,
    PatientReportListResponse,
    PatientReportResponse,
    PatientReportUpdate,
)
from claimportal.services.patient_reports_service import get_patient_reports_service
from claimportal.services.policy import Principal

router = APIRouter(prefix="/patient-reports", tags=["Patient Reports"])


@router.get("", response_model=PatientReportListResponse)
async def list_reports(
    patient_id: UUID | None = Query(None),
    doctor_id: UUID | None = Query(None),
    appointment_id: UUID | None = Query(None),
    report_type: ReportType | None = Query(None),
    is_active: bool | None = Query(None),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PatientReportListResponse:
    """List reports visible to the caller, newest first."""
    reports, total = await get_patient_reports_service(session).list_reports(
        principal,
        params,
        patient_id=patient_id,
        doctor_id=doctor_id,
        appointment_id=appointment_id,
        report_type=report_type,
        is_active=is_active,
    )
    return PatientReportListResponse(
        reports=[PatientReportResponse.model_validate(r) for r in reports],
        pagination=Pagination.build(params, total),
    )


@router.post("", response_model=PatientReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: PatientReportCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PatientReport:
    """Write a report for a patient (doctors only)."""
    return await get_patient_reports_service(session).create_report(principal, report_data)


@router.get("/{report_id}", response_model=PatientReportResponse)
async def get_report(
    report_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PatientReport:
    return await get_patient_reports_service(session).get_report(principal, report_id)


@router.put("/{report_id}", response_model=PatientReportResponse)
async def update_report(
    report_id: UUID,
    report_data: PatientReportUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> PatientReport:
    """Update a report (creating doctor only)."""
    return await get_patient_reports_service(session).update_report(
        principal, report_id, report_data
    )


@router.delete("/{report_id}", response_model=MessageResponse)
async def delete_report(
    report_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete a report that is not attached to any claim."""
    await get_patient_reports_service(session).delete_report(principal, report_id)
    return MessageResponse(message="Report deleted successfully")
