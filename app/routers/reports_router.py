from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from ..application.policies import Caller, Role
from ..application.services.reports_service import ReportFilters, ReportPatch, ReportsService
from ..schemas.reports.report import ReportCreate, ReportResponse, ReportStatsResponse, ReportUpdate
from .deps import get_current_caller, get_reports_service, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Medical Reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    report_data: ReportCreate,
    caller: Caller = Depends(require_role(Role.DOCTOR)),
    reports: ReportsService = Depends(get_reports_service),
):
    report = reports.create_report(
        caller,
        appointment_id=report_data.appointment_id,
        diagnosis=report_data.diagnosis,
        prescriptions=[p.model_dump() for p in report_data.prescriptions],
        notes=report_data.notes,
    )
    return ReportResponse.model_validate(report)


@router.get("/patient", response_model=List[ReportResponse])
def my_reports_as_patient(
    caller: Caller = Depends(require_role(Role.PATIENT)),
    reports: ReportsService = Depends(get_reports_service),
):
    return [ReportResponse.model_validate(r) for r in reports.list_for_patient(caller)]


@router.get("/doctor", response_model=List[ReportResponse])
def my_reports_as_doctor(
    caller: Caller = Depends(require_role(Role.DOCTOR)),
    reports: ReportsService = Depends(get_reports_service),
):
    return [ReportResponse.model_validate(r) for r in reports.list_for_doctor(caller)]


# admin routes are declared before "/{report_id}"
@router.get("/admin/stats", response_model=ReportStatsResponse)
def report_stats(
    caller: Caller = Depends(require_role(Role.ADMIN)),
    reports: ReportsService = Depends(get_reports_service),
):
    return ReportStatsResponse.model_validate(reports.stats(caller))


@router.get("/admin", response_model=List[ReportResponse])
def list_all_reports(
    doctor_id: Optional[str] = Query(None),
    patient_id: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    caller: Caller = Depends(require_role(Role.ADMIN)),
    reports: ReportsService = Depends(get_reports_service),
):
    rows = reports.list_all(
        caller, ReportFilters(doctor_id=doctor_id, patient_id=patient_id, date_from=date_from, date_to=date_to)
    )
    return [ReportResponse.model_validate(r) for r in rows]


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: str,
    caller: Caller = Depends(get_current_caller),
    reports: ReportsService = Depends(get_reports_service),
):
    return ReportResponse.model_validate(reports.get_report(caller, report_id))


@router.put("/{report_id}", response_model=ReportResponse)
def update_report(
    report_id: str,
    patch: ReportUpdate,
    caller: Caller = Depends(require_role(Role.DOCTOR)),
    reports: ReportsService = Depends(get_reports_service),
):
    prescriptions = [p.model_dump() for p in patch.prescriptions] if patch.prescriptions is not None else None
    report = reports.update_report(
        caller, report_id, ReportPatch(diagnosis=patch.diagnosis, prescriptions=prescriptions, notes=patch.notes)
    )
    return ReportResponse.model_validate(report)
