from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from ..application.policies import Caller, Role
from ..application.services.duties_service import DutiesService, DutyFilters, DutyPatch
from ..schemas.common.common import MessageResponse
from ..schemas.duties.duty import DutyCreate, DutyResponse, DutyStatsResponse, DutyUpdate
from .deps import get_current_caller, get_duties_service, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/duties", tags=["Duties"])


@router.post("", response_model=DutyResponse, status_code=status.HTTP_201_CREATED)
def assign_duty(
    duty_data: DutyCreate,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    duties: DutiesService = Depends(get_duties_service),
):
    duty = duties.assign_duty(
        caller,
        doctor_id=duty_data.doctor_id,
        department=duty_data.department,
        start_date=duty_data.start_date,
        end_date=duty_data.end_date,
        notes=duty_data.notes,
    )
    return DutyResponse.model_validate(duty)


@router.get("/doctor", response_model=List[DutyResponse])
def my_duties(
    range: str = Query("upcoming", pattern="^(today|week|upcoming|all)$"),
    caller: Caller = Depends(require_role(Role.DOCTOR)),
    duties: DutiesService = Depends(get_duties_service),
):
    return [DutyResponse.model_validate(d) for d in duties.list_doctor_duties(caller, range)]


# admin routes are declared before "/{duty_id}"
@router.get("/admin/stats", response_model=DutyStatsResponse)
def duty_stats(
    caller: Caller = Depends(require_role(Role.ADMIN)),
    duties: DutiesService = Depends(get_duties_service),
):
    return DutyStatsResponse.model_validate(duties.stats(caller))


@router.get("/admin", response_model=List[DutyResponse])
def list_all_duties(
    department: Optional[str] = Query(None, max_length=100),
    status: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    doctor_id: Optional[str] = Query(None),
    caller: Caller = Depends(require_role(Role.ADMIN)),
    duties: DutiesService = Depends(get_duties_service),
):
    rows = duties.list_all(
        caller,
        DutyFilters(department=department, status=status, date_from=date_from, date_to=date_to, doctor_id=doctor_id),
    )
    return [DutyResponse.model_validate(d) for d in rows]


@router.get("/{duty_id}", response_model=DutyResponse)
def get_duty(
    duty_id: str,
    caller: Caller = Depends(get_current_caller),
    duties: DutiesService = Depends(get_duties_service),
):
    return DutyResponse.model_validate(duties.get_duty(caller, duty_id))


@router.put("/{duty_id}", response_model=DutyResponse)
def update_duty(
    duty_id: str,
    patch: DutyUpdate,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    duties: DutiesService = Depends(get_duties_service),
):
    duty = duties.update_duty(
        caller,
        duty_id,
        DutyPatch(department=patch.department, start_date=patch.start_date, end_date=patch.end_date,
                  notes=patch.notes, status=patch.status),
    )
    return DutyResponse.model_validate(duty)


@router.delete("/{duty_id}", response_model=MessageResponse)
def cancel_duty(
    duty_id: str,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    duties: DutiesService = Depends(get_duties_service),
):
    duties.cancel_duty(caller, duty_id)
    return MessageResponse(message="Duty cancelled successfully")
