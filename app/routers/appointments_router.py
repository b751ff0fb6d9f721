from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from ..application.policies import Caller
from ..application.services.appointments_service import AppointmentsService, AppointmentFilters, AppointmentPatch
from ..schemas.appointments.appointment import AppointmentCreate, AppointmentUpdate, AppointmentResponse
from ..schemas.common.common import MessageResponse
from .deps import get_current_caller, get_appointments_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    appointment_data: AppointmentCreate,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.create_appointment(
        caller,
        patient_id=appointment_data.patient_id,
        doctor_id=appointment_data.doctor_id,
        date=appointment_data.date,
        reason=appointment_data.reason,
    )
    return AppointmentResponse.model_validate(appt)


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    range: str = Query("today", pattern="^(today|week|all)$", description="Doctors only: today, week or all"),
    status: Optional[str] = Query(None, description="Admins only: filter by status"),
    patient_name: Optional[str] = Query(None, max_length=100, description="Admins only: patient name contains"),
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appts = appt_service.list_appointments(
        caller, AppointmentFilters(range=range, status=status, patient_name=patient_name)
    )
    return [AppointmentResponse.model_validate(a) for a in appts]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentResponse.model_validate(appt_service.get_appointment(caller, appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    patch: AppointmentUpdate,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.update_appointment(
        caller, appointment_id, AppointmentPatch(status=patch.status, date=patch.date, notes=patch.notes)
    )
    return AppointmentResponse.model_validate(appt)


@router.delete("/{appointment_id}", response_model=MessageResponse)
def cancel_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt_service.cancel_appointment(caller, appointment_id)
    return MessageResponse(message="Appointment cancelled successfully")
