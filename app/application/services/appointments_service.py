import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from ..errors import (
    InvalidDateError,
    InvalidPartyError,
    InvalidStatusError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    SlotConflictError,
    BillingError,
)
from ..events import AppointmentCompleted
from ..policies import (
    Caller,
    Role,
    can_book_for,
    can_cancel_appointment,
    can_update_appointment,
    can_view_appointment,
)
from ..ports.appointments_repo import (
    AppointmentDto,
    AppointmentQuery,
    AppointmentStatus,
    AppointmentsRepository,
    NewAppointment,
    TERMINAL_STATUSES,
)
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import UserRepository
from ..timestamps import day_window, parse_timestamp, week_window
from ...core.clock import utcnow
from .billing_service import BillingService

logger = logging.getLogger(__name__)

LIST_RANGES = ("today", "week", "all")


@dataclass
class AppointmentPatch:
    status: Optional[str] = None
    date: Optional[Union[str, datetime]] = None
    notes: Optional[str] = None


@dataclass
class AppointmentFilters:
    range: str = "today"
    status: Optional[str] = None
    patient_name: Optional[str] = None


def parse_status(value: str) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Invalid status. Must be one of: {[s.value for s in AppointmentStatus]}")


@dataclass
class AppointmentsService:
    """Scheduling engine: booking, status transitions and cancellation."""
    repo: AppointmentsRepository
    user_repo: UserRepository
    billing: BillingService
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = utcnow

    def create_appointment(self, caller: Caller, patient_id: Optional[str], doctor_id: str, date: Union[str, datetime], reason: str) -> AppointmentDto:
        if not can_book_for(caller, patient_id):
            raise NotAuthorizedError("Not authorized to book this appointment")
        if patient_id is None:
            patient_id = caller.id

        appointment_date = parse_timestamp(date)
        if appointment_date <= self.clock():
            raise InvalidDateError()

        patient = self.user_repo.get_by_id(patient_id)
        if not patient or patient.role != Role.PATIENT.value or patient.is_deleted:
            raise InvalidPartyError("Invalid patient")
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.role != Role.DOCTOR.value or doctor.is_deleted:
            raise InvalidPartyError("Invalid doctor")

        if self.repo.find_conflict(doctor_id, appointment_date):
            raise SlotConflictError()

        appt = self.repo.create(
            NewAppointment(patient_id=patient_id, doctor_id=doctor_id, date=appointment_date, reason=reason.strip())
        )
        logger.info(f"Appointment {appt.id} booked with doctor {doctor_id} at {appointment_date.isoformat()}")
        self._audit("APPOINTMENT_CREATED", caller, appt.id, {"doctor_id": doctor_id, "patient_id": patient_id})
        return appt

    def get_appointment(self, caller: Caller, appointment_id: str) -> AppointmentDto:
        appt = self._get_active(appointment_id)
        if not can_view_appointment(caller, appt):
            raise NotAuthorizedError()
        return appt

    def update_appointment(self, caller: Caller, appointment_id: str, patch: AppointmentPatch) -> AppointmentDto:
        appt = self._get_active(appointment_id)
        if not can_update_appointment(caller, appt):
            raise NotAuthorizedError()

        completing = False
        if patch.status is not None:
            new_status = parse_status(patch.status)
            current = AppointmentStatus(appt.status)
            if new_status != current and current in TERMINAL_STATUSES and not caller.is_admin:
                raise InvalidTransitionError(f"Appointment is already {current.value}")
            completing = new_status == AppointmentStatus.COMPLETED and current != AppointmentStatus.COMPLETED
            appt.status = new_status.value

        if patch.date is not None:
            new_date = parse_timestamp(patch.date)
            if new_date != appt.date and self.repo.find_conflict(appt.doctor_id, new_date, exclude_id=appt.id):
                raise SlotConflictError()
            appt.date = new_date

        if patch.notes is not None:
            appt.notes = patch.notes

        try:
            if completing:
                self.billing.on_appointment_completed(
                    AppointmentCompleted(appointment_id=appt.id, patient_id=appt.patient_id, occurred_at=self.clock())
                )
            saved = self.repo.save(appt)
        except BillingError:
            self.repo.rollback()
            logger.error(f"Completion of appointment {appointment_id} aborted: invoice creation failed")
            self._audit("APPOINTMENT_UPDATE_FAILED", caller, appointment_id, {"reason": "billing"}, success=False)
            raise

        logger.info(f"Appointment {appointment_id} updated by {caller.role.value} {caller.id}")
        self._audit("APPOINTMENT_UPDATED", caller, appointment_id, {"status": saved.status, "completed": completing})
        return saved

    def cancel_appointment(self, caller: Caller, appointment_id: str) -> None:
        appt = self._get_active(appointment_id)
        if not can_cancel_appointment(caller, appt):
            raise NotAuthorizedError()
        appt.status = AppointmentStatus.CANCELLED.value
        appt.is_deleted = True
        self.repo.save(appt)
        logger.info(f"Appointment {appointment_id} cancelled by {caller.role.value} {caller.id}")
        self._audit("APPOINTMENT_CANCELLED", caller, appointment_id)

    def list_appointments(self, caller: Caller, filters: Optional[AppointmentFilters] = None) -> List[AppointmentDto]:
        filters = filters or AppointmentFilters()
        if caller.role == Role.PATIENT:
            return self.repo.list(AppointmentQuery(patient_id=caller.id, newest_first=True))
        if caller.role == Role.DOCTOR:
            date_from, date_to = self._range_window(filters.range)
            return self.repo.list(
                AppointmentQuery(doctor_id=caller.id, date_from=date_from, date_to=date_to, newest_first=False)
            )
        status = parse_status(filters.status).value if filters.status else None
        return self.repo.list(
            AppointmentQuery(status=status, patient_name=filters.patient_name or None, newest_first=True)
        )

    def _range_window(self, range_name: str):
        if range_name not in LIST_RANGES:
            raise InvalidDateError(f"Invalid range. Must be one of: {list(LIST_RANGES)}")
        if range_name == "all":
            return None, None
        if range_name == "week":
            return week_window(self.clock())
        return day_window(self.clock())

    def _get_active(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt or appt.is_deleted:
            raise NotFoundError("Appointment not found")
        return appt

    def _audit(self, action: str, caller: Caller, resource_id: str, details: Optional[dict] = None, success: bool = True) -> None:
        if self.audit:
            self.audit.log(action, actor_id=caller.id, actor_role=caller.role.value, resource_id=resource_id, success=success, details=details)
