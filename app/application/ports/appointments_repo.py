from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from datetime import datetime


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


TERMINAL_STATUSES = {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}


@dataclass
class PartyDto:
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    specialty: Optional[str] = None


@dataclass
class AppointmentDto:
    id: str
    patient_id: str
    doctor_id: str
    date: datetime
    status: str
    reason: str
    notes: Optional[str]
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    patient: Optional[PartyDto] = None
    doctor: Optional[PartyDto] = None


@dataclass
class NewAppointment:
    patient_id: str
    doctor_id: str
    date: datetime
    reason: str
    status: str = AppointmentStatus.SCHEDULED.value


@dataclass
class AppointmentQuery:
    patient_id: Optional[str] = None
    doctor_id: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    patient_name: Optional[str] = None
    newest_first: bool = True


class AppointmentsRepository:
    """Store contract for appointments.

    ``create`` and ``save`` raise ``SlotConflictError`` when the write would
    leave two non-cancelled appointments on the same doctor and timestamp.
    ``save`` commits everything staged on the unit of work, ``rollback``
    discards it.
    """

    def find_conflict(self, doctor_id: str, date: datetime, exclude_id: Optional[str] = None) -> Optional[AppointmentDto]:
        ...

    def create(self, record: NewAppointment) -> AppointmentDto:
        ...

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def save(self, record: AppointmentDto) -> AppointmentDto:
        ...

    def rollback(self) -> None:
        ...

    def list(self, query: AppointmentQuery) -> List[AppointmentDto]:
        ...
