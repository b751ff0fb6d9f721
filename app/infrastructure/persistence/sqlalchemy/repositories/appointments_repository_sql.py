from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import Appointment, User
from .....core.clock import utcnow
from .....application.errors import NotFoundError, SlotConflictError
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    AppointmentQuery,
    AppointmentStatus,
    NewAppointment,
)
from .parties import load_party


SLOT_INDEX = "uq_appointments_doctor_slot"
# SQLite names the columns instead of the index
_SQLITE_SLOT_COLUMNS = "appointments.doctor_id, appointments.date"


def is_slot_violation(error: IntegrityError) -> bool:
    message = str(error.orig)
    return SLOT_INDEX in message or _SQLITE_SLOT_COLUMNS in message


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            date=a.date,
            status=a.status,
            reason=a.reason,
            notes=a.notes,
            is_deleted=a.is_deleted,
            created_at=a.created_at,
            updated_at=a.updated_at,
            patient=load_party(self.session, a.patient_id),
            doctor=load_party(self.session, a.doctor_id, doctor=True),
        )

    def _commit_claim(self, a: Appointment) -> None:
        self.session.add(a)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if is_slot_violation(e):
                raise SlotConflictError() from e
            raise
        self.session.refresh(a)

    def find_conflict(self, doctor_id: str, date: datetime, exclude_id: Optional[str] = None) -> Optional[AppointmentDto]:
        query = (
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.date == date)
            .where(Appointment.status != AppointmentStatus.CANCELLED.value)
        )
        if exclude_id:
            query = query.where(Appointment.id != exclude_id)
        existing = self.session.exec(query).first()
        return self._appt_to_dto(existing) if existing else None

    def create(self, record: NewAppointment) -> AppointmentDto:
        appt = Appointment(
            patient_id=record.patient_id,
            doctor_id=record.doctor_id,
            date=record.date,
            reason=record.reason,
            status=record.status,
        )
        self._commit_claim(appt)
        return self._appt_to_dto(appt)

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self.session.get(Appointment, appointment_id)
        return self._appt_to_dto(a) if a else None

    def save(self, record: AppointmentDto) -> AppointmentDto:
        a = self.session.get(Appointment, record.id)
        if not a:
            raise NotFoundError("Appointment not found")
        a.status = record.status
        a.date = record.date
        a.notes = record.notes
        a.is_deleted = record.is_deleted
        a.updated_at = utcnow()
        self._commit_claim(a)
        return self._appt_to_dto(a)

    def rollback(self) -> None:
        self.session.rollback()

    def list(self, query: AppointmentQuery) -> List[AppointmentDto]:
        stmt = select(Appointment).where(Appointment.is_deleted == False)  # noqa: E712
        if query.patient_id:
            stmt = stmt.where(Appointment.patient_id == query.patient_id)
        if query.doctor_id:
            stmt = stmt.where(Appointment.doctor_id == query.doctor_id)
        if query.status:
            stmt = stmt.where(Appointment.status == query.status)
        if query.date_from:
            stmt = stmt.where(Appointment.date >= query.date_from)
        if query.date_to:
            stmt = stmt.where(Appointment.date <= query.date_to)
        if query.patient_name:
            stmt = stmt.join(User, User.id == Appointment.patient_id).where(User.name.ilike(f"%{query.patient_name}%"))
        stmt = stmt.order_by(Appointment.date.desc() if query.newest_first else Appointment.date.asc())
        rows = self.session.exec(stmt).all()
        return [self._appt_to_dto(r) for r in rows]
