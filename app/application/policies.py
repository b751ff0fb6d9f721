from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .ports.appointments_repo import AppointmentDto
from .ports.duties_repo import DutyDto
from .ports.payments_repo import PaymentDto
from .ports.recommendations_repo import RecommendationDto
from .ports.reports_repo import ReportDto


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# Authorization predicates. They only answer yes/no; services decide which
# error to raise.

def can_book_for(caller: Caller, patient_id: Optional[str]) -> bool:
    if caller.role == Role.ADMIN:
        return patient_id is not None
    if caller.role == Role.PATIENT:
        return patient_id is None or patient_id == caller.id
    return False


def is_party(caller: Caller, appt: AppointmentDto) -> bool:
    return caller.id in (appt.patient_id, appt.doctor_id)


def can_view_appointment(caller: Caller, appt: AppointmentDto) -> bool:
    return caller.is_admin or is_party(caller, appt)


def can_update_appointment(caller: Caller, appt: AppointmentDto) -> bool:
    return caller.is_admin or (caller.role == Role.DOCTOR and appt.doctor_id == caller.id)


def can_cancel_appointment(caller: Caller, appt: AppointmentDto) -> bool:
    return caller.is_admin or is_party(caller, appt)


def can_view_payment(caller: Caller, payment: PaymentDto) -> bool:
    return caller.is_admin or payment.patient_id == caller.id


def can_pay(caller: Caller, payment: PaymentDto) -> bool:
    return caller.role == Role.PATIENT and payment.patient_id == caller.id


def can_view_duty(caller: Caller, duty: DutyDto) -> bool:
    return caller.is_admin or duty.doctor_id == caller.id


def can_view_doctor_recommendations(caller: Caller, doctor_id: str) -> bool:
    return caller.is_admin or (caller.role == Role.DOCTOR and caller.id == doctor_id)


def can_view_recommendation(caller: Caller, recommendation: RecommendationDto) -> bool:
    return caller.is_admin or recommendation.doctor_id == caller.id


def can_write_report(caller: Caller, appt: AppointmentDto) -> bool:
    return caller.role == Role.DOCTOR and appt.doctor_id == caller.id


def can_view_report(caller: Caller, report: ReportDto) -> bool:
    return caller.is_admin or caller.id in (report.patient_id, report.doctor_id)


def can_update_report(caller: Caller, report: ReportDto) -> bool:
    return caller.role == Role.DOCTOR and report.doctor_id == caller.id
