from app.application.policies import (
    Caller,
    Role,
    can_book_for,
    can_cancel_appointment,
    can_pay,
    can_update_appointment,
    can_update_report,
    can_view_appointment,
    can_view_doctor_recommendations,
    can_view_duty,
    can_view_payment,
    can_view_report,
    can_write_report,
)
from tests.fakes import NOW, make_payment
from app.application.ports.appointments_repo import AppointmentDto
from app.application.ports.duties_repo import DutyDto
from app.application.ports.reports_repo import ReportDto

PATIENT = Caller("p1", Role.PATIENT)
DOCTOR = Caller("d1", Role.DOCTOR)
ADMIN = Caller("a1", Role.ADMIN)
STRANGER = Caller("p2", Role.PATIENT)
OTHER_DOCTOR = Caller("d2", Role.DOCTOR)

APPT = AppointmentDto(
    id="x", patient_id="p1", doctor_id="d1", date=NOW, status="scheduled", reason="checkup",
    notes=None, is_deleted=False, created_at=NOW, updated_at=NOW,
)


def test_can_book_for():
    assert can_book_for(PATIENT, None)
    assert can_book_for(PATIENT, "p1")
    assert not can_book_for(PATIENT, "p2")
    assert can_book_for(ADMIN, "p1")
    assert not can_book_for(ADMIN, None)
    assert not can_book_for(DOCTOR, "p1")


def test_appointment_access():
    assert can_view_appointment(PATIENT, APPT)
    assert can_view_appointment(DOCTOR, APPT)
    assert can_view_appointment(ADMIN, APPT)
    assert not can_view_appointment(STRANGER, APPT)

    assert can_update_appointment(DOCTOR, APPT)
    assert can_update_appointment(ADMIN, APPT)
    assert not can_update_appointment(PATIENT, APPT)
    assert not can_update_appointment(OTHER_DOCTOR, APPT)

    assert can_cancel_appointment(PATIENT, APPT)
    assert can_cancel_appointment(DOCTOR, APPT)
    assert not can_cancel_appointment(OTHER_DOCTOR, APPT)


def test_payment_access():
    bill = make_payment("p1")
    assert can_view_payment(PATIENT, bill)
    assert can_view_payment(ADMIN, bill)
    assert not can_view_payment(STRANGER, bill)
    assert can_pay(PATIENT, bill)
    assert not can_pay(ADMIN, bill)
    assert not can_pay(STRANGER, bill)


def test_duty_visible_to_its_doctor_and_admins():
    duty = DutyDto(id="d", doctor_id="d1", department="ER", start_date=NOW, end_date=NOW, notes=None,
                   assigned_by="a1", status="active", created_at=NOW, updated_at=NOW)
    assert can_view_duty(DOCTOR, duty)
    assert can_view_duty(ADMIN, duty)
    assert not can_view_duty(OTHER_DOCTOR, duty)


def test_doctor_recommendations_visibility():
    assert can_view_doctor_recommendations(DOCTOR, "d1")
    assert can_view_doctor_recommendations(ADMIN, "d1")
    assert not can_view_doctor_recommendations(OTHER_DOCTOR, "d1")
    assert not can_view_doctor_recommendations(Caller("d1", Role.PATIENT), "d1")


def test_report_rules():
    report = ReportDto(id="r", appointment_id="x", patient_id="p1", doctor_id="d1", diagnosis="Flu",
                       prescriptions=[], notes=None, created_at=NOW, updated_at=NOW)
    assert can_write_report(DOCTOR, APPT)
    assert not can_write_report(OTHER_DOCTOR, APPT)
    assert not can_write_report(ADMIN, APPT)
    assert can_view_report(PATIENT, report) and can_view_report(ADMIN, report)
    assert not can_view_report(STRANGER, report)
    assert can_update_report(DOCTOR, report)
    assert not can_update_report(ADMIN, report)
