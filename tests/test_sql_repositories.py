from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from app.application.errors import BillingError, SlotConflictError
from app.application.policies import Caller, Role
from app.application.ports.appointments_repo import AppointmentQuery, NewAppointment
from app.application.ports.duties_repo import DutyQuery, NewDuty
from app.application.ports.payments_repo import NewPayment, PaymentQuery
from app.application.ports.recommendations_repo import NewRecommendation, RecommendationQuery
from app.application.ports.reports_repo import NewReport, Prescription, ReportQuery
from app.application.services import billing_service
from app.application.services.appointments_service import AppointmentPatch, AppointmentsService
from app.application.services.billing_service import BillingService
from app.core.clock import utcnow
from app.db.models import Appointment, Payment
from app.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from app.infrastructure.persistence.sqlalchemy.repositories.duties_repository_sql import SqlDutiesRepository
from app.infrastructure.persistence.sqlalchemy.repositories.payments_repository_sql import SqlPaymentsRepository
from app.infrastructure.persistence.sqlalchemy.repositories.recommendations_repository_sql import SqlRecommendationsRepository
from app.infrastructure.persistence.sqlalchemy.repositories.reports_repository_sql import SqlReportsRepository
from app.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

SLOT = datetime(2025, 6, 1, 10, 0)


@pytest.fixture
def repos(session):
    users = SqlUserRepository(session)
    patient = users.create(name="Pat Smith", email="pat@example.com", role="patient", password_hash="x")
    doctor = users.create(name="Dr. Who", email="who@example.com", role="doctor", password_hash="x",
                          specialty="Cardiology")
    return (
        users,
        SqlAppointmentsRepository(session),
        SqlPaymentsRepository(session),
        patient,
        doctor,
    )


def new_appt(patient, doctor, date=SLOT):
    return NewAppointment(patient_id=patient.id, doctor_id=doctor.id, date=date, reason="checkup")


def test_create_projects_parties(repos):
    _, appts, _, patient, doctor = repos
    appt = appts.create(new_appt(patient, doctor))
    assert appt.status == "scheduled"
    assert appt.patient.name == "Pat Smith"
    assert appt.doctor.specialty == "Cardiology"
    assert appts.find_conflict(doctor.id, SLOT).id == appt.id
    assert appts.find_conflict(doctor.id, SLOT, exclude_id=appt.id) is None


def test_unique_slot_index_rejects_double_booking(repos):
    _, appts, _, patient, doctor = repos
    appts.create(new_appt(patient, doctor))
    with pytest.raises(SlotConflictError):
        appts.create(new_appt(patient, doctor))
    assert len(appts.list(AppointmentQuery(doctor_id=doctor.id))) == 1


def test_cancelled_slot_can_be_reused(repos):
    _, appts, _, patient, doctor = repos
    first = appts.create(new_appt(patient, doctor))
    first.status = "cancelled"
    first.is_deleted = True
    appts.save(first)

    second = appts.create(new_appt(patient, doctor))
    assert second.id != first.id
    assert [a.id for a in appts.list(AppointmentQuery())] == [second.id]


def test_list_filters_and_order(repos):
    _, appts, _, patient, doctor = repos
    early = appts.create(new_appt(patient, doctor, datetime(2025, 6, 1, 9, 0)))
    late = appts.create(new_appt(patient, doctor, datetime(2025, 6, 2, 9, 0)))

    assert [a.id for a in appts.list(AppointmentQuery(newest_first=False))] == [early.id, late.id]
    assert [a.id for a in appts.list(AppointmentQuery(patient_name="smith"))] == [late.id, early.id]
    assert appts.list(AppointmentQuery(patient_name="nobody")) == []
    window = AppointmentQuery(date_from=datetime(2025, 6, 2), date_to=datetime(2025, 6, 2, 23, 59))
    assert [a.id for a in appts.list(window)] == [late.id]


def test_staged_invoice_commits_with_appointment(repos):
    _, appts, payments, patient, doctor = repos
    appt = appts.create(new_appt(patient, doctor))
    payments.stage(NewPayment(patient_id=patient.id, appointment_id=appt.id, amount=100.0, currency="USD",
                              invoice_number="INV-00000001", payment_method="stripe"))
    appt.status = "completed"
    appts.save(appt)

    invoice = payments.get_by_appointment(appt.id)
    assert invoice.status == "pending"
    assert invoice.patient_name == "Pat Smith"
    assert invoice.appointment_date == SLOT
    assert appts.get_by_id(appt.id).status == "completed"


def test_rollback_discards_staged_invoice(repos):
    _, appts, payments, patient, doctor = repos
    appt = appts.create(new_appt(patient, doctor))
    payments.stage(NewPayment(patient_id=patient.id, appointment_id=appt.id, amount=100.0, currency="USD",
                              invoice_number="INV-00000002", payment_method="stripe"))
    appts.rollback()

    assert payments.get_by_appointment(appt.id) is None
    assert payments.list(PaymentQuery()) == []
    assert appts.get_by_id(appt.id).status == "scheduled"


def test_payment_stats(repos):
    _, appts, payments, patient, doctor = repos
    appt = appts.create(new_appt(patient, doctor))
    payments.stage(NewPayment(patient_id=patient.id, appointment_id=appt.id, amount=150.0, currency="USD",
                              invoice_number="INV-00000003", payment_method="stripe"))
    appts.save(appt)
    bill = payments.get_by_appointment(appt.id)
    bill.status = "paid"
    bill.paid_at = datetime(2025, 6, 1, 12, 0)
    payments.save(bill)

    stats = payments.stats()
    assert stats.total_revenue == 150.0
    assert stats.by_status == [{"status": "paid", "count": 1, "total": 150.0}]
    assert stats.top_patients == [{"patient_name": "Pat Smith", "total_spent": 150.0, "visits": 1}]


def test_user_soft_delete_and_listing(repos):
    users, _, _, patient, doctor = repos
    users.set_deleted(doctor.id, True)
    assert users.list(role="doctor") == []
    assert [u.id for u in users.list(role="doctor", include_deleted=True)] == [doctor.id]
    assert users.exists_with_role("patient")
    assert not users.exists_with_role("admin")


def test_other_integrity_errors_are_not_slot_conflicts(repos):
    _, appts, _, patient, doctor = repos
    record = new_appt(patient, doctor)
    record.reason = None
    with pytest.raises(IntegrityError):
        appts.create(record)

    # the session was rolled back and stays usable
    assert appts.create(new_appt(patient, doctor)).status == "scheduled"


def test_billing_failure_rolls_back_completion(repos, monkeypatch):
    users, appts, payments, patient, doctor = repos
    monkeypatch.setattr(billing_service, "generate_invoice_number", lambda prefix: f"{prefix}SAME0000")
    svc = AppointmentsService(
        repo=appts,
        user_repo=users,
        billing=BillingService(repo=payments, amount=100.0, currency="USD"),
    )
    admin = Caller("admin-1", Role.ADMIN)
    first = appts.create(new_appt(patient, doctor))
    second = appts.create(new_appt(patient, doctor, datetime(2025, 6, 1, 11, 0)))

    svc.update_appointment(admin, first.id, AppointmentPatch(status="completed"))
    with pytest.raises(BillingError):
        svc.update_appointment(admin, second.id, AppointmentPatch(status="completed", notes="seen"))

    assert appts.get_by_id(first.id).status == "completed"
    reloaded = appts.get_by_id(second.id)
    assert reloaded.status == "scheduled"
    assert reloaded.notes is None
    assert payments.get_by_appointment(second.id) is None
    assert [p.appointment_id for p in payments.list(PaymentQuery())] == [first.id]


def test_duty_overlap_and_stats(repos, session):
    users, _, _, _, doctor = repos
    admin = users.create(name="Root", email="root@example.com", role="admin", password_hash="x")
    duties = SqlDutiesRepository(session)
    night = duties.create(NewDuty(doctor_id=doctor.id, department="ER", start_date=datetime(2025, 6, 1, 20, 0),
                                  end_date=datetime(2025, 6, 2, 6, 0), assigned_by=admin.id))
    duties.create(NewDuty(doctor_id=doctor.id, department="ER", start_date=datetime(2025, 6, 3, 8, 0),
                          end_date=datetime(2025, 6, 3, 16, 0), assigned_by=admin.id))
    ward = duties.create(NewDuty(doctor_id=doctor.id, department="Ward", start_date=datetime(2025, 6, 4, 8, 0),
                                 end_date=datetime(2025, 6, 4, 16, 0), assigned_by=admin.id))
    ward.status = "cancelled"
    duties.save(ward)

    # the night shift started the day before but still covers June 2nd
    june_2 = (datetime(2025, 6, 2), datetime(2025, 6, 2, 23, 59))
    found = duties.list(DutyQuery(doctor_id=doctor.id, overlaps=june_2))
    assert [d.id for d in found] == [night.id]
    assert found[0].doctor.name == "Dr. Who"
    assert found[0].assigned_by_name == "Root"

    stats = duties.stats()
    assert stats.total_active == 2
    assert stats.by_department == [{"department": "ER", "count": 2}]
    assert stats.top_doctors == [{"doctor_name": "Dr. Who", "count": 2}]
    assert sorted(s["status"] for s in stats.by_status) == ["active", "cancelled"]


def test_recommendation_active_window(repos, session):
    users, _, _, _, doctor = repos
    admin = users.create(name="Root", email="root@example.com", role="admin", password_hash="x")
    recs = SqlRecommendationsRepository(session)
    now = datetime(2025, 5, 1, 9, 0)

    def add(valid_from, valid_to=None, badge="⭐ Top Performer"):
        return recs.create(NewRecommendation(doctor_id=doctor.id, reason="Kind", badge=badge,
                                             recommended_by=admin.id, valid_from=valid_from, valid_to=valid_to))

    open_ended = add(datetime(2025, 4, 1))
    bounded = add(datetime(2025, 4, 10), datetime(2025, 6, 1), badge="🌟 Patient Favorite")
    add(datetime(2025, 1, 1), datetime(2025, 2, 1))
    add(datetime(2025, 7, 1))
    flagged = add(datetime(2025, 4, 20))
    flagged.is_expired = True
    recs.save(flagged)

    active = recs.list(RecommendationQuery(active_at=now))
    assert [r.id for r in active] == [bounded.id, open_ended.id]
    assert active[0].recommended_by_name == "Root"
    assert [r.id for r in recs.list(RecommendationQuery(active_at=now, limit=1))] == [bounded.id]

    stats = recs.stats(now)
    assert stats.total_active == 2
    assert stats.most_recommended_doctors == [{"doctor_name": "Dr. Who", "count": 4}]


def test_report_prescriptions_round_trip_and_stats(repos, session):
    _, appts, _, patient, doctor = repos
    appt = appts.create(new_appt(patient, doctor))
    reports = SqlReportsRepository(session)
    amox = Prescription(medicine="Amoxicillin", dosage="500mg", frequency="3x daily", duration="7 days")
    report = reports.create(NewReport(appointment_id=appt.id, patient_id=patient.id, doctor_id=doctor.id,
                                      diagnosis="Infection", prescriptions=[amox]))
    assert report.prescriptions == [amox]
    assert report.appointment_date == SLOT
    assert report.patient.name == "Pat Smith"

    ibu = Prescription(medicine="Ibuprofen", dosage="200mg", frequency="2x daily", duration="3 days")
    report.prescriptions = [amox, ibu]
    reports.save(report)
    session.expire_all()
    assert reports.get_by_id(report.id).prescriptions == [amox, ibu]

    reports.create(NewReport(appointment_id=appt.id, patient_id=patient.id, doctor_id=doctor.id,
                             diagnosis="Follow-up", prescriptions=[amox]))
    assert len(reports.list(ReportQuery(patient_id=patient.id))) == 2
    assert reports.list(ReportQuery(doctor_id=patient.id)) == []

    stats = reports.stats()
    assert stats.total_reports == 2
    assert stats.by_doctor == [{"doctor_name": "Dr. Who", "count": 2}]
    assert stats.top_medicines == [{"medicine": "Amoxicillin", "count": 2}, {"medicine": "Ibuprofen", "count": 1}]
    assert sum(m["count"] for m in stats.by_month) == 2


def test_timestamps_are_stored_naive_utc(repos):
    _, appts, _, patient, doctor = repos
    appt = appts.create(new_appt(patient, doctor))
    assert appt.created_at.tzinfo is None
    assert appt.date == SLOT
    assert utcnow().tzinfo is None
    for column in (Appointment.__table__.c.date, Appointment.__table__.c.created_at, Payment.__table__.c.paid_at):
        assert column.type.timezone is False
