import pytest

from app.application.errors import InvalidPartyError, InvalidReportError, NotAuthorizedError, NotFoundError
from app.application.policies import Caller, Role
from app.application.ports.appointments_repo import NewAppointment
from app.application.ports.reports_repo import Prescription
from app.application.services.reports_service import ReportFilters, ReportPatch, ReportsService, parse_prescriptions
from tests.fakes import NOW, FakeApptRepo, FakeReportsRepo, FakeUnitOfWork, FakeUserRepo, RecordingAudit

RX = {"medicine": "Amoxicillin", "dosage": "500mg", "frequency": "3x daily", "duration": "7 days"}


@pytest.fixture
def world():
    users = FakeUserRepo()
    appts = FakeApptRepo(users, FakeUnitOfWork())
    repo = FakeReportsRepo()
    audit = RecordingAudit()
    svc = ReportsService(repo=repo, appt_repo=appts, user_repo=users, audit=audit)
    patient = users.add("patient", name="Pat Smith")
    doctor = users.add("doctor", name="Dr. Who")
    other = users.add("doctor", name="Dr. No")
    admin = users.add("admin")
    appt = appts.create(NewAppointment(patient_id=patient.id, doctor_id=doctor.id, date=NOW, reason="checkup"))

    class World:
        pass

    w = World()
    w.users, w.appts, w.repo, w.audit, w.svc, w.appt = users, appts, repo, audit, svc, appt
    w.patient = Caller(patient.id, Role.PATIENT)
    w.doctor = Caller(doctor.id, Role.DOCTOR)
    w.other = Caller(other.id, Role.DOCTOR)
    w.admin = Caller(admin.id, Role.ADMIN)
    return w


def write(w, caller=None, appointment_id=None, prescriptions=None):
    return w.svc.create_report(
        caller or w.doctor, appointment_id or w.appt.id, "Bacterial infection", prescriptions or [RX], notes="Rest"
    )


def test_doctor_writes_report_for_own_appointment(world):
    report = write(world)
    assert report.patient_id == world.patient.id
    assert report.doctor_id == world.doctor.id
    assert report.prescriptions == [Prescription(**RX)]
    assert world.audit.actions() == ["REPORT_CREATED"]


def test_create_guards(world):
    with pytest.raises(NotAuthorizedError):
        write(world, caller=world.admin)
    with pytest.raises(NotAuthorizedError):
        write(world, caller=world.other)
    with pytest.raises(InvalidReportError) as exc:
        write(world, appointment_id="missing")
    assert exc.value.detail == "Invalid appointment ID"


def test_create_requires_patient_party(world):
    world.users.users[world.patient.id].role = "doctor"
    with pytest.raises(InvalidPartyError):
        write(world)


def test_prescriptions_need_every_field():
    with pytest.raises(InvalidReportError) as exc:
        parse_prescriptions([])
    assert exc.value.detail == "At least one prescription is required"
    with pytest.raises(InvalidReportError):
        parse_prescriptions([dict(RX, dosage="  ")])
    assert parse_prescriptions([dict(RX, medicine=" Ibuprofen ")])[0].medicine == "Ibuprofen"


def test_visibility(world):
    report = write(world)
    for caller in (world.patient, world.doctor, world.admin):
        assert world.svc.get_report(caller, report.id).id == report.id
    with pytest.raises(NotAuthorizedError):
        world.svc.get_report(world.other, report.id)
    with pytest.raises(NotFoundError):
        world.svc.get_report(world.admin, "missing")


def test_role_listings(world):
    report = write(world)
    assert [r.id for r in world.svc.list_for_patient(world.patient)] == [report.id]
    assert [r.id for r in world.svc.list_for_doctor(world.doctor)] == [report.id]
    assert world.svc.list_for_doctor(world.other) == []
    assert [r.id for r in world.svc.list_all(world.admin, ReportFilters(patient_id=world.patient.id))] == [report.id]
    with pytest.raises(NotAuthorizedError):
        world.svc.list_for_patient(world.doctor)
    with pytest.raises(NotAuthorizedError):
        world.svc.list_all(world.doctor)


def test_only_author_updates(world):
    report = write(world)
    new_rx = dict(RX, medicine="Ibuprofen")
    updated = world.svc.update_report(world.doctor, report.id, ReportPatch(prescriptions=[new_rx], notes=""))
    assert [p.medicine for p in updated.prescriptions] == ["Ibuprofen"]
    assert updated.diagnosis == "Bacterial infection"
    assert updated.notes == ""

    with pytest.raises(NotAuthorizedError):
        world.svc.update_report(world.other, report.id, ReportPatch(diagnosis="Flu"))
    with pytest.raises(NotAuthorizedError):
        world.svc.update_report(world.admin, report.id, ReportPatch(diagnosis="Flu"))
    with pytest.raises(InvalidReportError):
        world.svc.update_report(world.doctor, report.id, ReportPatch(prescriptions=[]))
