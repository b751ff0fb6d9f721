from datetime import datetime

import pytest

from app.application.errors import (
    InvalidDateError,
    InvalidPartyError,
    InvalidStatusError,
    NotAuthorizedError,
    NotFoundError,
)
from app.application.policies import Caller, Role
from app.application.services.duties_service import DutiesService, DutyFilters, DutyPatch
from tests.fakes import FakeDutiesRepo, FakeUserRepo, RecordingAudit, fixed_clock


@pytest.fixture
def world():
    users = FakeUserRepo()
    repo = FakeDutiesRepo()
    audit = RecordingAudit()
    svc = DutiesService(repo=repo, user_repo=users, audit=audit, clock=fixed_clock)
    doctor = users.add("doctor", name="Dr. Who")
    other = users.add("doctor", name="Dr. No")
    patient = users.add("patient")
    admin = users.add("admin")

    class World:
        pass

    w = World()
    w.users, w.repo, w.audit, w.svc = users, repo, audit, svc
    w.doctor = Caller(doctor.id, Role.DOCTOR)
    w.other = Caller(other.id, Role.DOCTOR)
    w.patient = Caller(patient.id, Role.PATIENT)
    w.admin = Caller(admin.id, Role.ADMIN)
    return w


def assign(w, start="2025-05-01T08:00:00Z", end="2025-05-01T16:00:00Z", doctor=None, department="Cardiology"):
    return w.svc.assign_duty(w.admin, (doctor or w.doctor).id, department, start, end)


def test_assign_duty(world):
    duty = assign(world, department="  Cardiology ")
    assert duty.status == "active"
    assert duty.department == "Cardiology"
    assert duty.assigned_by == world.admin.id
    assert duty.start_date == datetime(2025, 5, 1, 8, 0)
    assert world.audit.actions() == ["DUTY_ASSIGNED"]


def test_only_admin_assigns(world):
    with pytest.raises(NotAuthorizedError):
        world.svc.assign_duty(world.doctor, world.doctor.id, "ER", "2025-05-02T08:00:00Z", "2025-05-02T16:00:00Z")


def test_assign_rejects_non_doctor(world):
    with pytest.raises(InvalidPartyError) as exc:
        assign(world, doctor=world.patient)
    assert exc.value.detail == "Invalid doctor ID or user is not a doctor"


def test_assign_rejects_inverted_window(world):
    with pytest.raises(InvalidDateError) as exc:
        assign(world, start="2025-05-01T16:00:00Z", end="2025-05-01T16:00:00Z")
    assert exc.value.detail == "End date must be after start date"
    with pytest.raises(InvalidDateError):
        assign(world, start="not a date")


def test_doctor_ranges(world):
    running = assign(world)                                                    # today, started already
    later_this_week = assign(world, "2025-05-03T08:00:00Z", "2025-05-03T12:00:00Z")
    next_week = assign(world, "2025-05-06T08:00:00Z", "2025-05-06T12:00:00Z")
    assign(world, "2025-05-06T08:00:00Z", "2025-05-06T12:00:00Z", doctor=world.other)
    cancelled = assign(world, "2025-05-04T08:00:00Z", "2025-05-04T12:00:00Z")
    world.svc.cancel_duty(world.admin, cancelled.id)

    ids = lambda rows: [d.id for d in rows]
    assert ids(world.svc.list_doctor_duties(world.doctor, "today")) == [running.id]
    assert ids(world.svc.list_doctor_duties(world.doctor, "week")) == [running.id, later_this_week.id]
    assert ids(world.svc.list_doctor_duties(world.doctor)) == [later_this_week.id, next_week.id]
    assert ids(world.svc.list_doctor_duties(world.doctor, "all")) == [running.id, later_this_week.id, next_week.id]
    with pytest.raises(InvalidDateError):
        world.svc.list_doctor_duties(world.doctor, "month")
    with pytest.raises(NotAuthorizedError):
        world.svc.list_doctor_duties(world.admin)


def test_get_duty_visibility(world):
    duty = assign(world)
    assert world.svc.get_duty(world.doctor, duty.id).id == duty.id
    assert world.svc.get_duty(world.admin, duty.id).id == duty.id
    with pytest.raises(NotAuthorizedError):
        world.svc.get_duty(world.other, duty.id)
    with pytest.raises(NotFoundError):
        world.svc.get_duty(world.admin, "missing")


def test_update_duty(world):
    duty = assign(world)
    updated = world.svc.update_duty(
        world.admin, duty.id, DutyPatch(department="ER", end_date="2025-05-01T20:00:00Z", notes="", status="completed")
    )
    assert updated.department == "ER"
    assert updated.end_date == datetime(2025, 5, 1, 20, 0)
    assert updated.notes == ""
    assert updated.status == "completed"


def test_update_checks_resulting_window(world):
    duty = assign(world)
    # only one bound changes, the other comes from the stored duty
    with pytest.raises(InvalidDateError):
        world.svc.update_duty(world.admin, duty.id, DutyPatch(start_date="2025-05-01T17:00:00Z"))
    with pytest.raises(InvalidStatusError):
        world.svc.update_duty(world.admin, duty.id, DutyPatch(status="paused"))
    assert world.repo.get_by_id(duty.id).start_date == datetime(2025, 5, 1, 8, 0)


def test_cancel_and_admin_listing(world):
    a = assign(world, department="ER")
    b = assign(world, "2025-05-02T08:00:00Z", "2025-05-02T16:00:00Z", doctor=world.other)
    world.svc.cancel_duty(world.admin, a.id)
    assert world.repo.get_by_id(a.id).status == "cancelled"

    assert [d.id for d in world.svc.list_all(world.admin)] == [a.id, b.id]
    assert [d.id for d in world.svc.list_all(world.admin, DutyFilters(status="active"))] == [b.id]
    assert [d.id for d in world.svc.list_all(world.admin, DutyFilters(department="ER"))] == [a.id]
    assert [d.id for d in world.svc.list_all(world.admin, DutyFilters(date_from=datetime(2025, 5, 2)))] == [b.id]
    with pytest.raises(NotAuthorizedError):
        world.svc.list_all(world.doctor)
    with pytest.raises(NotAuthorizedError):
        world.svc.cancel_duty(world.doctor, b.id)
    assert world.svc.stats(world.admin).total_active == 1
