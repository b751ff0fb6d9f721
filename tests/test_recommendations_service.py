from datetime import datetime

import pytest

from app.application.errors import (
    ExpiredRecommendationError,
    InvalidDateError,
    InvalidPartyError,
    InvalidStatusError,
    NotAuthorizedError,
    NotFoundError,
)
from app.application.policies import Caller, Role
from app.application.services.recommendations_service import (
    RecommendationFilters,
    RecommendationPatch,
    RecommendationsService,
)
from tests.fakes import NOW, FakeRecommendationsRepo, FakeUserRepo, RecordingAudit, fixed_clock

TOP = "⭐ Top Performer"
FAVORITE = "🌟 Patient Favorite"


@pytest.fixture
def world():
    users = FakeUserRepo()
    repo = FakeRecommendationsRepo(users)
    audit = RecordingAudit()
    svc = RecommendationsService(repo=repo, user_repo=users, audit=audit, clock=fixed_clock)
    doctor = users.add("doctor", name="Dr. Who")
    other = users.add("doctor", name="Dr. No")
    patient = users.add("patient")
    admin = users.add("admin", name="Root")

    class World:
        pass

    w = World()
    w.users, w.repo, w.audit, w.svc = users, repo, audit, svc
    w.doctor = Caller(doctor.id, Role.DOCTOR)
    w.other = Caller(other.id, Role.DOCTOR)
    w.patient = Caller(patient.id, Role.PATIENT)
    w.admin = Caller(admin.id, Role.ADMIN)
    return w


def recommend(w, doctor=None, badge=TOP, valid_from=None, valid_to=None):
    return w.svc.create(w.admin, (doctor or w.doctor).id, "Great bedside manner", badge, valid_from, valid_to)


def test_create_defaults_valid_from_to_now(world):
    rec = recommend(world)
    assert rec.valid_from == NOW
    assert rec.valid_to is None
    assert rec.recommended_by == world.admin.id
    assert world.audit.actions() == ["RECOMMENDATION_CREATED"]


def test_create_validation(world):
    with pytest.raises(InvalidStatusError):
        recommend(world, badge="Gold Star")
    with pytest.raises(InvalidPartyError):
        recommend(world, doctor=world.patient)
    with pytest.raises(InvalidDateError):
        recommend(world, valid_from="2025-05-10T00:00:00Z", valid_to="2025-05-01T00:00:00Z")
    with pytest.raises(NotAuthorizedError):
        world.svc.create(world.doctor, world.doctor.id, "Self praise", TOP)


def test_doctor_sees_only_active_recommendations(world):
    current = recommend(world, valid_from="2025-04-01T00:00:00Z", valid_to="2025-06-01T00:00:00Z")
    open_ended = recommend(world, badge=FAVORITE, valid_from="2025-04-15T00:00:00Z")
    recommend(world, valid_from="2025-01-01T00:00:00Z", valid_to="2025-02-01T00:00:00Z")   # lapsed
    recommend(world, valid_from="2025-06-01T00:00:00Z")                                 # not started
    recommend(world, doctor=world.other)

    assert [r.id for r in world.svc.list_for_doctor(world.doctor)] == [open_ended.id, current.id]
    assert len(world.svc.list_for_doctor(world.admin, world.doctor.id)) == 2


def test_doctor_listing_access(world):
    with pytest.raises(NotAuthorizedError):
        world.svc.list_for_doctor(world.patient)
    with pytest.raises(NotAuthorizedError):
        world.svc.list_for_doctor(world.other, world.doctor.id)
    with pytest.raises(InvalidPartyError):
        world.svc.list_for_doctor(world.admin, world.patient.id)
    assert world.svc.list_for_doctor(world.doctor, world.doctor.id) == []


def test_get_marks_lapsed_recommendation_expired(world):
    rec = recommend(world, valid_from="2025-01-01T00:00:00Z", valid_to="2025-02-01T00:00:00Z")
    with pytest.raises(ExpiredRecommendationError) as exc:
        world.svc.get(world.doctor, rec.id)
    assert exc.value.detail == "This recommendation has expired"
    assert world.repo.get_by_id(rec.id).is_expired is True


def test_get_checks_access_before_expiry(world):
    rec = recommend(world, valid_from="2025-01-01T00:00:00Z", valid_to="2025-02-01T00:00:00Z")
    with pytest.raises(NotAuthorizedError):
        world.svc.get(world.other, rec.id)
    assert world.repo.get_by_id(rec.id).is_expired is False
    with pytest.raises(NotFoundError):
        world.svc.get(world.admin, "missing")


def test_public_groups_by_doctor(world):
    recommend(world, valid_from="2025-04-01T00:00:00Z")
    recommend(world, badge=FAVORITE, valid_from="2025-04-02T00:00:00Z")
    recommend(world, doctor=world.other, valid_from="2025-04-03T00:00:00Z")
    recommend(world, doctor=world.other, valid_from="2025-01-01T00:00:00Z", valid_to="2025-02-01T00:00:00Z")

    public = world.svc.public()
    assert [p.doctor.name for p in public] == ["Dr. No", "Dr. Who"]
    assert public[1].badges == [FAVORITE, TOP]
    assert public[1].recommended_by == "Root"


def test_public_is_capped(world):
    for day in range(1, 13):
        recommend(world, valid_from=datetime(2025, 4, day))
    assert len(world.svc.public()[0].badges) == 10


def test_update_auto_expires(world):
    rec = recommend(world)
    updated = world.svc.update(world.admin, rec.id, RecommendationPatch(badge=FAVORITE, reason="Kind"))
    assert (updated.badge, updated.reason, updated.is_expired) == (FAVORITE, "Kind", False)

    lapsed = world.svc.update(world.admin, rec.id, RecommendationPatch(valid_to="2025-04-30T00:00:00Z"))
    assert lapsed.is_expired is True
    with pytest.raises(InvalidStatusError):
        world.svc.update(world.admin, rec.id, RecommendationPatch(badge="Gold"))
    with pytest.raises(NotAuthorizedError):
        world.svc.update(world.doctor, rec.id, RecommendationPatch(reason="x"))


def test_admin_listing_and_stats(world):
    a = recommend(world)
    b = recommend(world, doctor=world.other, badge=FAVORITE)
    world.svc.update(world.admin, a.id, RecommendationPatch(is_expired=True))

    assert [r.id for r in world.svc.list_all(world.admin, RecommendationFilters(is_expired=False))] == [b.id]
    assert [r.id for r in world.svc.list_all(world.admin, RecommendationFilters(badge=TOP))] == [a.id]
    assert world.svc.stats(world.admin).total_active == 1
    with pytest.raises(NotAuthorizedError):
        world.svc.stats(world.doctor)
