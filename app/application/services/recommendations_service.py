import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from ..errors import (
    ExpiredRecommendationError,
    InvalidDateError,
    InvalidPartyError,
    InvalidStatusError,
    NotAuthorizedError,
    NotFoundError,
)
from ..policies import Caller, Role, can_view_doctor_recommendations, can_view_recommendation
from ..ports.appointments_repo import PartyDto
from ..ports.audit_logger import AuditLogger
from ..ports.recommendations_repo import (
    Badge,
    NewRecommendation,
    RecommendationDto,
    RecommendationQuery,
    RecommendationStats,
    RecommendationsRepository,
)
from ..ports.user_repo import UserRepository
from ..timestamps import parse_timestamp
from ...core.clock import utcnow

logger = logging.getLogger(__name__)

PUBLIC_LIMIT = 10


def parse_badge(value: str) -> Badge:
    try:
        return Badge(value)
    except ValueError:
        raise InvalidStatusError(f"Invalid badge. Use: {', '.join(b.value for b in Badge)}")


@dataclass
class RecommendationPatch:
    reason: Optional[str] = None
    badge: Optional[str] = None
    valid_to: Optional[Union[str, datetime]] = None
    is_expired: Optional[bool] = None


@dataclass
class RecommendationFilters:
    badge: Optional[str] = None
    doctor_id: Optional[str] = None
    is_expired: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None


@dataclass
class PublicRecommendation:
    """Active recommendations of one doctor, as shown to anonymous visitors."""
    doctor: Optional[PartyDto]
    recommended_by: Optional[str]
    badges: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


@dataclass
class RecommendationsService:
    repo: RecommendationsRepository
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = utcnow

    def create(self, caller: Caller, doctor_id: str, reason: str, badge: str,
               valid_from: Optional[Union[str, datetime]] = None,
               valid_to: Optional[Union[str, datetime]] = None) -> RecommendationDto:
        self._require_admin(caller)
        self._require_doctor(doctor_id)
        badge_value = parse_badge(badge).value

        start = parse_timestamp(valid_from, "Invalid valid-from date") if valid_from else self.clock()
        end = parse_timestamp(valid_to, "Invalid valid-to date") if valid_to else None
        if end is not None and end <= start:
            raise InvalidDateError("Valid-to date must be after valid-from date")

        rec = self.repo.create(
            NewRecommendation(doctor_id=doctor_id, reason=reason.strip(), badge=badge_value,
                              recommended_by=caller.id, valid_from=start, valid_to=end)
        )
        logger.info(f"Doctor {doctor_id} recommended with badge {badge_value}")
        self._audit("RECOMMENDATION_CREATED", caller, rec.id, {"doctor_id": doctor_id, "badge": badge_value})
        return rec

    def list_for_doctor(self, caller: Caller, doctor_id: Optional[str] = None) -> List[RecommendationDto]:
        if doctor_id is None:
            if caller.role != Role.DOCTOR:
                raise NotAuthorizedError("Only doctors can view their own recommendations")
            doctor_id = caller.id
        else:
            self._require_doctor(doctor_id)
            if not can_view_doctor_recommendations(caller, doctor_id):
                raise NotAuthorizedError()
        return self.repo.list(RecommendationQuery(doctor_id=doctor_id, active_at=self.clock()))

    def get(self, caller: Caller, recommendation_id: str) -> RecommendationDto:
        rec = self._get(recommendation_id)
        if not can_view_recommendation(caller, rec):
            raise NotAuthorizedError()
        now = self.clock()
        if rec.valid_to is not None and rec.valid_to < now:
            if not rec.is_expired:
                rec.is_expired = True
                self.repo.save(rec)
                logger.info(f"Recommendation {recommendation_id} marked expired")
            raise ExpiredRecommendationError()
        return rec

    def public(self) -> List[PublicRecommendation]:
        rows = self.repo.list(RecommendationQuery(active_at=self.clock(), limit=PUBLIC_LIMIT))
        grouped: Dict[str, PublicRecommendation] = {}
        for rec in rows:
            entry = grouped.get(rec.doctor_id)
            if entry is None:
                entry = grouped[rec.doctor_id] = PublicRecommendation(
                    doctor=rec.doctor, recommended_by=rec.recommended_by_name
                )
            entry.badges.append(rec.badge)
            entry.reasons.append(rec.reason)
        return list(grouped.values())

    def update(self, caller: Caller, recommendation_id: str, patch: RecommendationPatch) -> RecommendationDto:
        self._require_admin(caller)
        rec = self._get(recommendation_id)
        if patch.reason:
            rec.reason = patch.reason.strip()
        if patch.badge:
            rec.badge = parse_badge(patch.badge).value
        if patch.valid_to:
            rec.valid_to = parse_timestamp(patch.valid_to, "Invalid valid-to date")
        if patch.is_expired is not None:
            rec.is_expired = patch.is_expired
        if rec.valid_to is not None and rec.valid_to < self.clock():
            rec.is_expired = True

        saved = self.repo.save(rec)
        logger.info(f"Recommendation {recommendation_id} updated by admin {caller.id}")
        self._audit("RECOMMENDATION_UPDATED", caller, recommendation_id, {"is_expired": saved.is_expired})
        return saved

    def list_all(self, caller: Caller, filters: Optional[RecommendationFilters] = None) -> List[RecommendationDto]:
        self._require_admin(caller)
        filters = filters or RecommendationFilters()
        badge = parse_badge(filters.badge).value if filters.badge else None
        return self.repo.list(
            RecommendationQuery(doctor_id=filters.doctor_id, badge=badge, is_expired=filters.is_expired,
                                valid_from_from=filters.valid_from, valid_from_to=filters.valid_to)
        )

    def stats(self, caller: Caller) -> RecommendationStats:
        self._require_admin(caller)
        return self.repo.stats(self.clock(), top=5)

    def _get(self, recommendation_id: str) -> RecommendationDto:
        rec = self.repo.get_by_id(recommendation_id)
        if not rec:
            raise NotFoundError("Recommendation not found")
        return rec

    def _require_doctor(self, doctor_id: str) -> None:
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.role != Role.DOCTOR.value or doctor.is_deleted:
            raise InvalidPartyError("Invalid doctor ID")

    def _require_admin(self, caller: Caller) -> None:
        if not caller.is_admin:
            raise NotAuthorizedError("Access denied")

    def _audit(self, action: str, caller: Caller, resource_id: str, details: Optional[dict] = None) -> None:
        if self.audit:
            self.audit.log(action, actor_id=caller.id, actor_role=caller.role.value, resource_id=resource_id, details=details)
