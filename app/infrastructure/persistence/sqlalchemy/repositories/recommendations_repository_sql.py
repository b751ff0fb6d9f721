from datetime import datetime
from typing import List, Optional
from sqlalchemy import and_, desc, func, or_
from sqlmodel import Session, select

from .....db.models import Recommendation, User
from .....core.clock import utcnow
from .....application.errors import NotFoundError
from .....application.ports.recommendations_repo import (
    NewRecommendation,
    RecommendationDto,
    RecommendationQuery,
    RecommendationStats,
    RecommendationsRepository,
)
from .parties import load_party, user_name


def _active_at(now: datetime):
    return and_(
        Recommendation.is_expired == False,  # noqa: E712
        Recommendation.valid_from <= now,
        or_(Recommendation.valid_to.is_(None), Recommendation.valid_to >= now),
    )


class SqlRecommendationsRepository(RecommendationsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: Recommendation) -> RecommendationDto:
        return RecommendationDto(
            id=r.id,
            doctor_id=r.doctor_id,
            reason=r.reason,
            badge=r.badge,
            recommended_by=r.recommended_by,
            valid_from=r.valid_from,
            valid_to=r.valid_to,
            is_expired=bool(r.is_expired),
            created_at=r.created_at,
            updated_at=r.updated_at,
            doctor=load_party(self.session, r.doctor_id, doctor=True),
            recommended_by_name=user_name(self.session, r.recommended_by),
        )

    def create(self, record: NewRecommendation) -> RecommendationDto:
        r = Recommendation(
            doctor_id=record.doctor_id,
            reason=record.reason,
            badge=record.badge,
            recommended_by=record.recommended_by,
            valid_from=record.valid_from,
            valid_to=record.valid_to,
        )
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def get_by_id(self, recommendation_id: str) -> Optional[RecommendationDto]:
        r = self.session.get(Recommendation, recommendation_id)
        return self._to_dto(r) if r else None

    def save(self, record: RecommendationDto) -> RecommendationDto:
        r = self.session.get(Recommendation, record.id)
        if not r:
            raise NotFoundError("Recommendation not found")
        r.reason = record.reason
        r.badge = record.badge
        r.valid_to = record.valid_to
        r.is_expired = record.is_expired
        r.updated_at = utcnow()
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def list(self, query: RecommendationQuery) -> List[RecommendationDto]:
        stmt = select(Recommendation)
        if query.doctor_id:
            stmt = stmt.where(Recommendation.doctor_id == query.doctor_id)
        if query.badge:
            stmt = stmt.where(Recommendation.badge == query.badge)
        if query.is_expired is not None:
            stmt = stmt.where(Recommendation.is_expired == query.is_expired)
        if query.valid_from_from:
            stmt = stmt.where(Recommendation.valid_from >= query.valid_from_from)
        if query.valid_from_to:
            stmt = stmt.where(Recommendation.valid_from <= query.valid_from_to)
        if query.active_at:
            stmt = stmt.where(_active_at(query.active_at))
        stmt = stmt.order_by(Recommendation.valid_from.desc())
        if query.limit:
            stmt = stmt.limit(query.limit)
        rows = self.session.exec(stmt).all()
        return [self._to_dto(r) for r in rows]

    def stats(self, now: datetime, top: int = 5) -> RecommendationStats:
        not_expired = Recommendation.is_expired == False  # noqa: E712

        total = self.session.exec(select(func.count(Recommendation.id)).where(_active_at(now))).one()

        by_badge = self.session.exec(
            select(Recommendation.badge, func.count(Recommendation.id))
            .where(not_expired)
            .group_by(Recommendation.badge)
        ).all()

        rec_count = func.count(Recommendation.id).label("rec_count")
        top_doctors = self.session.exec(
            select(User.name, rec_count)
            .join(User, User.id == Recommendation.doctor_id)
            .where(not_expired)
            .group_by(Recommendation.doctor_id, User.name)
            .order_by(desc("rec_count"))
            .limit(top)
        ).all()

        return RecommendationStats(
            total_active=int(total or 0),
            by_badge=[{"badge": b, "count": c} for b, c in by_badge],
            most_recommended_doctors=[{"doctor_name": n, "count": c} for n, c in top_doctors],
        )
