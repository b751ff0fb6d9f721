from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from datetime import datetime

from .appointments_repo import PartyDto


class Badge(str, Enum):
    TOP_PERFORMER = "⭐ Top Performer"
    PATIENT_FAVORITE = "🌟 Patient Favorite"
    MOST_IMPROVED = "🏆 Most Improved"


@dataclass
class RecommendationDto:
    id: str
    doctor_id: str
    reason: str
    badge: str
    recommended_by: str
    valid_from: datetime
    valid_to: Optional[datetime]
    is_expired: bool
    created_at: datetime
    updated_at: datetime
    doctor: Optional[PartyDto] = None
    recommended_by_name: Optional[str] = None

    def is_active(self, now: datetime) -> bool:
        if self.is_expired or self.valid_from > now:
            return False
        return self.valid_to is None or self.valid_to >= now


@dataclass
class NewRecommendation:
    doctor_id: str
    reason: str
    badge: str
    recommended_by: str
    valid_from: datetime
    valid_to: Optional[datetime] = None


@dataclass
class RecommendationQuery:
    doctor_id: Optional[str] = None
    badge: Optional[str] = None
    is_expired: Optional[bool] = None
    valid_from_from: Optional[datetime] = None
    valid_from_to: Optional[datetime] = None
    # only records not expired at this instant
    active_at: Optional[datetime] = None
    limit: Optional[int] = None


@dataclass
class RecommendationStats:
    total_active: int
    by_badge: List[dict] = field(default_factory=list)
    most_recommended_doctors: List[dict] = field(default_factory=list)


class RecommendationsRepository:
    """Store contract for doctor recommendations. ``list`` orders by ``valid_from``, newest first."""

    def create(self, record: NewRecommendation) -> RecommendationDto:
        ...

    def get_by_id(self, recommendation_id: str) -> Optional[RecommendationDto]:
        ...

    def save(self, record: RecommendationDto) -> RecommendationDto:
        ...

    def list(self, query: RecommendationQuery) -> List[RecommendationDto]:
        ...

    def stats(self, now: datetime, top: int = 5) -> RecommendationStats:
        ...
