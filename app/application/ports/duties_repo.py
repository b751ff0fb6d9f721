from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
from datetime import datetime

from .appointments_repo import PartyDto


class DutyStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class DutyDto:
    id: str
    doctor_id: str
    department: str
    start_date: datetime
    end_date: datetime
    notes: Optional[str]
    assigned_by: str
    status: str
    created_at: datetime
    updated_at: datetime
    doctor: Optional[PartyDto] = None
    assigned_by_name: Optional[str] = None


@dataclass
class NewDuty:
    doctor_id: str
    department: str
    start_date: datetime
    end_date: datetime
    assigned_by: str
    notes: Optional[str] = None
    status: str = DutyStatus.ACTIVE.value


@dataclass
class DutyQuery:
    doctor_id: Optional[str] = None
    department: Optional[str] = None
    status: Optional[str] = None
    # bounds on start_date
    start_from: Optional[datetime] = None
    start_to: Optional[datetime] = None
    # duties whose [start_date, end_date] intersects this window
    overlaps: Optional[Tuple[datetime, datetime]] = None


@dataclass
class DutyStats:
    total_active: int
    by_department: List[dict] = field(default_factory=list)
    by_status: List[dict] = field(default_factory=list)
    top_doctors: List[dict] = field(default_factory=list)


class DutiesRepository:
    """Store contract for duty rosters. ``list`` orders by start date, earliest first."""

    def create(self, record: NewDuty) -> DutyDto:
        ...

    def get_by_id(self, duty_id: str) -> Optional[DutyDto]:
        ...

    def save(self, record: DutyDto) -> DutyDto:
        ...

    def list(self, query: DutyQuery) -> List[DutyDto]:
        ...

    def stats(self, top: int = 5) -> DutyStats:
        ...
