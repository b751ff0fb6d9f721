from dataclasses import dataclass, field
from typing import List, Optional
from datetime import datetime

from .appointments_repo import PartyDto


@dataclass
class Prescription:
    medicine: str
    dosage: str
    frequency: str
    duration: str


@dataclass
class ReportDto:
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    diagnosis: str
    prescriptions: List[Prescription]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    patient: Optional[PartyDto] = None
    doctor: Optional[PartyDto] = None
    appointment_date: Optional[datetime] = None
    appointment_reason: Optional[str] = None


@dataclass
class NewReport:
    appointment_id: str
    patient_id: str
    doctor_id: str
    diagnosis: str
    prescriptions: List[Prescription]
    notes: Optional[str] = None


@dataclass
class ReportQuery:
    patient_id: Optional[str] = None
    doctor_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass
class ReportStats:
    total_reports: int
    by_doctor: List[dict] = field(default_factory=list)
    top_medicines: List[dict] = field(default_factory=list)
    by_month: List[dict] = field(default_factory=list)


class ReportsRepository:
    """Store contract for medical reports. ``list`` orders by creation time, newest first."""

    def create(self, record: NewReport) -> ReportDto:
        ...

    def get_by_id(self, report_id: str) -> Optional[ReportDto]:
        ...

    def save(self, record: ReportDto) -> ReportDto:
        ...

    def list(self, query: ReportQuery) -> List[ReportDto]:
        ...

    def stats(self, top_medicines: int = 10) -> ReportStats:
        ...
