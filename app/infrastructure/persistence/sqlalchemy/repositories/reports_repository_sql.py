from collections import Counter
from dataclasses import asdict
from typing import List, Optional
from sqlalchemy import desc, extract, func
from sqlmodel import Session, select

from .....db.models import Appointment, MedicalReport, User
from .....core.clock import utcnow
from .....application.errors import NotFoundError
from .....application.ports.reports_repo import (
    NewReport,
    Prescription,
    ReportDto,
    ReportQuery,
    ReportStats,
    ReportsRepository,
)
from .parties import load_party


class SqlReportsRepository(ReportsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: MedicalReport) -> ReportDto:
        appt = self.session.get(Appointment, r.appointment_id)
        return ReportDto(
            id=r.id,
            appointment_id=r.appointment_id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            diagnosis=r.diagnosis,
            prescriptions=[Prescription(**rx) for rx in r.prescriptions or []],
            notes=r.notes,
            created_at=r.created_at,
            updated_at=r.updated_at,
            patient=load_party(self.session, r.patient_id),
            doctor=load_party(self.session, r.doctor_id, doctor=True),
            appointment_date=appt.date if appt else None,
            appointment_reason=appt.reason if appt else None,
        )

    def create(self, record: NewReport) -> ReportDto:
        r = MedicalReport(
            appointment_id=record.appointment_id,
            patient_id=record.patient_id,
            doctor_id=record.doctor_id,
            diagnosis=record.diagnosis,
            prescriptions=[asdict(rx) for rx in record.prescriptions],
            notes=record.notes,
        )
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def get_by_id(self, report_id: str) -> Optional[ReportDto]:
        r = self.session.get(MedicalReport, report_id)
        return self._to_dto(r) if r else None

    def save(self, record: ReportDto) -> ReportDto:
        r = self.session.get(MedicalReport, record.id)
        if not r:
            raise NotFoundError("Report not found")
        r.diagnosis = record.diagnosis
        # a new list, so the JSON column is flagged dirty
        r.prescriptions = [asdict(rx) for rx in record.prescriptions]
        r.notes = record.notes
        r.updated_at = utcnow()
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def list(self, query: ReportQuery) -> List[ReportDto]:
        stmt = select(MedicalReport)
        if query.patient_id:
            stmt = stmt.where(MedicalReport.patient_id == query.patient_id)
        if query.doctor_id:
            stmt = stmt.where(MedicalReport.doctor_id == query.doctor_id)
        if query.date_from:
            stmt = stmt.where(MedicalReport.created_at >= query.date_from)
        if query.date_to:
            stmt = stmt.where(MedicalReport.created_at <= query.date_to)
        rows = self.session.exec(stmt.order_by(MedicalReport.created_at.desc())).all()
        return [self._to_dto(r) for r in rows]

    def stats(self, top_medicines: int = 10) -> ReportStats:
        total = self.session.exec(select(func.count(MedicalReport.id))).one()

        report_count = func.count(MedicalReport.id).label("report_count")
        by_doctor = self.session.exec(
            select(User.name, report_count)
            .join(User, User.id == MedicalReport.doctor_id)
            .group_by(MedicalReport.doctor_id, User.name)
            .order_by(desc("report_count"))
        ).all()

        year = extract("year", MedicalReport.created_at)
        month = extract("month", MedicalReport.created_at)
        by_month = self.session.exec(
            select(year, month, func.count(MedicalReport.id)).group_by(year, month).order_by(year, month)
        ).all()

        # prescriptions live in a JSON column, counted here rather than in SQL
        medicines = Counter()
        for prescriptions in self.session.exec(select(MedicalReport.prescriptions)).all():
            medicines.update(rx["medicine"] for rx in prescriptions or [])

        return ReportStats(
            total_reports=int(total or 0),
            by_doctor=[{"doctor_name": n, "count": c} for n, c in by_doctor],
            top_medicines=[{"medicine": m, "count": c} for m, c in medicines.most_common(top_medicines)],
            by_month=[{"year": int(y), "month": int(m), "count": c} for y, m, c in by_month],
        )
