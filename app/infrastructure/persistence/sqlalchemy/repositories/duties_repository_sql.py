from typing import List, Optional
from sqlalchemy import desc, func
from sqlmodel import Session, select

from .....db.models import Duty, User
from .....core.clock import utcnow
from .....application.errors import NotFoundError
from .....application.ports.duties_repo import (
    DutiesRepository,
    DutyDto,
    DutyQuery,
    DutyStats,
    DutyStatus,
    NewDuty,
)
from .parties import load_party, user_name


class SqlDutiesRepository(DutiesRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, d: Duty) -> DutyDto:
        return DutyDto(
            id=d.id,
            doctor_id=d.doctor_id,
            department=d.department,
            start_date=d.start_date,
            end_date=d.end_date,
            notes=d.notes,
            assigned_by=d.assigned_by,
            status=d.status,
            created_at=d.created_at,
            updated_at=d.updated_at,
            doctor=load_party(self.session, d.doctor_id, doctor=True),
            assigned_by_name=user_name(self.session, d.assigned_by),
        )

    def create(self, record: NewDuty) -> DutyDto:
        d = Duty(
            doctor_id=record.doctor_id,
            department=record.department,
            start_date=record.start_date,
            end_date=record.end_date,
            notes=record.notes,
            assigned_by=record.assigned_by,
            status=record.status,
        )
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return self._to_dto(d)

    def get_by_id(self, duty_id: str) -> Optional[DutyDto]:
        d = self.session.get(Duty, duty_id)
        return self._to_dto(d) if d else None

    def save(self, record: DutyDto) -> DutyDto:
        d = self.session.get(Duty, record.id)
        if not d:
            raise NotFoundError("Duty not found")
        d.department = record.department
        d.start_date = record.start_date
        d.end_date = record.end_date
        d.notes = record.notes
        d.status = record.status
        d.updated_at = utcnow()
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return self._to_dto(d)

    def list(self, query: DutyQuery) -> List[DutyDto]:
        stmt = select(Duty)
        if query.doctor_id:
            stmt = stmt.where(Duty.doctor_id == query.doctor_id)
        if query.department:
            stmt = stmt.where(Duty.department == query.department)
        if query.status:
            stmt = stmt.where(Duty.status == query.status)
        if query.start_from:
            stmt = stmt.where(Duty.start_date >= query.start_from)
        if query.start_to:
            stmt = stmt.where(Duty.start_date <= query.start_to)
        if query.overlaps:
            window_start, window_end = query.overlaps
            stmt = stmt.where(Duty.start_date <= window_end).where(Duty.end_date >= window_start)
        rows = self.session.exec(stmt.order_by(Duty.start_date.asc())).all()
        return [self._to_dto(r) for r in rows]

    def stats(self, top: int = 5) -> DutyStats:
        active = Duty.status == DutyStatus.ACTIVE.value

        total = self.session.exec(select(func.count(Duty.id)).where(active)).one()

        by_department = self.session.exec(
            select(Duty.department, func.count(Duty.id)).where(active).group_by(Duty.department)
        ).all()

        by_status = self.session.exec(select(Duty.status, func.count(Duty.id)).group_by(Duty.status)).all()

        duty_count = func.count(Duty.id).label("duty_count")
        top_doctors = self.session.exec(
            select(User.name, duty_count)
            .join(User, User.id == Duty.doctor_id)
            .where(active)
            .group_by(Duty.doctor_id, User.name)
            .order_by(desc("duty_count"))
            .limit(top)
        ).all()

        return DutyStats(
            total_active=int(total or 0),
            by_department=[{"department": d, "count": c} for d, c in by_department],
            by_status=[{"status": s, "count": c} for s, c in by_status],
            top_doctors=[{"doctor_name": n, "count": c} for n, c in top_doctors],
        )
