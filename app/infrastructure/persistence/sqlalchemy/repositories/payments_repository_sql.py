from typing import List, Optional
from sqlalchemy import desc, extract, func
from sqlmodel import Session, select

from .....db.models import Appointment, Payment, User
from .....core.clock import utcnow
from .....application.errors import NotFoundError
from .....application.ports.payments_repo import (
    NewPayment,
    PaymentDto,
    PaymentQuery,
    PaymentStats,
    PaymentStatus,
    PaymentsRepository,
)


class SqlPaymentsRepository(PaymentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, p: Payment) -> PaymentDto:
        patient = self.session.get(User, p.patient_id)
        appt = self.session.get(Appointment, p.appointment_id) if p.appointment_id else None
        return PaymentDto(
            id=p.id,
            patient_id=p.patient_id,
            appointment_id=p.appointment_id,
            amount=p.amount,
            currency=p.currency,
            status=p.status,
            invoice_number=p.invoice_number,
            payment_method=p.payment_method,
            paid_at=p.paid_at,
            refunded_at=p.refunded_at,
            receipt_url=p.receipt_url,
            admin_notes=p.admin_notes,
            created_at=p.created_at,
            updated_at=p.updated_at,
            patient_name=patient.name if patient else None,
            patient_email=patient.email if patient else None,
            appointment_date=appt.date if appt else None,
            appointment_reason=appt.reason if appt else None,
        )

    def stage(self, record: NewPayment) -> PaymentDto:
        p = Payment(
            patient_id=record.patient_id,
            appointment_id=record.appointment_id,
            amount=record.amount,
            currency=record.currency,
            status=record.status,
            invoice_number=record.invoice_number,
            payment_method=record.payment_method,
        )
        self.session.add(p)
        # flush only: the appointment repository commits the unit of work
        self.session.flush()
        return self._to_dto(p)

    def get_by_id(self, payment_id: str) -> Optional[PaymentDto]:
        p = self.session.get(Payment, payment_id)
        return self._to_dto(p) if p else None

    def get_by_appointment(self, appointment_id: str) -> Optional[PaymentDto]:
        p = self.session.exec(select(Payment).where(Payment.appointment_id == appointment_id)).first()
        return self._to_dto(p) if p else None

    def save(self, record: PaymentDto) -> PaymentDto:
        p = self.session.get(Payment, record.id)
        if not p:
            raise NotFoundError("Payment not found")
        p.status = record.status
        p.payment_method = record.payment_method
        p.paid_at = record.paid_at
        p.refunded_at = record.refunded_at
        p.receipt_url = record.receipt_url
        p.admin_notes = record.admin_notes
        p.updated_at = utcnow()
        self.session.add(p)
        self.session.commit()
        self.session.refresh(p)
        return self._to_dto(p)

    def list(self, query: PaymentQuery) -> List[PaymentDto]:
        stmt = select(Payment)
        if query.patient_id:
            stmt = stmt.where(Payment.patient_id == query.patient_id)
        if query.status:
            stmt = stmt.where(Payment.status == query.status)
        if query.date_from:
            stmt = stmt.where(Payment.created_at >= query.date_from)
        if query.date_to:
            stmt = stmt.where(Payment.created_at <= query.date_to)
        rows = self.session.exec(stmt.order_by(Payment.created_at.desc())).all()
        return [self._to_dto(r) for r in rows]

    def stats(self, top: int = 5) -> PaymentStats:
        paid = Payment.status == PaymentStatus.PAID.value

        total = self.session.exec(select(func.coalesce(func.sum(Payment.amount), 0.0)).where(paid)).one()

        by_status = self.session.exec(
            select(Payment.status, func.count(Payment.id), func.sum(Payment.amount)).group_by(Payment.status)
        ).all()

        year = extract("year", Payment.paid_at)
        month = extract("month", Payment.paid_at)
        by_month = self.session.exec(
            select(year, month, func.sum(Payment.amount), func.count(Payment.id))
            .where(paid)
            .group_by(year, month)
            .order_by(year, month)
        ).all()

        total_spent = func.sum(Payment.amount).label("total_spent")
        top_patients = self.session.exec(
            select(User.name, total_spent, func.count(Payment.id))
            .join(User, User.id == Payment.patient_id)
            .where(paid)
            .group_by(Payment.patient_id, User.name)
            .order_by(desc("total_spent"))
            .limit(top)
        ).all()

        return PaymentStats(
            total_revenue=float(total or 0),
            by_status=[{"status": s, "count": c, "total": float(t or 0)} for s, c, t in by_status],
            by_month=[{"year": int(y), "month": int(m), "total": float(t or 0), "count": c} for y, m, t, c in by_month],
            top_patients=[{"patient_name": n, "total_spent": float(t or 0), "visits": v} for n, t, v in top_patients],
        )
