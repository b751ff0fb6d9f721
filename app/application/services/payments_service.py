import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from ..errors import InvalidStatusError, InvalidTransitionError, NotAuthorizedError, NotFoundError
from ..policies import Caller, Role, can_pay, can_view_payment
from ..ports.audit_logger import AuditLogger
from ..ports.payments_repo import PaymentDto, PaymentQuery, PaymentStats, PaymentStatus, PaymentsRepository
from ...core.clock import utcnow

logger = logging.getLogger(__name__)


def parse_payment_status(value: str) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Invalid status. Must be one of: {[s.value for s in PaymentStatus]}")


@dataclass
class PaymentsService:
    repo: PaymentsRepository
    payment_method: str = "stripe"
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = utcnow

    def list_for_patient(self, caller: Caller) -> List[PaymentDto]:
        if caller.role != Role.PATIENT:
            raise NotAuthorizedError("Access denied. Patients only.")
        return self.repo.list(PaymentQuery(patient_id=caller.id))

    def get_payment(self, caller: Caller, payment_id: str) -> PaymentDto:
        payment = self._get(payment_id)
        if not can_view_payment(caller, payment):
            raise NotAuthorizedError()
        return payment

    def pay(self, caller: Caller, payment_id: str) -> PaymentDto:
        if caller.role != Role.PATIENT:
            raise NotAuthorizedError("Only patients can pay bills")
        payment = self._get(payment_id)
        if not can_pay(caller, payment):
            raise NotAuthorizedError()
        if payment.status == PaymentStatus.PAID.value:
            raise InvalidTransitionError("Bill already paid")

        payment.status = PaymentStatus.PAID.value
        payment.paid_at = self.clock()
        payment.payment_method = self.payment_method
        payment.receipt_url = f"/api/payments/{payment.id}/receipt"
        saved = self.repo.save(payment)
        logger.info(f"Receipt generated for {saved.invoice_number}")
        if self.audit:
            self.audit.log("PAYMENT_SETTLED", actor_id=caller.id, actor_role=caller.role.value, resource_id=payment_id,
                           details={"invoice_number": saved.invoice_number, "amount": saved.amount})
        return saved

    def list_all(self, caller: Caller, status: Optional[str] = None, date_from: Optional[datetime] = None,
                 date_to: Optional[datetime] = None, patient_id: Optional[str] = None) -> List[PaymentDto]:
        self._require_admin(caller)
        if status:
            status = parse_payment_status(status).value
        return self.repo.list(PaymentQuery(patient_id=patient_id, status=status, date_from=date_from, date_to=date_to))

    def update_payment(self, caller: Caller, payment_id: str, status: Optional[str] = None,
                       payment_method: Optional[str] = None, notes: Optional[str] = None) -> PaymentDto:
        self._require_admin(caller)
        payment = self._get(payment_id)
        if status:
            new_status = parse_payment_status(status)
            payment.status = new_status.value
            if new_status == PaymentStatus.PAID and not payment.paid_at:
                payment.paid_at = self.clock()
            if new_status == PaymentStatus.REFUNDED:
                payment.refunded_at = self.clock()
        if payment_method:
            payment.payment_method = payment_method
        if notes:
            payment.admin_notes = notes
        saved = self.repo.save(payment)
        logger.info(f"Payment {payment_id} updated by admin {caller.id}")
        if self.audit:
            self.audit.log("PAYMENT_UPDATED", actor_id=caller.id, actor_role=caller.role.value, resource_id=payment_id,
                           details={"status": saved.status})
        return saved

    def stats(self, caller: Caller) -> PaymentStats:
        self._require_admin(caller)
        return self.repo.stats(top=5)

    def receipt(self, caller: Caller, payment_id: str) -> dict:
        payment = self.get_payment(caller, payment_id)
        when = payment.appointment_date.date().isoformat() if payment.appointment_date else "N/A"
        return {
            "invoice_number": payment.invoice_number,
            "patient_name": payment.patient_name,
            "amount": payment.amount,
            "currency": payment.currency,
            "status": payment.status,
            "paid_at": payment.paid_at,
            "payment_method": payment.payment_method,
            "items": [{"description": f"Consultation on {when}", "amount": payment.amount}],
        }

    def _get(self, payment_id: str) -> PaymentDto:
        payment = self.repo.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def _require_admin(self, caller: Caller) -> None:
        if not caller.is_admin:
            raise NotAuthorizedError("Access denied")
