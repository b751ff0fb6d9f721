import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from ..errors import BillingError
from ..events import AppointmentCompleted
from ..ports.audit_logger import AuditLogger
from ..ports.payments_repo import NewPayment, PaymentDto, PaymentsRepository

logger = logging.getLogger(__name__)


def generate_invoice_number(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8].upper()}"


@dataclass
class BillingService:
    """Creates the pending invoice for a completed appointment.

    The invoice is only staged on the unit of work; the scheduling engine
    commits it together with the status change.
    """
    repo: PaymentsRepository
    amount: float
    currency: str
    invoice_prefix: str = "INV-"
    payment_method: str = "stripe"
    audit: Optional[AuditLogger] = None

    def on_appointment_completed(self, event: AppointmentCompleted) -> PaymentDto:
        try:
            existing = self.repo.get_by_appointment(event.appointment_id)
            if existing:
                logger.info(f"Invoice {existing.invoice_number} already exists for appointment {event.appointment_id}")
                return existing
            payment = self.repo.stage(
                NewPayment(
                    patient_id=event.patient_id,
                    appointment_id=event.appointment_id,
                    amount=self.amount,
                    currency=self.currency,
                    invoice_number=generate_invoice_number(self.invoice_prefix),
                    payment_method=self.payment_method,
                )
            )
        except BillingError:
            raise
        except Exception as e:
            logger.error(f"Error creating invoice for appointment {event.appointment_id}: {e}")
            raise BillingError() from e

        logger.info(f"Invoice {payment.invoice_number} staged for appointment {event.appointment_id}")
        if self.audit:
            self.audit.log(
                "INVOICE_CREATED",
                resource_id=event.appointment_id,
                details={"invoice_number": payment.invoice_number, "amount": payment.amount, "currency": payment.currency},
            )
        return payment
