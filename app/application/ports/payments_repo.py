from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol
from datetime import datetime


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass
class PaymentDto:
    id: str
    patient_id: str
    appointment_id: Optional[str]
    amount: float
    currency: str
    status: str
    invoice_number: str
    payment_method: str
    paid_at: Optional[datetime]
    refunded_at: Optional[datetime]
    receipt_url: Optional[str]
    admin_notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    appointment_date: Optional[datetime] = None
    appointment_reason: Optional[str] = None


@dataclass
class NewPayment:
    patient_id: str
    appointment_id: str
    amount: float
    currency: str
    invoice_number: str
    payment_method: str
    status: str = PaymentStatus.PENDING.value


@dataclass
class PaymentQuery:
    patient_id: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass
class PaymentStats:
    total_revenue: float
    by_status: List[dict] = field(default_factory=list)
    by_month: List[dict] = field(default_factory=list)
    top_patients: List[dict] = field(default_factory=list)


class PaymentsRepository(Protocol):
    def stage(self, record: NewPayment) -> PaymentDto:
        """Add the invoice to the current unit of work without committing it."""
        ...

    def get_by_id(self, payment_id: str) -> Optional[PaymentDto]:
        ...

    def get_by_appointment(self, appointment_id: str) -> Optional[PaymentDto]:
        ...

    def save(self, record: PaymentDto) -> PaymentDto:
        ...

    def list(self, query: PaymentQuery) -> List[PaymentDto]:
        ...

    def stats(self, top: int = 5) -> PaymentStats:
        ...
