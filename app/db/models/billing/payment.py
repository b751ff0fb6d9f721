# app/db/models/billing/payment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from ...columns import NaiveDateTime
from ....core.clock import utcnow

class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    appointment_id: Optional[str] = Field(default=None, foreign_key="appointments.id", unique=True)
    amount: float
    currency: str = Field(default="USD", max_length=3)
    status: str = Field(default="pending", max_length=20, index=True)
    invoice_number: str = Field(max_length=40, unique=True, index=True)
    payment_method: str = Field(default="stripe", max_length=40)
    paid_at: Optional[datetime] = Field(default=None, sa_type=NaiveDateTime)
    refunded_at: Optional[datetime] = Field(default=None, sa_type=NaiveDateTime)
    receipt_url: Optional[str] = Field(default=None, max_length=255)
    admin_notes: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
