# app/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from datetime import datetime
import uuid

from ...columns import NaiveDateTime
from ....core.clock import utcnow

# One live booking per doctor and timestamp; cancelled rows release the slot.
_LIVE_SLOT = text("status != 'cancelled'")

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_doctor_slot",
            "doctor_id",
            "date",
            unique=True,
            sqlite_where=_LIVE_SLOT,
            postgresql_where=_LIVE_SLOT,
        ),
        Index("ix_appointments_patient_status", "patient_id", "status"),
        Index("ix_appointments_status_date", "status", "date"),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="users.id")
    doctor_id: str = Field(foreign_key="users.id")
    date: datetime = Field(sa_type=NaiveDateTime)
    status: str = Field(default="scheduled", max_length=20)
    reason: str = Field(max_length=200)
    notes: Optional[str] = Field(default=None, max_length=500)
    is_deleted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
