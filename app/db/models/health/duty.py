# app/db/models/health/duty.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from datetime import datetime
import uuid

from ...columns import NaiveDateTime
from ....core.clock import utcnow

class Duty(SQLModel, table=True):
    __tablename__ = "duties"
    __table_args__ = (
        Index("ix_duties_doctor_status", "doctor_id", "status"),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="users.id")
    department: str = Field(max_length=100, index=True)
    start_date: datetime = Field(sa_type=NaiveDateTime)
    end_date: datetime = Field(sa_type=NaiveDateTime)
    notes: Optional[str] = Field(default=None, max_length=500)
    assigned_by: str = Field(foreign_key="users.id")
    status: str = Field(default="active", max_length=20)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
