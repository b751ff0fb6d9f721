# app/db/models/health/medical_report.py
from typing import List, Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from datetime import datetime
import uuid

from ...columns import NaiveDateTime
from ....core.clock import utcnow

class MedicalReport(SQLModel, table=True):
    __tablename__ = "medical_reports"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", index=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    diagnosis: str = Field(max_length=2000)
    # [{"medicine", "dosage", "frequency", "duration"}, ...]
    prescriptions: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    notes: Optional[str] = Field(default=None, max_length=2000)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
