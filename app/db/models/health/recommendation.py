# app/db/models/health/recommendation.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from datetime import datetime
import uuid

from ...columns import NaiveDateTime
from ....core.clock import utcnow

class Recommendation(SQLModel, table=True):
    __tablename__ = "recommendations"
    __table_args__ = (
        Index("ix_recommendations_doctor_expired", "doctor_id", "is_expired"),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="users.id")
    reason: str = Field(max_length=500)
    badge: str = Field(max_length=40)
    recommended_by: str = Field(foreign_key="users.id")
    valid_from: datetime = Field(sa_type=NaiveDateTime)
    valid_to: Optional[datetime] = Field(default=None, sa_type=NaiveDateTime)
    is_expired: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
