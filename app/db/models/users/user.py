# app/db/models/users/user.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from ...columns import NaiveDateTime
from ....core.clock import utcnow

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=100, unique=True, index=True)
    phone: Optional[str] = Field(max_length=20, default=None)
    role: str = Field(max_length=10, index=True)
    password_hash: str = Field(max_length=255)
    department: Optional[str] = Field(max_length=100, default=None)
    specialty: Optional[str] = Field(max_length=100, default=None)
    is_verified: bool = Field(default=False)
    is_deleted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveDateTime)
