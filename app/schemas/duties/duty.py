# app/schemas/duties/duty.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime

from ..appointments.appointment import PartyResponse

class DutyCreate(BaseModel):
    doctor_id: str
    department: str = Field(..., max_length=100)
    start_date: str = Field(..., description="ISO-8601 timestamp")
    end_date: str = Field(..., description="ISO-8601 timestamp, after start_date")
    notes: Optional[str] = Field(None, max_length=500)

    @validator('department')
    def validate_department(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Department is required')
        return v

class DutyUpdate(BaseModel):
    department: Optional[str] = Field(None, max_length=100)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    status: Optional[str] = None

class DutyResponse(BaseModel):
    id: str
    doctor_id: str
    doctor: Optional[PartyResponse] = None
    department: str
    start_date: datetime
    end_date: datetime
    notes: Optional[str] = None
    assigned_by: str
    assigned_by_name: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class DepartmentCount(BaseModel):
    department: str
    count: int

class DutyStatusCount(BaseModel):
    status: str
    count: int

class DoctorCount(BaseModel):
    doctor_name: str
    count: int

class DutyStatsResponse(BaseModel):
    total_active: int
    by_department: List[DepartmentCount] = []
    by_status: List[DutyStatusCount] = []
    top_doctors: List[DoctorCount] = []

    class Config:
        from_attributes = True
