# app/schemas/appointments/appointment.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

class AppointmentCreate(BaseModel):
    doctor_id: str
    date: str = Field(..., description="ISO-8601 timestamp, e.g. 2025-06-01T10:00:00Z")
    reason: str = Field(..., max_length=200)
    patient_id: Optional[str] = Field(None, description="Required when an admin books on behalf of a patient")

    @validator('reason')
    def validate_reason(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Reason is required')
        return v

class AppointmentUpdate(BaseModel):
    status: Optional[str] = None
    date: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)

    @validator('notes')
    def strip_notes(cls, v):
        return v.strip() if v is not None else v

class PartyResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    specialty: Optional[str] = None

    class Config:
        from_attributes = True

class AppointmentResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    patient: Optional[PartyResponse] = None
    doctor: Optional[PartyResponse] = None
    date: datetime
    status: str
    reason: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
