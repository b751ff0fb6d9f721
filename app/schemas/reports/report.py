# app/schemas/reports/report.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime

from ..appointments.appointment import PartyResponse
from ..duties.duty import DoctorCount

class PrescriptionItem(BaseModel):
    medicine: str = Field(..., max_length=200)
    dosage: str = Field(..., max_length=100)
    frequency: str = Field(..., max_length=100)
    duration: str = Field(..., max_length=100)

    class Config:
        from_attributes = True

class ReportCreate(BaseModel):
    appointment_id: str
    diagnosis: str = Field(..., max_length=2000)
    prescriptions: List[PrescriptionItem] = []
    notes: Optional[str] = Field(None, max_length=2000)

    @validator('diagnosis')
    def validate_diagnosis(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Diagnosis is required')
        return v

class ReportUpdate(BaseModel):
    diagnosis: Optional[str] = Field(None, max_length=2000)
    prescriptions: Optional[List[PrescriptionItem]] = None
    notes: Optional[str] = Field(None, max_length=2000)

class ReportResponse(BaseModel):
    id: str
    appointment_id: str
    appointment_date: Optional[datetime] = None
    appointment_reason: Optional[str] = None
    patient_id: str
    doctor_id: str
    patient: Optional[PartyResponse] = None
    doctor: Optional[PartyResponse] = None
    diagnosis: str
    prescriptions: List[PrescriptionItem]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class MedicineCount(BaseModel):
    medicine: str
    count: int

class MonthlyCount(BaseModel):
    year: int
    month: int
    count: int

class ReportStatsResponse(BaseModel):
    total_reports: int
    by_doctor: List[DoctorCount] = []
    top_medicines: List[MedicineCount] = []
    by_month: List[MonthlyCount] = []

    class Config:
        from_attributes = True
