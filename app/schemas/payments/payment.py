# app/schemas/payments/payment.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

class PaymentResponse(BaseModel):
    id: str
    patient_id: str
    appointment_id: Optional[str] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    appointment_date: Optional[datetime] = None
    appointment_reason: Optional[str] = None
    amount: float
    currency: str
    status: str
    invoice_number: str
    payment_method: str
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    receipt_url: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PaymentUpdate(BaseModel):
    status: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=40)
    notes: Optional[str] = Field(None, max_length=500)

class StatusBreakdown(BaseModel):
    status: str
    count: int
    total: float

class MonthlyRevenue(BaseModel):
    year: int
    month: int
    total: float
    count: int

class TopPatient(BaseModel):
    patient_name: str
    total_spent: float
    visits: int

class PaymentStatsResponse(BaseModel):
    total_revenue: float
    by_status: List[StatusBreakdown] = []
    by_month: List[MonthlyRevenue] = []
    top_patients: List[TopPatient] = []

    class Config:
        from_attributes = True

class ReceiptItem(BaseModel):
    description: str
    amount: float

class ReceiptResponse(BaseModel):
    invoice_number: str
    patient_name: Optional[str] = None
    amount: float
    currency: str
    status: str
    paid_at: Optional[datetime] = None
    payment_method: str
    items: List[ReceiptItem]
