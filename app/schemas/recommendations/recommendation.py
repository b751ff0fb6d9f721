# app/schemas/recommendations/recommendation.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime

from ..appointments.appointment import PartyResponse
from ..duties.duty import DoctorCount

class RecommendationCreate(BaseModel):
    doctor_id: str
    reason: str = Field(..., max_length=500)
    badge: str = Field(..., description="⭐ Top Performer, 🌟 Patient Favorite or 🏆 Most Improved")
    valid_from: Optional[str] = Field(None, description="ISO-8601 timestamp, defaults to now")
    valid_to: Optional[str] = Field(None, description="ISO-8601 timestamp; open-ended when omitted")

    @validator('reason')
    def validate_reason(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Reason is required')
        return v

class RecommendationUpdate(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    badge: Optional[str] = None
    valid_to: Optional[str] = None
    is_expired: Optional[bool] = None

class RecommendationResponse(BaseModel):
    id: str
    doctor_id: str
    doctor: Optional[PartyResponse] = None
    reason: str
    badge: str
    recommended_by: str
    recommended_by_name: Optional[str] = None
    valid_from: datetime
    valid_to: Optional[datetime] = None
    is_expired: bool
    created_at: datetime

    class Config:
        from_attributes = True

class PublicRecommendationResponse(BaseModel):
    doctor: Optional[PartyResponse] = None
    badges: List[str]
    reasons: List[str]
    recommended_by: Optional[str] = None

    class Config:
        from_attributes = True

class BadgeCount(BaseModel):
    badge: str
    count: int

class RecommendationStatsResponse(BaseModel):
    total_active: int
    by_badge: List[BadgeCount] = []
    most_recommended_doctors: List[DoctorCount] = []

    class Config:
        from_attributes = True
