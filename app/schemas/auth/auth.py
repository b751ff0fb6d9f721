# app/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
import re

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

def _clean_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError('Invalid email address')
    return v

def _clean_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    phone_clean = re.sub(r'[^\d+]', '', v)
    if not re.match(r'^\+?\d{6,18}$', phone_clean):
        raise ValueError('Invalid phone number format')
    return phone_clean

class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @validator('email')
    def validate_email(cls, v):
        return _clean_email(v)

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    department: Optional[str] = None
    specialty: Optional[str] = None
    is_verified: bool
    is_deleted: bool
    created_at: datetime

    class Config:
        from_attributes = True

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class RegisterPatientRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str
    phone: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        return v.strip()

    @validator('email')
    def validate_email(cls, v):
        return _clean_email(v)

    @validator('phone')
    def validate_phone(cls, v):
        return _clean_phone(v)

class RegisterDoctorRequest(RegisterPatientRequest):
    department: Optional[str] = Field(None, max_length=100)
    specialty: Optional[str] = Field(None, max_length=100)

class RegisterResponse(BaseModel):
    message: str
    user: UserResponse
    temp_password: str

class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = None

    @validator('phone')
    def validate_phone(cls, v):
        return _clean_phone(v)

class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: str = Field(..., min_length=6, max_length=72)
