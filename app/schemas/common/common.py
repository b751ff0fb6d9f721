# app/schemas/common/common.py
from pydantic import BaseModel
from typing import Any, Optional

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: str
