"""
Common schema types used across the API.
"""
from typing import Optional, Any
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
    success: bool = True
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
    error_code: Optional[str] = None
