"""
Pydantic schemas for API request/response validation.
"""
from boxkeeper.schemas.common import MessageResponse, ErrorResponse
from boxkeeper.schemas.location import LocationCreate, LocationUpdate, LocationResponse
from boxkeeper.schemas.box import (
    BoxCreate, BoxUpdate, BoxFilter, BoxResponse,
    BoxDuplicateCheck, BoxDuplicateResult,
)
from boxkeeper.schemas.qr_code import QrCodeBatchCreate, QrCodeMarkPrinted, QrCodeResponse

__all__ = [
    "MessageResponse",
    "ErrorResponse",
    "LocationCreate",
    "LocationUpdate",
    "LocationResponse",
    "BoxCreate",
    "BoxUpdate",
    "BoxFilter",
    "BoxResponse",
    "BoxDuplicateCheck",
    "BoxDuplicateResult",
    "QrCodeBatchCreate",
    "QrCodeMarkPrinted",
    "QrCodeResponse",
]
