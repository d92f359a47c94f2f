"""
QR code schemas.
"""
import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from boxkeeper.models.qr_code import QrCodeStatus


class QrCodeBatchCreate(BaseModel):
    """Request to pre-generate a sheet of QR codes."""
    workspace_id: uuid.UUID
    quantity: int = Field(..., ge=1, le=100)


class QrCodeMarkPrinted(BaseModel):
    """Request to flag freshly generated codes as printed."""
    workspace_id: uuid.UUID
    qr_code_ids: List[uuid.UUID] = Field(..., min_length=1, max_length=100)


class QrCodeResponse(BaseModel):
    """QR code response schema."""
    id: uuid.UUID
    short_id: str
    workspace_id: uuid.UUID
    status: QrCodeStatus
    box_id: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
