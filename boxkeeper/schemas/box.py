"""
Box schemas for request/response validation.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Annotated
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

MAX_TAGS = 20
MAX_TAG_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 10000

BoxName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
BoxDescription = Annotated[str, StringConstraints(max_length=MAX_DESCRIPTION_LENGTH)]


def clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Trim tags, drop empty ones and enforce the count and length limits."""
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    if len(cleaned) > MAX_TAGS:
        raise ValueError(f"A box can have at most {MAX_TAGS} tags")
    for tag in cleaned:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags can be at most {MAX_TAG_LENGTH} characters long")
    return cleaned


class BoxCreate(BaseModel):
    """Schema for creating a box."""
    workspace_id: uuid.UUID
    name: BoxName
    description: Optional[BoxDescription] = None
    tags: Optional[List[str]] = None
    location_id: Optional[uuid.UUID] = None
    qr_code_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return clean_tags(value)


class BoxUpdate(BaseModel):
    """
    Schema for updating a box.

    Omitted fields are left alone; ``location_id=None`` unassigns the box and
    ``qr_code_id=None`` releases its QR code.
    """
    name: Optional[BoxName] = None
    description: Optional[BoxDescription] = None
    tags: Optional[List[str]] = None
    location_id: Optional[uuid.UUID] = None
    qr_code_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return clean_tags(value)


class BoxFilter(BaseModel):
    """Filters for listing boxes in a workspace."""
    workspace_id: uuid.UUID
    q: Optional[str] = None
    location_id: Optional[uuid.UUID] = None
    is_assigned: Optional[bool] = None
    limit: int = Field(50, ge=1)
    offset: int = Field(0, ge=0)


class BoxDuplicateCheck(BaseModel):
    """Request for the non-blocking duplicate name warning."""
    workspace_id: uuid.UUID
    name: BoxName
    exclude_box_id: Optional[uuid.UUID] = None


class BoxDuplicateResult(BaseModel):
    is_duplicate: bool
    count: int


class BoxLocationSummary(BaseModel):
    id: uuid.UUID
    name: str
    path: str

    model_config = ConfigDict(from_attributes=True)


class BoxQrCodeSummary(BaseModel):
    id: uuid.UUID
    short_id: str

    model_config = ConfigDict(from_attributes=True)


class BoxResponse(BaseModel):
    """Schema for box response."""
    id: uuid.UUID
    short_id: str
    workspace_id: uuid.UUID
    name: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    location_id: Optional[uuid.UUID] = None
    qr_code_id: Optional[uuid.UUID] = None
    location: Optional[BoxLocationSummary] = None
    qr_code: Optional[BoxQrCodeSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
