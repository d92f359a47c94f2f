"""
Location schemas.
"""
import uuid
from typing import Optional, Annotated
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

LocationName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
LocationDescription = Annotated[str, StringConstraints(max_length=1000)]


class LocationCreate(BaseModel):
    """Location creation schema."""
    workspace_id: uuid.UUID
    name: LocationName
    description: Optional[LocationDescription] = None
    parent_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(extra="forbid")


class LocationUpdate(BaseModel):
    """Location update schema. Only supplied fields are changed."""
    name: Optional[LocationName] = None
    description: Optional[LocationDescription] = None

    model_config = ConfigDict(extra="forbid")


class LocationResponse(BaseModel):
    """Location response schema."""
    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str
    description: Optional[str] = None
    path: str
    parent_id: Optional[uuid.UUID] = Field(default=None, description="Derived from the path")
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
