"""
Box management endpoints.
"""
import uuid
from typing import Any, List, Optional

from fastapi import APIRouter, status, Query

from boxkeeper.api.deps import DBSession, CurrentUserId
from boxkeeper.core.config import get_settings
from boxkeeper.schemas.box import (
    BoxCreate,
    BoxUpdate,
    BoxFilter,
    BoxResponse,
    BoxDuplicateCheck,
    BoxDuplicateResult,
)
from boxkeeper.schemas.common import MessageResponse
from boxkeeper.services.box_service import BoxAssignmentService

router = APIRouter()
settings = get_settings()


@router.get("", response_model=List[BoxResponse])
async def list_boxes(
    db: DBSession,
    user_id: CurrentUserId,
    workspace_id: uuid.UUID = Query(..., description="Workspace to list"),
    q: Optional[str] = Query(None, description="Search by name or description"),
    location_id: Optional[uuid.UUID] = Query(None, description="Filter by location"),
    is_assigned: Optional[bool] = Query(None, description="Filter by whether the box has a location"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> Any:
    """
    List boxes in a workspace, newest first.
    """
    filters = BoxFilter(
        workspace_id=workspace_id,
        q=q,
        location_id=location_id,
        is_assigned=is_assigned,
        limit=limit,
        offset=offset,
    )
    return await BoxAssignmentService(db).list_boxes(user_id, filters)


@router.post("", response_model=BoxResponse, status_code=status.HTTP_201_CREATED)
async def create_box(
    db: DBSession,
    user_id: CurrentUserId,
    box_data: BoxCreate,
) -> Any:
    """
    Create a new box, optionally with a location and a QR code.
    """
    return await BoxAssignmentService(db).create_box(user_id, box_data)


@router.post("/check-duplicate", response_model=BoxDuplicateResult)
async def check_duplicate_name(
    db: DBSession,
    user_id: CurrentUserId,
    check: BoxDuplicateCheck,
) -> Any:
    """
    Warn about boxes with the same name. Never blocks creation.
    """
    return await BoxAssignmentService(db).check_duplicate_name(
        user_id, check.workspace_id, check.name, check.exclude_box_id
    )


@router.get("/{box_id}", response_model=BoxResponse)
async def get_box(
    db: DBSession,
    user_id: CurrentUserId,
    box_id: uuid.UUID,
) -> Any:
    """
    Get box by ID.
    """
    return await BoxAssignmentService(db).get_box(user_id, box_id)


@router.patch("/{box_id}", response_model=BoxResponse)
async def update_box(
    db: DBSession,
    user_id: CurrentUserId,
    box_id: uuid.UUID,
    box_data: BoxUpdate,
) -> Any:
    """
    Update a box. Send ``null`` to unassign the location or release the QR code.
    """
    return await BoxAssignmentService(db).update_box(user_id, box_id, box_data)


@router.delete("/{box_id}", response_model=MessageResponse)
async def delete_box(
    db: DBSession,
    user_id: CurrentUserId,
    box_id: uuid.UUID,
) -> Any:
    """
    Delete a box. Its QR code goes back to the unassigned pool.
    """
    await BoxAssignmentService(db).delete_box(user_id, box_id)
    return MessageResponse(message="Box deleted successfully")
