"""
Location management endpoints.
"""
import uuid
from typing import Any, List, Optional

from fastapi import APIRouter, status, Query

from boxkeeper.api.deps import DBSession, CurrentUserId
from boxkeeper.models.location import Location
from boxkeeper.schemas.location import (
    LocationCreate,
    LocationUpdate,
    LocationResponse,
)
from boxkeeper.schemas.common import MessageResponse
from boxkeeper.services.location_service import LocationHierarchyService

router = APIRouter()


async def _to_response(service: LocationHierarchyService, location: Location) -> LocationResponse:
    response = LocationResponse.model_validate(location)
    response.parent_id = await service.parent_id_of(location)
    return response


@router.get("", response_model=List[LocationResponse])
async def list_child_locations(
    db: DBSession,
    user_id: CurrentUserId,
    workspace_id: uuid.UUID = Query(..., description="Workspace to browse"),
    parent_id: Optional[uuid.UUID] = Query(None, description="Parent location; omit for the top level"),
) -> Any:
    """
    List one level of the location tree, ordered by name.
    """
    service = LocationHierarchyService(db)
    locations = await service.list_child_locations(user_id, workspace_id, parent_id)
    return [await _to_response(service, location) for location in locations]


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    db: DBSession,
    user_id: CurrentUserId,
    location_data: LocationCreate,
) -> Any:
    """
    Create a new location. The path is derived from the parent and the name.
    """
    service = LocationHierarchyService(db)
    location = await service.create_location(user_id, location_data)
    return await _to_response(service, location)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    db: DBSession,
    user_id: CurrentUserId,
    location_id: uuid.UUID,
) -> Any:
    """
    Get location by ID.
    """
    service = LocationHierarchyService(db)
    location = await service.get_location(user_id, location_id)
    return await _to_response(service, location)


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    db: DBSession,
    user_id: CurrentUserId,
    location_id: uuid.UUID,
    location_data: LocationUpdate,
) -> Any:
    """
    Rename or re-describe a location.
    """
    service = LocationHierarchyService(db)
    location = await service.update_location(user_id, location_id, location_data)
    return await _to_response(service, location)


@router.delete("/{location_id}", response_model=MessageResponse)
async def delete_location(
    db: DBSession,
    user_id: CurrentUserId,
    location_id: uuid.UUID,
) -> Any:
    """
    Soft delete a location. Boxes stored in it become unassigned.
    """
    service = LocationHierarchyService(db)
    unassigned = await service.delete_location(user_id, location_id)
    return MessageResponse(
        message="Location deleted successfully",
        data={"unassigned_boxes": unassigned},
    )
