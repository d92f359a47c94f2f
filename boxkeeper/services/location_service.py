"""
Location hierarchy service.

Enforces the hierarchy rules on create, rename and delete:
- a path is at most ``path_codec.MAX_DEPTH`` segments deep,
- live siblings never share a path,
- a parent must be a live location of the same workspace.

Renaming only rewrites the location's own last segment and deleting only
flags the location itself; descendants keep their materialized paths.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core import path_codec
from boxkeeper.core.errors import (
    LocationNotFoundError,
    MaxDepthExceededError,
    ParentNotFoundError,
    SiblingConflictError,
)
from boxkeeper.models.location import PATH_DEPTH_CONSTRAINT, PATH_UNIQUE_INDEX, Location
from boxkeeper.schemas.location import LocationCreate, LocationUpdate
from boxkeeper.services.box_store import BoxStore
from boxkeeper.services.location_store import LocationStore
from boxkeeper.services.membership import WorkspaceMembership
from boxkeeper.services.transaction import atomic

logger = logging.getLogger(__name__)


def _constraint_name(error: IntegrityError) -> Optional[str]:
    """Name of the violated constraint, when the driver reports it."""
    orig = error.orig
    # asyncpg errors arrive wrapped by the SQLAlchemy adapter
    for candidate in (orig, getattr(orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    return None


def _is_path_conflict(error: IntegrityError) -> bool:
    name = _constraint_name(error)
    if name is not None:
        return name == PATH_UNIQUE_INDEX
    # SQLite names the columns, not the index
    return "unique constraint failed: locations." in str(error.orig).lower()


def _is_depth_violation(error: IntegrityError) -> bool:
    name = _constraint_name(error)
    if name is not None:
        return name == PATH_DEPTH_CONSTRAINT
    return PATH_DEPTH_CONSTRAINT in str(error.orig)


class LocationHierarchyService:
    """Service class for location hierarchy operations."""

    def __init__(
        self,
        db: AsyncSession,
        membership: Optional[WorkspaceMembership] = None,
    ):
        self.db = db
        self.membership = membership or WorkspaceMembership(db)
        self.locations = LocationStore(db)
        self.boxes = BoxStore(db)

    async def _get_accessible(self, user_id: uuid.UUID, location_id: uuid.UUID) -> Location:
        """
        Fetch a live location the user can see.

        Absent, soft-deleted and foreign-workspace locations all look the same.
        """
        location = await self.locations.get_live(location_id)
        if location is None or not await self.membership.is_member(location.workspace_id, user_id):
            raise LocationNotFoundError()
        return location

    async def create_location(self, user_id: uuid.UUID, data: LocationCreate) -> Location:
        """
        Create a location under ``data.parent_id`` (or at the top level).

        Raises MembershipError, ParentNotFoundError, MaxDepthExceededError or
        SiblingConflictError, checked in that order.
        """
        async with atomic(self.db, "create_location", workspace_id=data.workspace_id, parent_id=data.parent_id):
            await self.membership.require_member(data.workspace_id, user_id)

            parent_path = None
            if data.parent_id is not None:
                parent = await self.locations.get_live(data.parent_id)
                if parent is None or parent.workspace_id != data.workspace_id:
                    raise ParentNotFoundError()
                parent_path = parent.path

            path = path_codec.compose(parent_path, path_codec.normalize(data.name))

            if path_codec.depth(path) > path_codec.MAX_DEPTH:
                raise MaxDepthExceededError()

            if await self.locations.path_taken(data.workspace_id, path):
                raise SiblingConflictError()

            location = Location(
                workspace_id=data.workspace_id,
                name=data.name,
                description=data.description,
                path=path,
                is_deleted=False,
            )
            try:
                await self.locations.add(location)
            except IntegrityError as e:
                # A concurrent create won the race for this path
                if _is_depth_violation(e):
                    raise MaxDepthExceededError() from e
                if _is_path_conflict(e):
                    raise SiblingConflictError() from e
                raise

        await self.db.refresh(location)
        logger.info(f"Created location {location.id} at '{location.path}' in workspace {location.workspace_id}")
        return location

    async def update_location(
        self,
        user_id: uuid.UUID,
        location_id: uuid.UUID,
        data: LocationUpdate,
    ) -> Location:
        """
        Rename and/or re-describe a location.

        A new name regenerates the last path segment under the same parent.
        Raises LocationNotFoundError or SiblingConflictError.
        """
        update_data = data.model_dump(exclude_unset=True)

        async with atomic(self.db, "update_location", location_id=location_id):
            location = await self._get_accessible(user_id, location_id)

            new_name = update_data.get("name")
            if new_name is not None and new_name != location.name:
                new_path = path_codec.compose(location.parent_path, path_codec.normalize(new_name))
                if new_path != location.path:
                    if await self.locations.path_taken(location.workspace_id, new_path, exclude_id=location.id):
                        raise SiblingConflictError()
                    location.path = new_path
                location.name = new_name

            if "description" in update_data:
                location.description = update_data["description"]

            try:
                await self.locations.save(location)
            except IntegrityError as e:
                if _is_path_conflict(e):
                    raise SiblingConflictError() from e
                raise

        await self.db.refresh(location)
        logger.info(f"Updated location {location.id} (fields: {sorted(update_data)})")
        return location

    async def delete_location(self, user_id: uuid.UUID, location_id: uuid.UUID) -> int:
        """
        Soft delete a location and unassign every box stored in it.

        Child locations are left untouched. Returns the number of boxes that
        were unassigned.
        """
        async with atomic(self.db, "delete_location", location_id=location_id):
            location = await self._get_accessible(user_id, location_id)
            unassigned = await self.boxes.unassign_location(location.id)
            await self.locations.soft_delete(location)

        logger.info(f"Deleted location {location_id}; unassigned {unassigned} boxes")
        return unassigned

    async def get_location(self, user_id: uuid.UUID, location_id: uuid.UUID) -> Location:
        return await self._get_accessible(user_id, location_id)

    async def list_child_locations(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        parent_id: Optional[uuid.UUID] = None,
    ) -> List[Location]:
        """
        One level of the tree: the live children of ``parent_id``, or the
        first-level locations of the workspace when no parent is given.
        """
        await self.membership.require_member(workspace_id, user_id)

        if parent_id is None:
            return await self.locations.list_children(workspace_id, path_codec.ROOT_SEGMENT)

        parent = await self.locations.get_live(parent_id)
        if parent is None or parent.workspace_id != workspace_id:
            raise ParentNotFoundError()
        return await self.locations.list_children(workspace_id, parent.path)

    async def parent_id_of(self, location: Location) -> Optional[uuid.UUID]:
        return await self.locations.parent_id_of(location)
