"""
Persistence for location records, including the path-prefix queries the
hierarchy logic relies on.
"""
import uuid
from typing import Optional, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core import path_codec
from boxkeeper.models.location import Location


def _path_depth_expr():
    """SQL expression for the number of segments in ``locations.path``."""
    return func.length(Location.path) - func.length(func.replace(Location.path, path_codec.SEPARATOR, "")) + 1


class LocationStore:
    """Queries and writes for the ``locations`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, location_id: uuid.UUID) -> Optional[Location]:
        """Fetch a location regardless of its deleted flag."""
        return await self.db.get(Location, location_id)

    async def get_live(self, location_id: uuid.UUID) -> Optional[Location]:
        """Fetch a location, treating soft-deleted rows as absent."""
        result = await self.db.execute(
            select(Location)
            .where(Location.id == location_id)
            .where(Location.is_deleted == False)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def find_by_path(self, workspace_id: uuid.UUID, path: str) -> Optional[Location]:
        result = await self.db.execute(
            select(Location)
            .where(Location.workspace_id == workspace_id)
            .where(Location.path == path)
            .where(Location.is_deleted == False)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def path_taken(
        self,
        workspace_id: uuid.UUID,
        path: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Whether a live location other than ``exclude_id`` already occupies ``path``."""
        query = (
            select(func.count())
            .select_from(Location)
            .where(Location.workspace_id == workspace_id)
            .where(Location.path == path)
            .where(Location.is_deleted == False)  # noqa: E712
        )
        if exclude_id is not None:
            query = query.where(Location.id != exclude_id)
        return (await self.db.scalar(query)) > 0

    async def list_children(self, workspace_id: uuid.UUID, parent_path: str) -> List[Location]:
        """Live locations exactly one level below ``parent_path``."""
        target_depth = path_codec.depth(parent_path) + 1
        result = await self.db.execute(
            select(Location)
            .where(Location.workspace_id == workspace_id)
            .where(Location.is_deleted == False)  # noqa: E712
            .where(Location.path.startswith(parent_path + path_codec.SEPARATOR, autoescape=True))
            .where(_path_depth_expr() == target_depth)
            .order_by(Location.name, Location.path)
        )
        return list(result.scalars().all())

    async def parent_id_of(self, location: Location) -> Optional[uuid.UUID]:
        """Derive the parent id by looking up the path minus its last segment."""
        parent_path = location.parent_path
        if path_codec.depth(location.path) <= 2 or not parent_path:
            return None
        parent = await self.find_by_path(location.workspace_id, parent_path)
        return parent.id if parent else None

    async def add(self, location: Location) -> Location:
        """Insert and flush so storage constraints are checked immediately."""
        self.db.add(location)
        await self.db.flush()
        return location

    async def save(self, location: Location) -> Location:
        await self.db.flush()
        return location

    async def soft_delete(self, location: Location) -> None:
        location.is_deleted = True
        await self.db.flush()
