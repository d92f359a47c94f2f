"""
Persistence for box records.
"""
import uuid
from typing import Optional, List

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boxkeeper.models.box import Box
from boxkeeper.schemas.box import BoxFilter


class BoxStore:
    """Queries and writes for the ``boxes`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, box_id: uuid.UUID) -> Optional[Box]:
        """Fetch a box with its location and QR code, refreshing any cached copy."""
        result = await self.db.execute(
            select(Box)
            .options(selectinload(Box.location), selectinload(Box.qr_code))
            .where(Box.id == box_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def short_id_exists(self, short_id: str) -> bool:
        count = await self.db.scalar(
            select(func.count()).select_from(Box).where(Box.short_id == short_id)
        )
        return count > 0

    async def list_for_workspace(self, filters: BoxFilter) -> List[Box]:
        """Boxes of a workspace, newest first."""
        query = (
            select(Box)
            .options(selectinload(Box.location), selectinload(Box.qr_code))
            .where(Box.workspace_id == filters.workspace_id)
        )

        if filters.q:
            search_filter = f"%{filters.q}%"
            query = query.where(
                or_(Box.name.ilike(search_filter), Box.description.ilike(search_filter))
            )

        if filters.location_id:
            query = query.where(Box.location_id == filters.location_id)

        if filters.is_assigned is True:
            query = query.where(Box.location_id.is_not(None))
        elif filters.is_assigned is False:
            query = query.where(Box.location_id.is_(None))

        query = query.order_by(Box.created_at.desc(), Box.short_id).offset(filters.offset).limit(filters.limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_name(
        self,
        workspace_id: uuid.UUID,
        name: str,
        exclude_box_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Boxes in the workspace whose name matches ``name`` case-insensitively."""
        query = (
            select(func.count())
            .select_from(Box)
            .where(Box.workspace_id == workspace_id)
            .where(func.lower(Box.name) == name.strip().lower())
        )
        if exclude_box_id is not None:
            query = query.where(Box.id != exclude_box_id)
        return await self.db.scalar(query)

    async def add(self, box: Box) -> Box:
        self.db.add(box)
        await self.db.flush()
        return box

    async def save(self, box: Box) -> Box:
        await self.db.flush()
        return box

    async def unassign_location(self, location_id: uuid.UUID) -> int:
        """Null the location reference of every box stored in ``location_id``."""
        result = await self.db.execute(
            update(Box)
            .where(Box.location_id == location_id)
            .values(location_id=None)
        )
        return result.rowcount

    async def delete(self, box: Box) -> None:
        await self.db.delete(box)
        await self.db.flush()
