"""
Box service: keeps a box, its location and its QR code consistent.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core.config import get_settings
from boxkeeper.core.errors import (
    BoxNotFoundError,
    InvalidInputError,
    LocationNotFoundError,
    OperationFailedError,
    QrCodeAlreadyAssignedError,
    QrCodeNotFoundError,
    WorkspaceMismatchError,
)
from boxkeeper.core.short_ids import generate_box_short_id
from boxkeeper.models.box import Box
from boxkeeper.models.qr_code import QrCode
from boxkeeper.schemas.box import BoxCreate, BoxUpdate, BoxFilter, BoxDuplicateResult
from boxkeeper.services.box_store import BoxStore
from boxkeeper.services.location_store import LocationStore
from boxkeeper.services.membership import WorkspaceMembership
from boxkeeper.services.qr_code_store import QrCodeStore
from boxkeeper.services.transaction import atomic

logger = logging.getLogger(__name__)
settings = get_settings()


class BoxAssignmentService:
    """Service class for box operations."""

    def __init__(
        self,
        db: AsyncSession,
        membership: Optional[WorkspaceMembership] = None,
    ):
        self.db = db
        self.membership = membership or WorkspaceMembership(db)
        self.boxes = BoxStore(db)
        self.locations = LocationStore(db)
        self.qr_codes = QrCodeStore(db)

    async def _get_accessible(self, user_id: uuid.UUID, box_id: uuid.UUID) -> Box:
        box = await self.boxes.get_by_id(box_id)
        if box is None or not await self.membership.is_member(box.workspace_id, user_id):
            raise BoxNotFoundError()
        return box

    async def _check_qr_code(
        self,
        workspace_id: uuid.UUID,
        qr_code_id: uuid.UUID,
        box_id: Optional[uuid.UUID] = None,
    ) -> QrCode:
        """A code is usable when it exists in the workspace and is free (or already ours)."""
        qr_code = await self.qr_codes.get_by_id(qr_code_id)
        if qr_code is None:
            raise QrCodeNotFoundError()
        if qr_code.workspace_id != workspace_id:
            raise WorkspaceMismatchError("qr_code")
        if qr_code.box_id is not None and qr_code.box_id != box_id:
            raise QrCodeAlreadyAssignedError()
        return qr_code

    async def _check_location(self, workspace_id: uuid.UUID, location_id: uuid.UUID) -> None:
        location = await self.locations.get_live(location_id)
        if location is None:
            raise LocationNotFoundError()
        if location.workspace_id != workspace_id:
            raise WorkspaceMismatchError("location")

    async def _claim(self, qr_code_id: uuid.UUID, box_id: uuid.UUID) -> None:
        if not await self.qr_codes.claim(qr_code_id, box_id):
            logger.warning(f"QR code {qr_code_id} was claimed by another box before box {box_id}")
            raise QrCodeAlreadyAssignedError()

    async def _new_short_id(self) -> str:
        for _ in range(settings.SHORT_ID_MAX_ATTEMPTS):
            short_id = generate_box_short_id()
            if not await self.boxes.short_id_exists(short_id):
                return short_id
        logger.error(f"No free box short id after {settings.SHORT_ID_MAX_ATTEMPTS} attempts")
        raise OperationFailedError()

    async def create_box(self, user_id: uuid.UUID, data: BoxCreate) -> Box:
        """
        Create a box, optionally placing it in a location and labelling it
        with a QR code.

        The QR code is claimed with a conditional update after the insert;
        if another box got there first the whole creation is rolled back.
        """
        async with atomic(self.db, "create_box", workspace_id=data.workspace_id, qr_code_id=data.qr_code_id):
            await self.membership.require_member(data.workspace_id, user_id)

            if data.qr_code_id is not None:
                await self._check_qr_code(data.workspace_id, data.qr_code_id)

            if data.location_id is not None:
                await self._check_location(data.workspace_id, data.location_id)

            box = Box(
                short_id=await self._new_short_id(),
                workspace_id=data.workspace_id,
                name=data.name,
                description=data.description,
                tags=data.tags,
                location_id=data.location_id,
            )
            await self.boxes.add(box)

            if data.qr_code_id is not None:
                await self._claim(data.qr_code_id, box.id)

        logger.info(f"Created box {box.id} ({box.short_id}) in workspace {box.workspace_id}")
        return await self.boxes.get_by_id(box.id)

    async def update_box(self, user_id: uuid.UUID, box_id: uuid.UUID, data: BoxUpdate) -> Box:
        """
        Update the supplied fields of a box.

        ``location_id=None`` unassigns the box, ``qr_code_id=None`` releases
        its code. Assigning a different code releases the one held before.
        """
        update_data = data.model_dump(exclude_unset=True)

        async with atomic(self.db, "update_box", box_id=box_id):
            box = await self._get_accessible(user_id, box_id)

            if update_data.get("name") is not None:
                box.name = update_data["name"]
            if "description" in update_data:
                box.description = update_data["description"]
            if "tags" in update_data:
                box.tags = update_data["tags"]

            if "location_id" in update_data:
                location_id = update_data["location_id"]
                if location_id is not None:
                    await self._check_location(box.workspace_id, location_id)
                box.location_id = location_id

            if "qr_code_id" in update_data:
                qr_code_id = update_data["qr_code_id"]
                current_qr_code_id = box.qr_code_id
                if qr_code_id is None:
                    if current_qr_code_id is not None:
                        await self.qr_codes.release_for_box(box.id)
                elif qr_code_id != current_qr_code_id:
                    await self._check_qr_code(box.workspace_id, qr_code_id, box_id=box.id)
                    await self.qr_codes.release_for_box(box.id)
                    await self._claim(qr_code_id, box.id)

            await self.boxes.save(box)

        logger.info(f"Updated box {box_id} (fields: {sorted(update_data)})")
        return await self.boxes.get_by_id(box_id)

    async def delete_box(self, user_id: uuid.UUID, box_id: uuid.UUID) -> None:
        """Delete a box and return its QR code to the unassigned pool."""
        async with atomic(self.db, "delete_box", box_id=box_id):
            box = await self._get_accessible(user_id, box_id)
            released = await self.qr_codes.release_for_box(box.id)
            await self.boxes.delete(box)

        logger.info(f"Deleted box {box_id}; released {released} QR codes")

    async def get_box(self, user_id: uuid.UUID, box_id: uuid.UUID) -> Box:
        return await self._get_accessible(user_id, box_id)

    async def list_boxes(self, user_id: uuid.UUID, filters: BoxFilter) -> List[Box]:
        await self.membership.require_member(filters.workspace_id, user_id)
        if filters.limit > settings.MAX_PAGE_SIZE:
            raise InvalidInputError(f"limit must be at most {settings.MAX_PAGE_SIZE}")
        return await self.boxes.list_for_workspace(filters)

    async def check_duplicate_name(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        name: str,
        exclude_box_id: Optional[uuid.UUID] = None,
    ) -> BoxDuplicateResult:
        """Non-blocking warning: how many boxes in the workspace already use this name."""
        await self.membership.require_member(workspace_id, user_id)
        count = await self.boxes.count_by_name(workspace_id, name, exclude_box_id)
        return BoxDuplicateResult(is_duplicate=count > 0, count=count)
