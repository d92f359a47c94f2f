"""
QR code service: batch allocation, scanning lookups and print tracking.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core.config import get_settings
from boxkeeper.core.errors import InvalidInputError, OperationFailedError, QrCodeNotFoundError
from boxkeeper.core.short_ids import generate_qr_short_id
from boxkeeper.models.qr_code import QrCode, QrCodeStatus
from boxkeeper.schemas.qr_code import QrCodeBatchCreate
from boxkeeper.services.membership import WorkspaceMembership
from boxkeeper.services.qr_code_store import QrCodeStore
from boxkeeper.services.transaction import atomic

logger = logging.getLogger(__name__)
settings = get_settings()


class QrCodeService:
    """Service class for QR code operations."""

    def __init__(
        self,
        db: AsyncSession,
        membership: Optional[WorkspaceMembership] = None,
    ):
        self.db = db
        self.membership = membership or WorkspaceMembership(db)
        self.qr_codes = QrCodeStore(db)

    async def _unique_short_ids(self, quantity: int) -> List[str]:
        """Draw ``quantity`` short ids that are unused and distinct from each other."""
        short_ids: List[str] = []
        seen = set()
        for _ in range(settings.SHORT_ID_MAX_ATTEMPTS):
            candidates = set()
            while len(candidates) < quantity - len(short_ids):
                candidate = generate_qr_short_id()
                if candidate not in seen:
                    candidates.add(candidate)
            taken = await self.qr_codes.existing_short_ids(candidates)
            for candidate in sorted(candidates - taken):
                short_ids.append(candidate)
                seen.add(candidate)
            if len(short_ids) == quantity:
                return short_ids
        logger.error(f"Could not allocate {quantity} QR short ids after {settings.SHORT_ID_MAX_ATTEMPTS} attempts")
        raise OperationFailedError()

    async def generate_batch(self, user_id: uuid.UUID, data: QrCodeBatchCreate) -> List[QrCode]:
        """Pre-generate ``data.quantity`` unassigned codes for a workspace."""
        if data.quantity > settings.QR_BATCH_MAX_QUANTITY:
            raise InvalidInputError(f"quantity must be at most {settings.QR_BATCH_MAX_QUANTITY}")

        async with atomic(self.db, "generate_qr_batch", workspace_id=data.workspace_id, quantity=data.quantity):
            await self.membership.require_member(data.workspace_id, user_id)
            short_ids = await self._unique_short_ids(data.quantity)
            qr_codes = [
                QrCode(
                    workspace_id=data.workspace_id,
                    short_id=short_id,
                    status=QrCodeStatus.GENERATED,
                )
                for short_id in short_ids
            ]
            await self.qr_codes.add_all(qr_codes)

        for qr_code in qr_codes:
            await self.db.refresh(qr_code)

        logger.info(f"Generated {len(qr_codes)} QR codes for workspace {data.workspace_id}")
        return qr_codes

    async def get_by_short_id(self, user_id: uuid.UUID, short_id: str) -> QrCode:
        """Resolve a scanned label. Unknown and foreign codes look the same."""
        qr_code = await self.qr_codes.get_by_short_id(short_id.strip().upper())
        if qr_code is None or not await self.membership.is_member(qr_code.workspace_id, user_id):
            raise QrCodeNotFoundError()
        return qr_code

    async def list_for_workspace(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        status: Optional[QrCodeStatus] = None,
    ) -> List[QrCode]:
        await self.membership.require_member(workspace_id, user_id)
        return await self.qr_codes.list_for_workspace(workspace_id, status)

    async def mark_printed(
        self,
        user_id: uuid.UUID,
        workspace_id: uuid.UUID,
        qr_code_ids: List[uuid.UUID],
    ) -> int:
        """Flag generated codes as printed. Returns how many codes changed."""
        async with atomic(self.db, "mark_qr_printed", workspace_id=workspace_id):
            await self.membership.require_member(workspace_id, user_id)
            updated = await self.qr_codes.mark_printed(workspace_id, qr_code_ids)

        logger.info(f"Marked {updated} QR codes as printed in workspace {workspace_id}")
        return updated
