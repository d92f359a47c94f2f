"""
Persistence for QR code records.
"""
import uuid
from typing import Optional, List, Iterable, Set

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.models.qr_code import QrCode, QrCodeStatus


class QrCodeStore:
    """Queries and writes for the ``qr_codes`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, qr_code_id: uuid.UUID) -> Optional[QrCode]:
        result = await self.db.execute(
            select(QrCode)
            .where(QrCode.id == qr_code_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_short_id(self, short_id: str) -> Optional[QrCode]:
        result = await self.db.execute(
            select(QrCode)
            .where(QrCode.short_id == short_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_workspace(
        self,
        workspace_id: uuid.UUID,
        status: Optional[QrCodeStatus] = None,
    ) -> List[QrCode]:
        query = select(QrCode).where(QrCode.workspace_id == workspace_id)
        if status is not None:
            query = query.where(QrCode.status == status)
        result = await self.db.execute(query.order_by(QrCode.created_at.desc(), QrCode.short_id))
        return list(result.scalars().all())

    async def existing_short_ids(self, short_ids: Iterable[str]) -> Set[str]:
        """Which of ``short_ids`` are already taken."""
        candidates = list(short_ids)
        if not candidates:
            return set()
        result = await self.db.execute(select(QrCode.short_id).where(QrCode.short_id.in_(candidates)))
        return set(result.scalars().all())

    async def add_all(self, qr_codes: List[QrCode]) -> List[QrCode]:
        self.db.add_all(qr_codes)
        await self.db.flush()
        return qr_codes

    async def claim(self, qr_code_id: uuid.UUID, box_id: uuid.UUID) -> bool:
        """
        Link a free code to ``box_id``.

        Compare-and-swap on ``box_id IS NULL`` so that only one of several
        concurrent claims can win. Returns False when the code was taken.
        """
        result = await self.db.execute(
            update(QrCode)
            .where(QrCode.id == qr_code_id)
            .where(QrCode.box_id.is_(None))
            .values(box_id=box_id, status=QrCodeStatus.ASSIGNED)
        )
        return result.rowcount == 1

    async def release_for_box(self, box_id: uuid.UUID) -> int:
        """Return every code held by ``box_id`` to the unassigned pool."""
        result = await self.db.execute(
            update(QrCode)
            .where(QrCode.box_id == box_id)
            .values(box_id=None, status=QrCodeStatus.GENERATED)
        )
        return result.rowcount

    async def mark_printed(self, workspace_id: uuid.UUID, qr_code_ids: List[uuid.UUID]) -> int:
        """Flag free, freshly generated codes as printed; held codes are untouched."""
        result = await self.db.execute(
            update(QrCode)
            .where(QrCode.workspace_id == workspace_id)
            .where(QrCode.id.in_(qr_code_ids))
            .where(QrCode.status == QrCodeStatus.GENERATED)
            .where(QrCode.box_id.is_(None))
            .values(status=QrCodeStatus.PRINTED)
        )
        return result.rowcount
