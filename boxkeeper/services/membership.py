"""
Workspace membership check consumed by the location and box services.
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core.errors import MembershipError
from boxkeeper.models.workspace import WorkspaceMember


class WorkspaceMembership:
    """Answers "is this user a member of this workspace?" from workspace_members."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_member(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(WorkspaceMember.user_id)
            .where(WorkspaceMember.workspace_id == workspace_id)
            .where(WorkspaceMember.user_id == user_id)
        )
        return result.first() is not None

    async def require_member(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> None:
        if not await self.is_member(workspace_id, user_id):
            raise MembershipError()
