"""
Workspace (tenant) and membership models.

Workspaces and their members are managed elsewhere; this service only reads
``workspace_members`` to answer "is this user a member of this workspace?".
"""
import enum
import uuid
from typing import List, TYPE_CHECKING
from sqlalchemy import String, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxkeeper.core.database import Base
from boxkeeper.models.base import TimestampMixin

if TYPE_CHECKING:
    from boxkeeper.models.location import Location


class MemberRole(str, enum.Enum):
    """Role of a user inside a workspace."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    READ_ONLY = "read_only"


class Workspace(Base, TimestampMixin):
    """
    Workspace is the unit of data isolation.
    Every location, box and QR code belongs to exactly one workspace.
    """

    __tablename__ = "workspaces"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)

    # Relationships
    members: Mapped[List["WorkspaceMember"]] = relationship(
        "WorkspaceMember", back_populates="workspace", cascade="all, delete-orphan"
    )
    locations: Mapped[List["Location"]] = relationship("Location", back_populates="workspace")

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, name='{self.name}')>"


class WorkspaceMember(Base):
    """Association between a user and a workspace."""

    __tablename__ = "workspace_members"

    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, index=True)
    role: Mapped[MemberRole] = mapped_column(
        SQLEnum(MemberRole, name="member_role", values_callable=lambda e: [m.value for m in e]),
        default=MemberRole.MEMBER,
        nullable=False,
    )

    # Relationships
    workspace: Mapped["Workspace"] = relationship("Workspace", back_populates="members")
