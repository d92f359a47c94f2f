"""
Location model for hierarchical location management.
"""
import uuid
from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import String, Boolean, Text, Uuid, Index, CheckConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxkeeper.core.database import Base
from boxkeeper.core import path_codec
from boxkeeper.models.base import TimestampMixin, WorkspaceMixin

if TYPE_CHECKING:
    from boxkeeper.models.workspace import Workspace
    from boxkeeper.models.box import Box

# Constraint names as the database reports them on violation
PATH_UNIQUE_INDEX = "uq_locations_workspace_id_path_live"
PATH_DEPTH_CONSTRAINT = "ck_locations_path_depth"


class Location(Base, TimestampMixin, WorkspaceMixin):
    """
    Location represents a physical place boxes can be stored in.

    The hierarchy is materialized in ``path`` (e.g. "root.garage.shelf_a")
    instead of a parent_id column. The parent is whichever live location of
    the same workspace sits at the path minus its last segment.
    Deleting only flags the row; it is never removed.
    """

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    path: Mapped[str] = mapped_column(String(1300), nullable=False, index=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    workspace: Mapped["Workspace"] = relationship("Workspace", back_populates="locations")
    boxes: Mapped[List["Box"]] = relationship("Box", back_populates="location")

    __table_args__ = (
        # Only live locations compete for a path; deleted ones keep theirs.
        Index(
            PATH_UNIQUE_INDEX,
            "workspace_id",
            "path",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("is_deleted = 0"),
        ),
        CheckConstraint(
            f"length(path) - length(replace(path, '.', '')) < {path_codec.MAX_DEPTH}",
            name="path_depth",  # ck_locations_path_depth after the naming convention
        ),
    )

    @property
    def depth(self) -> int:
        return path_codec.depth(self.path)

    @property
    def parent_path(self) -> str:
        return path_codec.parent_path(self.path)

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, path='{self.path}', name='{self.name}')>"
