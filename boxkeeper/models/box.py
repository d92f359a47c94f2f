"""
Box model - a physical storage container.
"""
import uuid
from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import String, Text, Uuid, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxkeeper.core.database import Base
from boxkeeper.models.base import TimestampMixin, WorkspaceMixin

if TYPE_CHECKING:
    from boxkeeper.models.location import Location
    from boxkeeper.models.qr_code import QrCode


class Box(Base, TimestampMixin, WorkspaceMixin):
    """
    Box stored in (at most) one location and labelled with (at most) one QR code.

    The QR link is owned by ``qr_codes.box_id``; ``qr_code`` here is the
    reverse side of that foreign key.
    """

    __tablename__ = "boxes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    short_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Relationships
    location: Mapped[Optional["Location"]] = relationship("Location", back_populates="boxes")
    qr_code: Mapped[Optional["QrCode"]] = relationship(
        "QrCode", back_populates="box", uselist=False, passive_deletes=True
    )

    @property
    def qr_code_id(self) -> Optional[uuid.UUID]:
        return self.qr_code.id if self.qr_code is not None else None

    def __repr__(self) -> str:
        return f"<Box(id={self.id}, short_id='{self.short_id}', name='{self.name}')>"
