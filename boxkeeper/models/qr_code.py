"""
QR code model - printable labels that can be claimed by a box.
"""
import enum
import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Uuid, ForeignKey, DateTime, func, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxkeeper.core.database import Base
from boxkeeper.models.base import WorkspaceMixin

if TYPE_CHECKING:
    from boxkeeper.models.box import Box


class QrCodeStatus(str, enum.Enum):
    """QR code lifecycle status."""
    GENERATED = "generated"  # Allocated, free to claim
    PRINTED = "printed"  # Free to claim, already on a label sheet
    ASSIGNED = "assigned"  # Held by a box


class QrCode(Base, WorkspaceMixin):
    """
    QR code registry entry.

    Codes are created in batches, claimed by boxes and released back to
    GENERATED when their box is deleted. They are never deleted.
    """

    __tablename__ = "qr_codes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    short_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    status: Mapped[QrCodeStatus] = mapped_column(
        SQLEnum(QrCodeStatus, name="qr_status", values_callable=lambda e: [m.value for m in e]),
        default=QrCodeStatus.GENERATED,
        nullable=False,
        index=True,
    )
    box_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("boxes.id", ondelete="SET NULL"), unique=True, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    box: Mapped[Optional["Box"]] = relationship("Box", back_populates="qr_code")

    def __repr__(self) -> str:
        return f"<QrCode(id={self.id}, short_id='{self.short_id}', status='{self.status.value}')>"
