"""
Squad transfer announcements (players joining or leaving the team).
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from furioza.kernel.models.base import Base, generate_uuid, utcnow


class TransferType(str, Enum):
    """Direction of a transfer."""
    IN = "in"
    OUT = "out"


class Transfer(Base):
    """A single incoming or outgoing player transfer."""

    __tablename__ = "transfers"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transfer_type: Mapped[TransferType] = mapped_column(
        String(10),
        default=TransferType.IN,
        nullable=False,
    )
    transfer_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Transfer {self.full_name} {self.transfer_type}>"
