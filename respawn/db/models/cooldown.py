"""Cooldown ledger entries."""

from datetime import datetime

from sqlalchemy import String, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, new_id


class Cooldown(Base):
    """Rate-limit window for the ordered pair (initiator -> target)."""

    __tablename__ = "cooldowns"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    initiator_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    triggered_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("ix_cooldowns_pair_expires", "initiator_id", "target_id", "expires_at"),
        Index("ix_cooldowns_expires_at", "expires_at"),
    )
