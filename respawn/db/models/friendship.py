"""Friendship (relationship record) model.

One row per unordered user pair. The requester always occupies slot A and
the recipient slot B; the slots are never swapped. Each slot holds the
settings its occupant applies to the *other* slot. Read and write these
columns through ``respawn.relationship.roles`` rather than directly.
"""

import enum
from datetime import datetime

from sqlalchemy import String, Boolean, Integer, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, new_id, utcnow


DEFAULT_COOLDOWN_MINUTES = 60


class FriendshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def pair_key(user_id: str, other_user_id: str) -> str:
    """Order-independent key for the unordered pair ``{user_id, other_user_id}``."""
    first, second = sorted((user_id, other_user_id))
    return f"{first}:{second}"


class Friendship(Base):
    __tablename__ = "friendships"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    pair_key: Mapped[str] = mapped_column(String(65), unique=True, nullable=False)

    slot_a_user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    slot_b_user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    status: Mapped[str] = mapped_column(String(16), default=FriendshipStatus.PENDING.value, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Does this slot's occupant suppress notifications from the other slot
    slot_a_muted_peer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    slot_b_muted_peer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Cooldown this slot's occupant imposes on triggers aimed at them
    slot_a_cooldown_minutes: Mapped[int] = mapped_column(Integer, default=DEFAULT_COOLDOWN_MINUTES, nullable=False)
    slot_b_cooldown_minutes: Mapped[int] = mapped_column(Integer, default=DEFAULT_COOLDOWN_MINUTES, nullable=False)

    __table_args__ = (
        Index("ix_friendships_slot_a_status", "slot_a_user_id", "status"),
        Index("ix_friendships_slot_b_status", "slot_b_user_id", "status"),
    )
