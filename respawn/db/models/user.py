"""User account model."""

from datetime import datetime

from sqlalchemy import String, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, new_id, utcnow


class User(Base):
    """User account with the profile-level notification flags."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    # Web Push subscription (endpoint + keys); the delivery token for this user
    push_subscription: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    muted_all: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
