"""
SQLAlchemy database models.

- base: declarative base and the UTC datetime column type
- user: user accounts
- friendship: one relationship record per unordered user pair
- cooldown: rate-limit windows per ordered pair
- history: trigger history

Import any model from this module:
    from respawn.db.models import User, Friendship, Cooldown, History
"""

from .base import Base

from .user import User

from .friendship import DEFAULT_COOLDOWN_MINUTES, Friendship, FriendshipStatus, pair_key

from .cooldown import Cooldown

from .history import History

__all__ = [
    "Base",
    "User",
    "DEFAULT_COOLDOWN_MINUTES",
    "Friendship",
    "FriendshipStatus",
    "pair_key",
    "Cooldown",
    "History",
]
