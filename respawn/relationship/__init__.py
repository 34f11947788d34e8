"""
Relationship records between pairs of users.

- roles: slot/role resolution and peer-controlled settings (the only code
  that branches on slot A vs slot B)
- repo: persistence helpers for the one-record-per-pair ``Friendship`` table
"""

from .roles import (
    Slot,
    Role,
    SlotSettings,
    PeerCooldown,
    DEFAULT_COOLDOWN_MINUTES,
    resolve_role,
    peer_of,
    own_settings,
    peer_settings,
    peer_mute_of,
    resolve_peer_cooldown,
    cooldown_imposed_by_peer_on,
    set_own_mute,
    set_own_cooldown,
)

__all__ = [
    "Slot",
    "Role",
    "SlotSettings",
    "PeerCooldown",
    "DEFAULT_COOLDOWN_MINUTES",
    "resolve_role",
    "peer_of",
    "own_settings",
    "peer_settings",
    "peer_mute_of",
    "resolve_peer_cooldown",
    "cooldown_imposed_by_peer_on",
    "set_own_mute",
    "set_own_cooldown",
]
