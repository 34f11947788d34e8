"""Role resolution for two-slot relationship records.

A ``Friendship`` row stores settings for both participants in parallel
columns. "Can A trigger B" is governed by the settings B controls, so every
read first resolves which slot the acting user occupies and then looks at
the *other* slot. All slot branching lives here; callers work with
``Slot``/``Role`` values and never touch ``slot_a_*``/``slot_b_*`` columns.
"""

import enum
from dataclasses import dataclass

from respawn.core.errors import NotAParty
from respawn.db.models import DEFAULT_COOLDOWN_MINUTES, Friendship


class Slot(str, enum.Enum):
    A = "a"
    B = "b"

    @property
    def other(self) -> "Slot":
        return Slot.B if self is Slot.A else Slot.A

    @property
    def user_column(self) -> str:
        return f"slot_{self.value}_user_id"

    @property
    def muted_column(self) -> str:
        return f"slot_{self.value}_muted_peer"

    @property
    def cooldown_column(self) -> str:
        return f"slot_{self.value}_cooldown_minutes"


@dataclass(frozen=True)
class Role:
    own: Slot
    peer: Slot

    @property
    def is_slot_a(self) -> bool:
        return self.own is Slot.A


@dataclass(frozen=True)
class SlotSettings:
    user_id: str
    muted_peer: bool
    cooldown_minutes: int


@dataclass(frozen=True)
class PeerCooldown:
    """Cooldown the peer imposes on the acting user.

    ``heal_slot`` is set when the stored value was uninitialized and
    ``minutes`` fell back to the default; the caller should write the
    default back to that slot.
    """

    minutes: int
    heal_slot: Slot | None = None


def slot_settings(record: Friendship, slot: Slot) -> SlotSettings:
    return SlotSettings(
        user_id=getattr(record, slot.user_column),
        muted_peer=bool(getattr(record, slot.muted_column)),
        cooldown_minutes=getattr(record, slot.cooldown_column) or 0,
    )


def resolve_role(record: Friendship, acting_user_id: str) -> Role:
    if record.slot_a_user_id == acting_user_id:
        return Role(own=Slot.A, peer=Slot.B)
    if record.slot_b_user_id == acting_user_id:
        return Role(own=Slot.B, peer=Slot.A)
    raise NotAParty(details={"friendship_id": record.id, "user_id": acting_user_id})


def peer_of(record: Friendship, acting_user_id: str) -> str:
    role = resolve_role(record, acting_user_id)
    return getattr(record, role.peer.user_column)


def own_settings(record: Friendship, acting_user_id: str) -> SlotSettings:
    return slot_settings(record, resolve_role(record, acting_user_id).own)


def peer_settings(record: Friendship, acting_user_id: str) -> SlotSettings:
    return slot_settings(record, resolve_role(record, acting_user_id).peer)


def peer_mute_of(record: Friendship, acting_user_id: str) -> bool:
    """Whether the peer has muted the acting user (read from the peer's slot)."""
    return peer_settings(record, acting_user_id).muted_peer


def resolve_peer_cooldown(
    record: Friendship,
    acting_user_id: str,
    default: int = DEFAULT_COOLDOWN_MINUTES,
) -> PeerCooldown:
    role = resolve_role(record, acting_user_id)
    minutes = slot_settings(record, role.peer).cooldown_minutes
    if minutes <= 0:
        # uninitialized / legacy row
        return PeerCooldown(minutes=default, heal_slot=role.peer)
    return PeerCooldown(minutes=minutes)


def cooldown_imposed_by_peer_on(
    record: Friendship,
    acting_user_id: str,
    default: int = DEFAULT_COOLDOWN_MINUTES,
) -> int:
    """Minutes the peer requires between the acting user's triggers."""
    return resolve_peer_cooldown(record, acting_user_id, default).minutes


def set_own_mute(record: Friendship, acting_user_id: str, muted: bool) -> Slot:
    own = resolve_role(record, acting_user_id).own
    setattr(record, own.muted_column, muted)
    return own


def set_own_cooldown(record: Friendship, acting_user_id: str, minutes: int) -> Slot:
    own = resolve_role(record, acting_user_id).own
    setattr(record, own.cooldown_column, minutes)
    return own
