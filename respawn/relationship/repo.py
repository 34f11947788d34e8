import logging
from datetime import datetime, timezone

from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import DEFAULT_COOLDOWN_MINUTES, Friendship, FriendshipStatus, pair_key
from respawn.relationship.roles import Slot

log = logging.getLogger(__name__)


async def get_friendship(db: AsyncSession, friendship_id: str) -> Friendship | None:
    return await db.get(Friendship, friendship_id)


async def find_between(db: AsyncSession, user_id: str, other_user_id: str) -> Friendship | None:
    """The pair's record regardless of which user holds which slot."""
    result = await db.execute(
        select(Friendship).where(Friendship.pair_key == pair_key(user_id, other_user_id))
    )
    return result.scalar_one_or_none()


async def list_accepted(db: AsyncSession, user_id: str) -> list[Friendship]:
    result = await db.execute(
        select(Friendship)
        .where(
            or_(Friendship.slot_a_user_id == user_id, Friendship.slot_b_user_id == user_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
        .order_by(Friendship.accepted_at.desc())
    )
    return list(result.scalars().all())


async def list_incoming_pending(db: AsyncSession, user_id: str) -> list[Friendship]:
    result = await db.execute(
        select(Friendship)
        .where(
            Friendship.slot_b_user_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        .order_by(Friendship.requested_at.desc())
    )
    return list(result.scalars().all())


def new_request(requester_id: str, recipient_id: str, cooldown_minutes: int) -> Friendship:
    return Friendship(
        pair_key=pair_key(requester_id, recipient_id),
        slot_a_user_id=requester_id,
        slot_b_user_id=recipient_id,
        status=FriendshipStatus.PENDING.value,
        requested_at=datetime.now(timezone.utc),
        slot_a_muted_peer=False,
        slot_b_muted_peer=False,
        slot_a_cooldown_minutes=cooldown_minutes,
        slot_b_cooldown_minutes=cooldown_minutes,
    )


async def delete_friendship(db: AsyncSession, friendship_id: str) -> None:
    await db.execute(delete(Friendship).where(Friendship.id == friendship_id))


async def heal_cooldown(
    db: AsyncSession,
    friendship_id: str,
    slot: Slot,
    minutes: int = DEFAULT_COOLDOWN_MINUTES,
) -> bool:
    """Best-effort write-back of a defaulted cooldown. Never raises."""
    try:
        await db.execute(
            update(Friendship)
            .where(Friendship.id == friendship_id)
            .values({slot.cooldown_column: minutes})
        )
        await db.commit()
        return True
    except SQLAlchemyError as e:
        log.warning("Cooldown heal failed for friendship=%s slot=%s: %s", friendship_id, slot.value, e)
        await db.rollback()
        return False
