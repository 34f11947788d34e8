from datetime import datetime, timezone

from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import History

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


async def record_trigger(
    db: AsyncSession,
    sender_id: str,
    receiver_id: str,
    sender_username: str,
    triggered_at: datetime | None = None,
) -> History:
    entry = History(
        sender_id=sender_id,
        receiver_id=receiver_id,
        sender_username=sender_username,
        triggered_at=triggered_at or datetime.now(timezone.utc),
    )
    db.add(entry)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return entry


def _between(user_id: str, other_user_id: str):
    return or_(
        and_(History.sender_id == user_id, History.receiver_id == other_user_id),
        and_(History.sender_id == other_user_id, History.receiver_id == user_id),
    )


async def list_between(
    db: AsyncSession,
    user_id: str,
    other_user_id: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[History], int]:
    """Both directions, most recent first. Returns ``(items, total)``."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    total = (
        await db.execute(select(func.count()).select_from(History).where(_between(user_id, other_user_id)))
    ).scalar_one()

    result = await db.execute(
        select(History)
        .where(_between(user_id, other_user_id))
        .order_by(History.triggered_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
