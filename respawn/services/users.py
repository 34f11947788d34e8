from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import User


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Exact, case-sensitive match."""
    result = await db.execute(select(User).where(User.username == username).limit(1))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, username: str, password_hash: str) -> User:
    user = User(username=username, password_hash=password_hash, muted_all=False)
    db.add(user)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(user)
    return user


async def set_muted_all(db: AsyncSession, user_id: str, muted_all: bool) -> bool:
    result = await db.execute(
        update(User).where(User.id == user_id).values(muted_all=muted_all)
    )
    await db.commit()
    return (result.rowcount or 0) > 0


async def set_push_subscription(db: AsyncSession, user_id: str, subscription: dict | None) -> bool:
    result = await db.execute(
        update(User).where(User.id == user_id).values(push_subscription=subscription)
    )
    await db.commit()
    return (result.rowcount or 0) > 0


async def search_users(
    db: AsyncSession,
    query: str,
    limit: int = 20,
    min_chars: int = 2,
) -> list[User]:
    """Case-insensitive username prefix search, capped at ``limit`` rows."""
    term = query.strip().lower()
    if len(term) < min_chars:
        return []

    result = await db.execute(
        select(User)
        .where(func.lower(User.username).startswith(term, autoescape=True))
        .order_by(User.username)
        .limit(limit)
    )
    return list(result.scalars().all())
