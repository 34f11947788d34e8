"""Cooldown ledger.

Rate-limit windows keyed by the ordered pair (initiator -> target). A window
is active while ``expires_at > now``; expired rows are ignored by every read
and removed by ``sweep_expired`` purely as housekeeping.

``create`` does not check for an existing window. Callers that need the
at-most-one-active-window guarantee run check and create inside
``exclusive(initiator, target)``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import AsyncContextManager, Callable

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import Cooldown
from respawn.utils.concurrency import LocalPairLocks, PairLocks

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def lease_key(initiator_id: str, target_id: str) -> str:
    return f"cooldown:{initiator_id}:{target_id}"


class CooldownLedger:

    def __init__(
        self,
        locks: PairLocks | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.locks = locks or LocalPairLocks()
        self.clock = clock

    def exclusive(self, initiator_id: str, target_id: str) -> AsyncContextManager[None]:
        """Lease over the ordered pair; serializes check-then-create."""
        return self.locks.hold(lease_key(initiator_id, target_id))

    async def check_active(
        self,
        db: AsyncSession,
        initiator_id: str,
        target_id: str,
    ) -> Cooldown | None:
        """The latest-expiring active window for the pair, if any."""
        result = await db.execute(
            select(Cooldown)
            .where(
                Cooldown.initiator_id == initiator_id,
                Cooldown.target_id == target_id,
                Cooldown.expires_at > self.clock(),
            )
            .order_by(Cooldown.expires_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def create(
        self,
        db: AsyncSession,
        initiator_id: str,
        target_id: str,
        minutes: int,
    ) -> Cooldown:
        now = self.clock()
        cooldown = Cooldown(
            initiator_id=initiator_id,
            target_id=target_id,
            triggered_at=now,
            expires_at=now + timedelta(minutes=minutes),
        )
        db.add(cooldown)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await db.refresh(cooldown)
        return cooldown

    async def reconfigure_active(
        self,
        db: AsyncSession,
        initiator_id: str,
        target_id: str,
        new_minutes: int,
    ) -> bool:
        """Re-time the active window from its original trigger instant.

        Returns False, and writes nothing, when no window is active.
        """
        async with self.exclusive(initiator_id, target_id):
            cooldown = await self.check_active(db, initiator_id, target_id)
            if cooldown is None:
                return False

            cooldown.expires_at = cooldown.triggered_at + timedelta(minutes=new_minutes)
            try:
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        log.info(
            "Cooldown %s -> %s reconfigured to %d min (expires_at=%s)",
            initiator_id, target_id, new_minutes, cooldown.expires_at.isoformat(),
        )
        return True

    async def sweep_expired(self, db: AsyncSession) -> int:
        result = await db.execute(delete(Cooldown).where(Cooldown.expires_at < self.clock()))
        await db.commit()
        return result.rowcount or 0
