import asyncio
import logging
from datetime import datetime, timezone

from respawn.services.cooldowns import CooldownLedger

log = logging.getLogger("scheduler")

_scheduler_task: asyncio.Task | None = None


async def _run_sweep_once(session_factory, ledger: CooldownLedger) -> int:
    async with session_factory() as db:
        try:
            removed = await ledger.sweep_expired(db)
            log.info(f"[SCHEDULER] Cooldown sweep complete: removed={removed}")
            return removed
        except Exception as e:
            await db.rollback()
            log.exception(f"[SCHEDULER] Cooldown sweep failed: {e}")
            return 0


async def _scheduler_loop(session_factory, ledger: CooldownLedger, interval_seconds: int):
    log.info(f"[SCHEDULER] Starting cooldown sweep scheduler: interval={interval_seconds}s")

    while True:
        try:
            await asyncio.sleep(interval_seconds)
            log.debug(f"[SCHEDULER] Running cooldown sweep at {datetime.now(timezone.utc).isoformat()}")
            await _run_sweep_once(session_factory, ledger)
        except asyncio.CancelledError:
            log.info("[SCHEDULER] Scheduler cancelled, shutting down")
            break
        except Exception as e:
            log.exception(f"[SCHEDULER] Unexpected error: {e}")


def start_scheduler(session_factory, ledger: CooldownLedger, interval_seconds: int, enabled: bool = True):
    global _scheduler_task

    if not enabled:
        log.info("[SCHEDULER] Cooldown sweep scheduler is disabled (COOLDOWN_SWEEP_ENABLED=false)")
        return

    if _scheduler_task is not None:
        log.warning("[SCHEDULER] Scheduler already running")
        return

    _scheduler_task = asyncio.create_task(_scheduler_loop(session_factory, ledger, interval_seconds))
    log.info("[SCHEDULER] Cooldown sweep scheduler started")


def stop_scheduler():
    global _scheduler_task

    if _scheduler_task is not None:
        _scheduler_task.cancel()
        _scheduler_task = None
        log.info("[SCHEDULER] Cooldown sweep scheduler stopped")
