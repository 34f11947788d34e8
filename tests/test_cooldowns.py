from datetime import timedelta

from sqlalchemy import func, select

from respawn.db.models import Cooldown
from respawn.scheduler import _run_sweep_once
from respawn.services.cooldowns import lease_key


async def _count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Cooldown))).scalar_one()


def test_lease_key_is_directional():
    assert lease_key("a", "b") != lease_key("b", "a")


async def test_create_then_check(db, ledger, clock):
    cooldown = await ledger.create(db, "alice", "bob", 30)

    assert cooldown.triggered_at == clock.now
    assert cooldown.expires_at == clock.now + timedelta(minutes=30)

    active = await ledger.check_active(db, "alice", "bob")
    assert active is not None
    assert active.id == cooldown.id
    assert await ledger.check_active(db, "bob", "alice") is None


async def test_window_expires(db, ledger, clock):
    await ledger.create(db, "alice", "bob", 30)

    clock.advance(minutes=30)
    assert await ledger.check_active(db, "alice", "bob") is None


async def test_check_returns_latest_expiring(db, ledger, clock):
    await ledger.create(db, "alice", "bob", 10)
    longer = await ledger.create(db, "alice", "bob", 50)

    assert (await ledger.check_active(db, "alice", "bob")).id == longer.id


async def test_reconfigure_keeps_trigger_instant(db, ledger, clock):
    cooldown = await ledger.create(db, "alice", "bob", 60)
    clock.advance(minutes=5)

    assert await ledger.reconfigure_active(db, "alice", "bob", 10) is True

    await db.refresh(cooldown)
    assert cooldown.triggered_at == clock.now - timedelta(minutes=5)
    assert cooldown.expires_at == cooldown.triggered_at + timedelta(minutes=10)


async def test_reconfigure_shorter_than_elapsed_ends_window(db, ledger, clock):
    await ledger.create(db, "alice", "bob", 60)
    clock.advance(minutes=20)

    await ledger.reconfigure_active(db, "alice", "bob", 10)

    assert await ledger.check_active(db, "alice", "bob") is None


async def test_reconfigure_without_window(db, ledger):
    assert await ledger.reconfigure_active(db, "alice", "bob", 10) is False
    assert await _count(db) == 0


async def test_sweep_removes_only_expired(db, ledger, clock):
    await ledger.create(db, "alice", "bob", 5)
    await ledger.create(db, "carol", "bob", 60)
    clock.advance(minutes=10)

    assert await ledger.sweep_expired(db) == 1
    assert await _count(db) == 1
    assert await ledger.check_active(db, "carol", "bob") is not None


async def test_scheduled_sweep(session_factory, ledger, clock, db):
    await ledger.create(db, "alice", "bob", 5)
    clock.advance(minutes=6)

    assert await _run_sweep_once(session_factory, ledger) == 1
