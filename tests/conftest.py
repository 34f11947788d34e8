"""Pytest fixtures for respawn tests.

Every test gets its own SQLite file database (``NullPool`` so concurrent
sessions really use separate connections), a controllable clock and a push
dispatcher that records instead of sending.
"""

import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("COOLDOWN_SWEEP_ENABLED", "false")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from respawn.core.config import Settings
from respawn.db.models import Base
from respawn.services import users
from respawn.services.cooldowns import CooldownLedger
from respawn.services.friends import FriendService
from respawn.services.notifications import NotificationService
from respawn.utils.concurrency import LocalPairLocks

SUBSCRIPTION = {
    "endpoint": "https://push.example.com/send/abc123",
    "keys": {"p256dh": "test-p256dh", "auth": "test-auth"},
}


class FakeClock:

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeDispatcher:

    def __init__(self):
        self.sent: list[dict] = []
        self.error: Exception | None = None

    async def send(self, subscription, title, body, data):
        if self.error is not None:
            raise self.error
        self.sent.append({"subscription": subscription, "title": title, "body": body, "data": data})


@pytest.fixture
def test_settings():
    return Settings(BCRYPT_ROUNDS=4, COOLDOWN_SWEEP_ENABLED=False)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def ledger(clock):
    return CooldownLedger(locks=LocalPairLocks(), clock=clock)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def friend_service(ledger, test_settings):
    return FriendService(ledger, test_settings)


@pytest.fixture
def notification_service(ledger, dispatcher, test_settings):
    return NotificationService(ledger, dispatcher, test_settings)


@pytest.fixture
def make_user(db):
    async def _make(username: str, subscription: dict | None = SUBSCRIPTION):
        user = await users.create_user(db, username, "not-a-real-hash")
        if subscription is not None:
            await users.set_push_subscription(db, user.id, subscription)
        return user

    return _make


@pytest.fixture
def befriend(db, friend_service):
    async def _befriend(requester, recipient):
        request = await friend_service.send_request(db, requester.id, recipient.id)
        return await friend_service.accept(db, recipient.id, request.id)

    return _befriend


@pytest.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest.fixture
async def bob(make_user):
    return await make_user("bob")
