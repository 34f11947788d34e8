import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Awaitable, Callable, Optional, Protocol

import redis.asyncio as redis

from respawn.core.errors import TriggerInProgress

log = logging.getLogger(__name__)

LOCK_PREFIX = "lock"

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class PairLocks(Protocol):
    """Mutual exclusion keyed by an arbitrary string (e.g. an ordered user pair)."""

    def hold(self, key: str) -> AsyncContextManager[None]:
        ...


class LocalPairLocks:
    """Per-key ``asyncio.Lock`` for a single process.

    Entries are reference counted and dropped once nobody holds or waits on
    them, so the table only ever contains keys that are in use.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class AdvisoryLock:

    def __init__(
        self,
        client: redis.Redis,
        name: str,
        timeout: int = 30,
        retry_count: int = 3,
        retry_delay: float = 0.5,
    ):
        self.name = f"{LOCK_PREFIX}:{name}"
        self.timeout = timeout
        self.retry_count = retry_count
        self.retry_delay = retry_delay
        self.token: Optional[str] = None
        self.redis = client

    async def acquire(self) -> bool:
        self.token = str(uuid.uuid4())

        for attempt in range(self.retry_count):
            acquired = await self.redis.set(
                self.name,
                self.token,
                nx=True,
                ex=self.timeout,
            )
            if acquired:
                log.debug("Lock acquired: %s", self.name)
                return True

            if attempt < self.retry_count - 1:
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        log.warning("Failed to acquire lock after %d attempts: %s", self.retry_count, self.name)
        return False

    async def release(self):
        if not self.token:
            return
        try:
            await self.redis.eval(_RELEASE_SCRIPT, 1, self.name, self.token)
            log.debug("Lock released: %s", self.name)
        except Exception as e:
            log.error("Failed to release lock %s: %s", self.name, e)


class RedisPairLocks:
    """Cross-process pair lease backed by ``SET NX EX``.

    Raises ``TriggerInProgress`` when the lease is still held by another
    worker after the retries are spent.
    """

    def __init__(
        self,
        client_factory: Callable[[], Awaitable[redis.Redis]],
        timeout: int = 30,
        retry_count: int = 3,
        retry_delay: float = 0.5,
    ):
        self._client_factory = client_factory
        self.timeout = timeout
        self.retry_count = retry_count
        self.retry_delay = retry_delay

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        client = await self._client_factory()
        lock = AdvisoryLock(client, key, self.timeout, self.retry_count, self.retry_delay)
        if not await lock.acquire():
            raise TriggerInProgress(details={"key": key})
        try:
            yield
        finally:
            await lock.release()
