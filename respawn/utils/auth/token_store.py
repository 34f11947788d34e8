"""In-memory session token store.

Maps opaque bearer tokens to user ids with a sliding expiry. The table is
guarded by a reader/writer lock: lookups share it, while issue, refresh,
revoke and the periodic sweep take it exclusively. Every critical section is
a plain dict operation (or one pass over the table for the sweep), so no
call ever blocks for longer than a full scan.

Lifecycle: construct, ``await start()`` to launch the background sweep,
``await shutdown()`` to stop it. The store works without ``start()``;
expired entries are then only dropped on access.
"""

import asyncio
import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

log = logging.getLogger(__name__)

TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class TokenInfo:
    user_id: str
    expires_at: datetime


class SessionTokenStore:

    def __init__(
        self,
        ttl: timedelta = timedelta(days=30),
        sweep_interval: float = 3600,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.clock = clock
        self._tokens: dict[str, TokenInfo] = {}
        self._lock = ReadWriteLock()
        self._sweep_task: asyncio.Task | None = None

    def issue(self, user_id: str) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        with self._lock.write_locked():
            self._tokens[token] = TokenInfo(user_id=user_id, expires_at=self.clock() + self.ttl)
        return token

    def validate(self, token: str) -> str | None:
        """User id for a live token, else None."""
        with self._lock.read_locked():
            info = self._tokens.get(token)
            if info is None or self.clock() > info.expires_at:
                return None
            return info.user_id

    def refresh(self, token: str) -> bool:
        """Slide the expiry forward by one TTL. Expired tokens are dropped instead."""
        with self._lock.write_locked():
            info = self._tokens.get(token)
            if info is None:
                return False
            now = self.clock()
            if now > info.expires_at:
                del self._tokens[token]
                return False
            info.expires_at = now + self.ttl
            return True

    def revoke(self, token: str) -> None:
        with self._lock.write_locked():
            self._tokens.pop(token, None)

    def sweep(self) -> int:
        with self._lock.write_locked():
            now = self.clock()
            expired = [token for token, info in self._tokens.items() if now > info.expires_at]
            for token in expired:
                del self._tokens[token]
        if expired:
            log.info("Swept %d expired session tokens", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._tokens)

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self) -> None:
        if self.running:
            log.warning("Session sweep already running")
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        log.info("Session sweep started (interval=%ss)", self.sweep_interval)

    async def shutdown(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("Session sweep stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                log.exception("Session sweep failed: %s", e)
