"""
Redis Connection Pool Module
============================
Connection pool for the distributed cooldown lease. One ``RedisPool`` is
built per application from its settings; nothing connects until the first
``client()`` call, so the pool costs nothing under the local lock backend.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import (
    BusyLoadingError,
    ConnectionError,
    TimeoutError,
)

log = logging.getLogger(__name__)

RETRYABLE_ERRORS = (ConnectionError, TimeoutError, BusyLoadingError)


def _lease_retry(attempts: int) -> Retry:
    return Retry(
        retries=attempts,
        backoff=ExponentialBackoff(cap=0.5, base=0.1),
        supported_errors=RETRYABLE_ERRORS,
    )


class RedisPool:

    def __init__(
        self,
        url: str,
        max_connections: int = 50,
        socket_timeout: float = 5.0,
        health_check_interval: int = 30,
        retry_attempts: int = 3,
    ):
        self.url = url
        self.max_connections = max_connections
        self.socket_timeout = socket_timeout
        self.health_check_interval = health_check_interval
        self.retry_attempts = retry_attempts
        self._pool: Optional[redis.ConnectionPool] = None

    @property
    def pool(self) -> redis.ConnectionPool:
        if self._pool is None:
            self._pool = redis.ConnectionPool.from_url(
                self.url,
                max_connections=self.max_connections,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
                health_check_interval=self.health_check_interval,
                decode_responses=True,
            )
            log.info("Redis pool created for %s (max_connections=%d)", self.url, self.max_connections)
        return self._pool

    async def client(self) -> redis.Redis:
        """Client borrowing connections from the shared pool."""
        return redis.Redis(
            connection_pool=self.pool,
            retry=_lease_retry(self.retry_attempts),
            retry_on_error=list(RETRYABLE_ERRORS),
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.disconnect()
        self._pool = None
        log.info("Redis pool closed")
