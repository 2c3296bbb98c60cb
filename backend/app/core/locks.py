import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError

from backend.app.services.errors import GuardUnavailable, SlotBusy


logger = logging.getLogger(__name__)


def commit_lock_key(restaurant_id: str, booking_date: date) -> str:
    return f"commit:{restaurant_id}:{booking_date.strftime('%Y%m%d')}"


class RedisCommitGuard:
    """Serialises booking commits per (restaurant, date) across processes."""

    def __init__(self, client: redis.Redis, *, timeout: float, blocking_timeout: float) -> None:
        self._client = client
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, restaurant_id: str, booking_date: date) -> AsyncIterator[None]:
        key = commit_lock_key(restaurant_id, booking_date)
        lock = self._client.lock(
            key,
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except (RedisError, OSError) as exc:
            logger.error("Commit lock %s could not be acquired: %s", key, exc)
            raise GuardUnavailable("Redis unavailable") from exc
        if not acquired:
            raise SlotBusy("Slot temporarily held by another request")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Expired under a slow store; the store's own constraint still applies.
                logger.warning("Commit lock %s expired before release", key)
            except (RedisError, OSError) as exc:
                logger.warning("Commit lock %s not released, left to expire: %s", key, exc)
