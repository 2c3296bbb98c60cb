import logging
from datetime import date

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockNotOwnedError

from backend.app.core.locks import RedisCommitGuard, commit_lock_key
from backend.app.services.errors import GuardUnavailable, SlotBusy


pytestmark = pytest.mark.asyncio


class FakeLock:
    def __init__(self, acquired=True, expired=False, error=None):
        self.acquired = acquired
        self.expired = expired
        self.error = error
        self.released = False

    async def acquire(self):
        if self.error is not None:
            raise self.error
        return self.acquired

    async def release(self):
        if self.expired:
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        self.released = True


class FakeRedis:
    def __init__(self, lock):
        self._lock = lock
        self.calls = []

    def lock(self, name, timeout=None, blocking_timeout=None):
        self.calls.append((name, timeout, blocking_timeout))
        return self._lock


def _guard(lock):
    client = FakeRedis(lock)
    return client, RedisCommitGuard(client, timeout=10, blocking_timeout=3)


async def test_key_is_per_restaurant_and_day():
    assert commit_lock_key("r1", date(2025, 11, 5)) == "commit:r1:20251105"


async def test_guard_acquires_and_releases():
    lock = FakeLock()
    client, guard = _guard(lock)

    async with guard.hold("r1", date(2025, 11, 5)):
        assert not lock.released

    assert lock.released
    assert client.calls == [("commit:r1:20251105", 10, 3)]


async def test_guard_releases_on_error():
    lock = FakeLock()
    _, guard = _guard(lock)

    with pytest.raises(RuntimeError):
        async with guard.hold("r1", date(2025, 11, 5)):
            raise RuntimeError("insert failed")

    assert lock.released


async def test_busy_guard_raises_slot_busy():
    _, guard = _guard(FakeLock(acquired=False))

    with pytest.raises(SlotBusy):
        async with guard.hold("r1", date(2025, 11, 5)):
            pass


async def test_expired_lock_is_logged(caplog):
    _, guard = _guard(FakeLock(expired=True))

    with caplog.at_level(logging.WARNING, logger="backend.app.core.locks"):
        async with guard.hold("r1", date(2025, 11, 5)):
            pass

    assert "expired before release" in caplog.text


async def test_unreachable_redis_raises_guard_unavailable():
    lock = FakeLock(error=RedisConnectionError("Error 111 connecting to 127.0.0.1:1"))
    _, guard = _guard(lock)
    entered = False

    with pytest.raises(GuardUnavailable):
        async with guard.hold("r1", date(2025, 11, 5)):
            entered = True

    assert not entered
    assert not lock.released


async def test_socket_error_raises_guard_unavailable():
    _, guard = _guard(FakeLock(error=OSError("Connection reset by peer")))

    with pytest.raises(GuardUnavailable):
        async with guard.hold("r1", date(2025, 11, 5)):
            pass
