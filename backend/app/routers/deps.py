from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core import redis_client as redis_module
from backend.app.core.config import settings
from backend.app.core.locks import RedisCommitGuard
from backend.app.db.session import get_session
from backend.app.db.store import SqlBookingStore
from backend.app.services.errors import (
    BookingError,
    GuardUnavailable,
    InvalidBookingTime,
    NoSuitableTable,
    NotFound,
    SlotBusy,
    SlotUnavailable,
    StoreUnavailable,
)
from backend.app.services.notifications import NotificationSink, build_sinks


_STATUS_BY_ERROR: list[tuple[type[BookingError], int]] = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NoSuitableTable, status.HTTP_409_CONFLICT),
    (SlotUnavailable, status.HTTP_409_CONFLICT),
    (SlotBusy, status.HTTP_409_CONFLICT),
    (InvalidBookingTime, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (GuardUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def http_error(exc: BookingError) -> HTTPException:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(code, detail=str(exc))
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Booking error")


async def get_store(session: AsyncSession = Depends(get_session)) -> SqlBookingStore:
    return SqlBookingStore(session)


def get_commit_guard() -> RedisCommitGuard:
    if redis_module.redis_client is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Redis unavailable")
    return RedisCommitGuard(
        redis_module.redis_client,
        timeout=settings.COMMIT_LOCK_TIMEOUT_SECONDS,
        blocking_timeout=settings.COMMIT_LOCK_WAIT_SECONDS,
    )


def get_notification_sinks() -> list[NotificationSink]:
    return build_sinks(settings)
