from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.redis_client import ping_redis
from backend.app.db.session import get_session, ping_database


router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    return {"ok": True}


@router.get("/readiness")
async def readiness(session: AsyncSession = Depends(get_session)) -> dict[str, bool]:
    """Bookings need both the store and the commit guard."""
    checks = {
        "database": await ping_database(session),
        "redis": await ping_redis(),
    }
    down = sorted(name for name, ok in checks.items() if not ok)
    if down:
        raise HTTPException(status_code=503, detail=f"Unavailable: {', '.join(down)}")
    return checks
