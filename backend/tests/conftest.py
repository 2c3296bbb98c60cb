import asyncio
import os
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, time
from types import SimpleNamespace

# Settings are read at import time; tests never connect to these.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from backend.app.db.models import Base, RestaurantModel, TableModel
from backend.app.db.session import get_session
from backend.app.db.store import SqlBookingStore
from backend.app.main import app
from backend.app.routers.deps import get_commit_guard, get_notification_sinks
from backend.app.services.domain import Booking, BookingStatus, CustomerInfo, Table


# Inventory used across the suite: two 2-tops, two 4-tops, one 6-top.
INVENTORY = [
    ("T1", 2, "Window"),
    ("T2", 2, "Window"),
    ("T3", 4, "Main"),
    ("T4", 4, "Main"),
    ("T5", 6, "Patio"),
]

BOOKING_DAY = date(2099, 11, 5)


class LocalCommitGuard:
    """In-process stand-in for the Redis commit guard."""

    def __init__(self) -> None:
        self._locks: dict[tuple, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.holds: list[tuple[str, date]] = []

    @asynccontextmanager
    async def hold(self, restaurant_id: str, booking_date: date):
        async with self._locks[(restaurant_id, booking_date)]:
            self.holds.append((restaurant_id, booking_date))
            yield


@pytest.fixture
def booking_day():
    return BOOKING_DAY


@pytest.fixture
def make_table():
    def _make(table_id: str, capacity: int, section: str = "Main") -> Table:
        return Table(id=table_id, restaurant_id="r1", name=table_id, capacity=capacity, section=section)

    return _make


@pytest.fixture
def make_booking():
    counter = iter(range(1, 10_000))

    def _make(
        table_id: str,
        start: str,
        end: str,
        *,
        party_size: int = 2,
        status: BookingStatus = BookingStatus.CONFIRMED,
        booking_date: date = BOOKING_DAY,
    ) -> Booking:
        sh, sm = map(int, start.split(":"))
        eh, em = map(int, end.split(":"))
        return Booking(
            id=f"b{next(counter)}",
            restaurant_id="r1",
            table_id=table_id,
            booking_date=booking_date,
            start_time=time(sh, sm),
            end_time=time(eh, em),
            party_size=party_size,
            status=status,
            customer=CustomerInfo(name="Guest", email="guest@example.com"),
        )

    return _make


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def restaurant(session_factory):
    """A seeded restaurant; ``tables`` maps table name to id."""
    async with session_factory() as session:
        row = RestaurantModel(
            name="Demo Bistro",
            address="123 Demo Ave",
            cuisine="Italian",
            phone="+1-555-0100",
            email="hello@demobistro.test",
            timezone="America/New_York",
        )
        session.add(row)
        await session.flush()
        tables = [
            TableModel(restaurant_id=row.id, name=name, capacity=capacity, section=section)
            for name, capacity, section in INVENTORY
        ]
        session.add_all(tables)
        await session.commit()
        return SimpleNamespace(id=row.id, tables={t.name: t.id for t in tables})


@pytest_asyncio.fixture
async def store(session_factory):
    async with session_factory() as session:
        yield SqlBookingStore(session)


@pytest.fixture
def guard():
    return LocalCommitGuard()


@pytest_asyncio.fixture
async def client(session_factory, guard):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_commit_guard] = lambda: guard
    app.dependency_overrides[get_notification_sinks] = lambda: []
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()
