from datetime import time

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from backend.app.db.models import BookingModel, TableModel
from backend.app.db.session import get_session
from backend.app.db.store import SqlBookingStore
from backend.app.main import app
from backend.app.services.availability import available_slots
from backend.app.services.domain import CustomerInfo, NewBooking
from backend.app.services.errors import StoreUnavailable
from backend.app.services.reservations import commit_booking


pytestmark = pytest.mark.asyncio

GUEST = CustomerInfo(name="Test Guest", email="guest@example.com")


def _dropped_connection():
    return OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


class UnreachableSession:
    """Session whose every round-trip fails as if the database went away."""

    async def _fail(self, *args, **kwargs):
        raise _dropped_connection()

    get = scalars = scalar = execute = commit = refresh = delete = _fail

    async def rollback(self):
        pass

    def add(self, row):
        pass


def _new_booking(restaurant, booking_day, **overrides):
    fields = dict(
        restaurant_id=restaurant.id,
        table_id=restaurant.tables["T3"],
        booking_date=booking_day,
        start_time=time(18, 0),
        end_time=time(20, 30),
        party_size=4,
        customer=GUEST,
    )
    fields.update(overrides)
    return NewBooking(**fields)


async def test_availability_fails_when_store_is_down(booking_day):
    store = SqlBookingStore(UnreachableSession())

    with pytest.raises(StoreUnavailable):
        await available_slots(store, "r1", booking_day, 2)


async def test_commit_fails_when_store_is_down(booking_day, guard):
    store = SqlBookingStore(UnreachableSession())

    with pytest.raises(StoreUnavailable):
        await commit_booking(
            store,
            restaurant_id="r1",
            booking_date=booking_day,
            start_time="18:00",
            party_size=2,
            customer=GUEST,
            guard=guard,
        )

    assert guard.holds == []


async def test_failed_insert_is_rolled_back(store, restaurant, booking_day, monkeypatch):
    async def failing_commit():
        raise _dropped_connection()

    monkeypatch.setattr(store.session, "commit", failing_commit)

    with pytest.raises(StoreUnavailable):
        await store.insert(_new_booking(restaurant, booking_day))

    monkeypatch.undo()
    assert await store.list_confirmed_bookings(restaurant.id, booking_day) == []


async def test_check_violation_is_not_reported_as_taken_slot(store, restaurant, booking_day):
    with pytest.raises(StoreUnavailable) as excinfo:
        await store.insert(_new_booking(restaurant, booking_day, party_size=0))

    assert str(excinfo.value) == "Booking rejected by the store"


async def test_http_returns_503_when_store_is_down(client, booking_day):
    async def unreachable_session():
        yield UnreachableSession()

    app.dependency_overrides[get_session] = unreachable_session

    availability = await client.get(
        "/api/v1/restaurants/r1/availability",
        params={"date": booking_day.isoformat(), "party_size": 2},
    )
    commit = await client.post(
        "/api/v1/restaurants/r1/bookings",
        json={
            "booking_date": booking_day.isoformat(),
            "start_time": "18:00",
            "party_size": 2,
            "customer_name": "Test Guest",
            "customer_email": "guest@example.com",
        },
    )

    assert availability.status_code == 503
    assert commit.status_code == 503
    assert commit.json()["detail"] == "Store failure while reading restaurant"


async def test_customer_bookings_counted_by_email(store, restaurant, booking_day):
    assert await store.count_customer_bookings(restaurant.id, "guest@example.com") == 0

    await store.insert(_new_booking(restaurant, booking_day))

    assert await store.count_customer_bookings(restaurant.id, " Guest@Example.com ") == 1
    assert await store.count_customer_bookings("other", "guest@example.com") == 0


async def test_hard_delete_removes_tables_and_bookings(store, restaurant, booking_day, session_factory):
    await store.insert(_new_booking(restaurant, booking_day))

    await store.delete_restaurant(restaurant.id)

    async with session_factory() as session:
        tables = await session.scalar(select(func.count(TableModel.id)))
        bookings = await session.scalar(select(func.count(BookingModel.id)))
    assert (tables, bookings) == (0, 0)
