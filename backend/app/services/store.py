from __future__ import annotations

from datetime import date
from typing import Protocol

from backend.app.services.domain import Booking, NewBooking, Restaurant, Table


class BookingStore(Protocol):
    """Read/write operations the booking services need from persistence.

    Implementations raise ``StoreUnavailable`` for connectivity or schema
    failures, and ``SlotUnavailable`` when their own uniqueness guard rejects
    an insert.
    """

    async def get_restaurant(self, restaurant_id: str) -> Restaurant: ...

    async def list_tables(self, restaurant_id: str) -> list[Table]: ...

    async def list_confirmed_bookings(
        self,
        restaurant_id: str,
        booking_date: date,
        table_id: str | None = None,
    ) -> list[Booking]: ...

    async def insert(self, booking: NewBooking) -> Booking: ...
