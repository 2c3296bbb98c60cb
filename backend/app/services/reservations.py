from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from datetime import date
from typing import Protocol

from backend.app.services.allocation import rank_tables
from backend.app.services.availability import first_free_table, group_by_table
from backend.app.services.domain import Booking, CustomerInfo, NewBooking
from backend.app.services.errors import NoSuitableTable, SlotUnavailable
from backend.app.services.slots import TimeLike, format_time, reservation_window
from backend.app.services.store import BookingStore


logger = logging.getLogger(__name__)


class CommitGuard(Protocol):
    """Cross-process mutual exclusion for commits on one restaurant and date."""

    def hold(self, restaurant_id: str, booking_date: date) -> AbstractAsyncContextManager[None]: ...


async def commit_booking(
    store: BookingStore,
    *,
    restaurant_id: str,
    booking_date: date,
    start_time: TimeLike,
    party_size: int,
    customer: CustomerInfo,
    guard: CommitGuard | None = None,
) -> Booking:
    """Allocate a table for the party and persist a confirmed booking.

    Tables are re-ranked from the current inventory rather than taken from an
    earlier availability query. Inside the guard the day's bookings are read
    again and the best-fit table that is free for the whole window wins.
    """
    if party_size < 1:
        raise ValueError("party_size must be at least 1")

    start, end = reservation_window(start_time)

    ranked = rank_tables(party_size, await store.list_tables(restaurant_id))
    if not ranked:
        raise NoSuitableTable(party_size)

    hold = guard.hold(restaurant_id, booking_date) if guard is not None else nullcontext()
    async with hold:
        bookings = await store.list_confirmed_bookings(restaurant_id, booking_date)
        table = first_free_table(ranked, group_by_table(bookings), start, end)
        if table is None:
            raise SlotUnavailable(
                f"No table for {party_size} is free on {booking_date.isoformat()} "
                f"from {format_time(start)} to {format_time(end)}"
            )

        booking = await store.insert(
            NewBooking(
                restaurant_id=restaurant_id,
                table_id=table.id,
                booking_date=booking_date,
                start_time=start,
                end_time=end,
                party_size=party_size,
                customer=customer,
            )
        )

    logger.info(
        "Booking %s confirmed: restaurant=%s table=%s date=%s %s-%s party=%d",
        booking.id,
        restaurant_id,
        table.id,
        booking_date.isoformat(),
        format_time(start),
        format_time(end),
        party_size,
    )
    return booking
