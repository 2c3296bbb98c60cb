from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from backend.app.services.availability import group_by_table
from backend.app.services.domain import Booking, BookingStatus, Table


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableDay:
    table: Table
    bookings: list[Booking]
    # Bookings whose party no longer fits the table after a capacity edit.
    over_capacity: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DaySummary:
    restaurant_id: str
    booking_date: date
    total_tables: int
    booked_tables: int
    available_tables: int
    total_guests: int
    tables: list[TableDay]


def capacity_violations(tables: Iterable[Table], bookings: Iterable[Booking]) -> list[Booking]:
    """Confirmed bookings whose party size exceeds their table's current capacity.

    Party size is only checked against capacity when a booking is created, so
    these are reported here instead of being corrected.
    """
    capacity = {t.id: t.capacity for t in tables}
    return [
        b
        for b in bookings
        if b.status == BookingStatus.CONFIRMED
        and b.table_id in capacity
        and b.party_size > capacity[b.table_id]
    ]


def summarize_day(
    restaurant_id: str,
    booking_date: date,
    tables: list[Table],
    bookings: list[Booking],
) -> DaySummary:
    by_table = group_by_table(bookings)
    flagged = {b.id for b in capacity_violations(tables, bookings)}
    if flagged:
        logger.warning(
            "%d booking(s) on %s exceed their table capacity: %s",
            len(flagged),
            booking_date.isoformat(),
            ", ".join(sorted(flagged)),
        )

    rows = []
    for table in tables:
        day = sorted(by_table.get(table.id, []), key=lambda b: b.start_time)
        rows.append(TableDay(table=table, bookings=day, over_capacity=[b.id for b in day if b.id in flagged]))

    booked = sum(1 for row in rows if row.bookings)
    return DaySummary(
        restaurant_id=restaurant_id,
        booking_date=booking_date,
        total_tables=len(tables),
        booked_tables=booked,
        available_tables=len(tables) - booked,
        total_guests=sum(b.party_size for row in rows for b in row.bookings),
        tables=rows,
    )


def next_booking(bookings: Iterable[Booking], now: datetime) -> Booking | None:
    """Earliest confirmed booking that starts after ``now`` (local wall-clock)."""
    today = now.date()
    current = now.time().replace(second=0, microsecond=0)
    upcoming = [
        b
        for b in bookings
        if b.status == BookingStatus.CONFIRMED
        and (b.booking_date > today or (b.booking_date == today and b.start_time > current))
    ]
    if not upcoming:
        return None
    return min(upcoming, key=lambda b: (b.booking_date, b.start_time))
