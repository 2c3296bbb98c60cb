from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, time

from backend.app.services.allocation import rank_tables
from backend.app.services.domain import Booking, BookingStatus, SlotAvailability, Table
from backend.app.services.slots import generate_time_slots, has_conflict, reservation_window
from backend.app.services.store import BookingStore


def group_by_table(bookings: Iterable[Booking]) -> dict[str, list[Booking]]:
    """Confirmed bookings keyed by table id."""
    grouped: dict[str, list[Booking]] = defaultdict(list)
    for booking in bookings:
        if booking.status == BookingStatus.CONFIRMED:
            grouped[booking.table_id].append(booking)
    return grouped


def first_free_table(
    ranked_tables: Sequence[Table],
    bookings_by_table: dict[str, list[Booking]],
    start: time,
    end: time,
) -> Table | None:
    for table in ranked_tables:
        if not has_conflict(start, end, bookings_by_table.get(table.id, ())):
            return table
    return None


def compute_availability(
    tables: Iterable[Table],
    bookings: Iterable[Booking],
    party_size: int,
) -> list[SlotAvailability]:
    """Per-slot availability for one day's inventory and bookings.

    Each slot reports the first conflict-free table in best-fit order; the
    choice is greedy per slot, not optimised across the day.
    """
    suitable = rank_tables(party_size, tables)
    by_table = group_by_table(bookings)

    result: list[SlotAvailability] = []
    for slot in generate_time_slots():
        start, end = reservation_window(slot)
        table = first_free_table(suitable, by_table, start, end)
        result.append(
            SlotAvailability(
                time=slot,
                available=table is not None,
                table_capacity=table.capacity if table is not None else None,
            )
        )
    return result


async def available_slots(
    store: BookingStore,
    restaurant_id: str,
    booking_date: date,
    party_size: int,
) -> list[SlotAvailability]:
    """Read the day's inventory and bookings, then compute availability.

    Read-only: nothing is held or reserved, so a later commit may still
    find the slot taken.
    """
    tables = await store.list_tables(restaurant_id)
    bookings = await store.list_confirmed_bookings(restaurant_id, booking_date)
    return compute_availability(tables, bookings, party_size)
