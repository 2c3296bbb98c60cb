"""Slot grid, wall-clock helpers and the half-open overlap test.

Times are local wall-clock values for the restaurant; nothing here knows
about time zones.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import time

from backend.app.services.domain import Booking
from backend.app.services.errors import InvalidBookingTime

FIRST_SLOT = time(11, 0)
LAST_SLOT = time(19, 30)
SLOT_STEP_MINUTES = 30
RESERVATION_MINUTES = 150

MINUTES_PER_DAY = 24 * 60

TimeLike = str | time


def to_minutes(value: TimeLike) -> int:
    """Minutes since midnight for a ``time`` or an ``HH:MM[:SS]`` string."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise InvalidBookingTime(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise InvalidBookingTime(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def parse_time(value: TimeLike) -> time:
    return from_minutes(to_minutes(value))


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def generate_time_slots() -> list[str]:
    """The fixed daily grid of offerable start times, 11:00 through 19:30."""
    first = to_minutes(FIRST_SLOT)
    last = to_minutes(LAST_SLOT)
    return [
        format_time(from_minutes(m))
        for m in range(first, last + 1, SLOT_STEP_MINUTES)
    ]


def reservation_window(start: TimeLike) -> tuple[time, time]:
    """Return ``(start, end)`` for a reservation beginning at ``start``."""
    start_min = to_minutes(start)
    end_min = start_min + RESERVATION_MINUTES
    if end_min >= MINUTES_PER_DAY:
        raise InvalidBookingTime(
            f"A reservation starting at {format_time(from_minutes(start_min))} runs past midnight"
        )
    return from_minutes(start_min), from_minutes(end_min)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def has_conflict(start: TimeLike, end: TimeLike, bookings: Iterable[Booking]) -> bool:
    """True if [start, end) intersects any of ``bookings``.

    Callers pass bookings already narrowed to one table and to confirmed
    status. Touching endpoints do not conflict.
    """
    new_start = to_minutes(start)
    new_end = to_minutes(end)
    return any(
        overlaps(new_start, new_end, to_minutes(b.start_time), to_minutes(b.end_time))
        for b in bookings
    )
