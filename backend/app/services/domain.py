from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, time


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Table:
    id: str
    restaurant_id: str
    name: str
    capacity: int
    section: str


@dataclass(frozen=True)
class CustomerInfo:
    """Contact details carried on a booking; never consulted for allocation."""

    name: str
    email: str
    phone: str | None = None
    special_requests: str | None = None


@dataclass(frozen=True)
class NewBooking:
    restaurant_id: str
    table_id: str
    booking_date: date
    start_time: time
    end_time: time
    party_size: int
    customer: CustomerInfo
    status: BookingStatus = BookingStatus.CONFIRMED


@dataclass(frozen=True)
class Booking:
    id: str
    restaurant_id: str
    table_id: str
    booking_date: date
    start_time: time
    end_time: time
    party_size: int
    status: BookingStatus
    customer: CustomerInfo


@dataclass(frozen=True)
class SlotAvailability:
    time: str
    available: bool
    table_capacity: int | None = None


@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    address: str
    cuisine: str
    is_active: bool = True
    phone: str | None = None
    email: str | None = None
    description: str | None = None
    timezone: str | None = None
