from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from backend.app.services.dashboard import DaySummary
from backend.app.services.domain import Booking, Restaurant, SlotAvailability, Table
from backend.app.services.slots import format_time

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class SlotOut(BaseModel):
    time: str
    available: bool
    table_capacity: int | None = None

    @classmethod
    def from_domain(cls, slot: SlotAvailability) -> "SlotOut":
        return cls(time=slot.time, available=slot.available, table_capacity=slot.table_capacity)


class AvailabilityOut(BaseModel):
    restaurant_id: str
    booking_date: date
    party_size: int
    slots: list[SlotOut]


class CommitBookingIn(BaseModel):
    booking_date: date
    # Local wall-clock, e.g. "18:30"
    start_time: str = Field(pattern=HHMM_PATTERN)
    party_size: int = Field(ge=1, le=50)
    customer_name: str = Field(min_length=1, max_length=200)
    customer_email: str = Field(min_length=3, max_length=254)
    customer_phone: str | None = Field(default=None, max_length=32)
    special_requests: str | None = Field(default=None, max_length=1024)


class BookingOut(BaseModel):
    id: str
    restaurant_id: str
    table_id: str
    booking_date: date
    start_time: str
    end_time: str
    party_size: int
    status: str
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    special_requests: str | None = None

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingOut":
        return cls(
            id=booking.id,
            restaurant_id=booking.restaurant_id,
            table_id=booking.table_id,
            booking_date=booking.booking_date,
            start_time=format_time(booking.start_time),
            end_time=format_time(booking.end_time),
            party_size=booking.party_size,
            status=booking.status.value,
            customer_name=booking.customer.name,
            customer_email=booking.customer.email,
            customer_phone=booking.customer.phone,
            special_requests=booking.customer.special_requests,
        )


class BookingStatusIn(BaseModel):
    # Confirmation only happens through the commit endpoint.
    status: Literal["cancelled", "completed"]


class TableIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(ge=1, le=50)
    section: str = Field(min_length=1, max_length=100)


class TableOut(BaseModel):
    id: str
    restaurant_id: str
    name: str
    capacity: int
    section: str

    @classmethod
    def from_domain(cls, table: Table) -> "TableOut":
        return cls(
            id=table.id,
            restaurant_id=table.restaurant_id,
            name=table.name,
            capacity=table.capacity,
            section=table.section,
        )


class NextBookingOut(BaseModel):
    table_id: str
    booking: BookingOut | None = None


class RestaurantIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1, max_length=500)
    cuisine: str = Field(min_length=1, max_length=100)
    description: str | None = None
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=254)
    timezone: str | None = Field(default=None, max_length=64)


class RestaurantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    address: str | None = Field(default=None, min_length=1, max_length=500)
    cuisine: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=254)
    timezone: str | None = Field(default=None, max_length=64)


class RestaurantOut(BaseModel):
    id: str
    name: str
    address: str
    cuisine: str
    is_active: bool
    description: str | None = None
    phone: str | None = None
    email: str | None = None
    timezone: str | None = None

    @classmethod
    def from_domain(cls, restaurant: Restaurant) -> "RestaurantOut":
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            address=restaurant.address,
            cuisine=restaurant.cuisine,
            is_active=restaurant.is_active,
            description=restaurant.description,
            phone=restaurant.phone,
            email=restaurant.email,
            timezone=restaurant.timezone,
        )


class TableDayOut(BaseModel):
    table: TableOut
    bookings: list[BookingOut]
    over_capacity: list[str]


class DaySummaryOut(BaseModel):
    restaurant_id: str
    booking_date: date
    total_tables: int
    booked_tables: int
    available_tables: int
    total_guests: int
    tables: list[TableDayOut]

    @classmethod
    def from_domain(cls, summary: DaySummary) -> "DaySummaryOut":
        return cls(
            restaurant_id=summary.restaurant_id,
            booking_date=summary.booking_date,
            total_tables=summary.total_tables,
            booked_tables=summary.booked_tables,
            available_tables=summary.available_tables,
            total_guests=summary.total_guests,
            tables=[
                TableDayOut(
                    table=TableOut.from_domain(row.table),
                    bookings=[BookingOut.from_domain(b) for b in row.bookings],
                    over_capacity=row.over_capacity,
                )
                for row in summary.tables
            ],
        )
