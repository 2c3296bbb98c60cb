from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import BookingModel, RestaurantModel, TableModel
from backend.app.services.domain import (
    Booking,
    BookingStatus,
    CustomerInfo,
    NewBooking,
    Restaurant,
    Table,
)
from backend.app.services.errors import NotFound, SlotUnavailable, StoreUnavailable


logger = logging.getLogger(__name__)

RESTAURANT_FIELDS = ("name", "address", "cuisine", "description", "phone", "email", "timezone")

# Postgres names the violated index or constraint; SQLite only lists the columns.
SLOT_CONFLICT_MARKERS = (
    "uq_bookings_table_slot",
    "ex_bookings_table_window",
    "UNIQUE constraint failed: bookings.table_id",
)


def _to_restaurant(row: RestaurantModel) -> Restaurant:
    return Restaurant(
        id=row.id,
        name=row.name,
        address=row.address,
        cuisine=row.cuisine,
        is_active=row.is_active,
        phone=row.phone,
        email=row.email,
        description=row.description,
        timezone=row.timezone,
    )


def _to_table(row: TableModel) -> Table:
    return Table(
        id=row.id,
        restaurant_id=row.restaurant_id,
        name=row.name,
        capacity=row.capacity,
        section=row.section,
    )


def _to_booking(row: BookingModel) -> Booking:
    return Booking(
        id=row.id,
        restaurant_id=row.restaurant_id,
        table_id=row.table_id,
        booking_date=row.booking_date,
        start_time=row.start_time,
        end_time=row.end_time,
        party_size=row.party_size,
        status=BookingStatus(row.status),
        customer=CustomerInfo(
            name=row.customer_name,
            email=row.customer_email,
            phone=row.customer_phone,
            special_requests=row.special_requests,
        ),
    )


def _is_slot_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in SLOT_CONFLICT_MARKERS)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Store failure while %s: %s", action, exc)
        raise StoreUnavailable(f"Store failure while {action}") from exc


class SqlBookingStore:
    """``BookingStore`` backed by an SQLAlchemy ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # Restaurants

    async def _restaurant_row(self, restaurant_id: str) -> RestaurantModel:
        row = await self.session.get(RestaurantModel, restaurant_id)
        if row is None:
            raise NotFound(f"Restaurant {restaurant_id} not found")
        return row

    async def get_restaurant(self, restaurant_id: str) -> Restaurant:
        with _store_errors("reading restaurant"):
            return _to_restaurant(await self._restaurant_row(restaurant_id))

    async def get_active_restaurant(self, restaurant_id: str) -> Restaurant:
        """Like ``get_restaurant`` but soft-deleted restaurants are not found."""
        restaurant = await self.get_restaurant(restaurant_id)
        if not restaurant.is_active:
            raise NotFound(f"Restaurant {restaurant_id} not found")
        return restaurant

    async def list_restaurants(
        self,
        include_inactive: bool = False,
        search: str | None = None,
    ) -> list[Restaurant]:
        """Restaurants by name; ``search`` matches name, cuisine or address, case-insensitively."""
        query = select(RestaurantModel).order_by(RestaurantModel.name)
        if not include_inactive:
            query = query.where(RestaurantModel.is_active.is_(True))
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    RestaurantModel.name.ilike(pattern),
                    RestaurantModel.cuisine.ilike(pattern),
                    RestaurantModel.address.ilike(pattern),
                )
            )
        with _store_errors("listing restaurants"):
            rows = (await self.session.scalars(query)).all()
        return [_to_restaurant(r) for r in rows]

    async def create_restaurant(self, **fields: Any) -> Restaurant:
        row = RestaurantModel(**{k: fields.get(k) for k in RESTAURANT_FIELDS}, is_active=True)
        with _store_errors("creating restaurant"):
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
        return _to_restaurant(row)

    async def update_restaurant(self, restaurant_id: str, changes: dict[str, Any]) -> Restaurant:
        with _store_errors("updating restaurant"):
            row = await self._restaurant_row(restaurant_id)
            for key, value in changes.items():
                if key in RESTAURANT_FIELDS:
                    setattr(row, key, value)
            await self.session.commit()
            await self.session.refresh(row)
        return _to_restaurant(row)

    async def set_restaurant_active(self, restaurant_id: str, active: bool) -> Restaurant:
        """Soft delete (``active=False``) or restore a restaurant."""
        with _store_errors("changing restaurant state"):
            row = await self._restaurant_row(restaurant_id)
            row.is_active = active
            await self.session.commit()
            await self.session.refresh(row)
        return _to_restaurant(row)

    async def delete_restaurant(self, restaurant_id: str) -> None:
        """Permanently remove a restaurant with its tables and bookings."""
        with _store_errors("deleting restaurant"):
            row = await self._restaurant_row(restaurant_id)
            # Bookings reference tables with ON DELETE RESTRICT, so they go first.
            removed = await self.session.execute(
                delete(BookingModel).where(BookingModel.restaurant_id == restaurant_id)
            )
            await self.session.execute(delete(TableModel).where(TableModel.restaurant_id == restaurant_id))
            await self.session.delete(row)
            await self.session.commit()
        logger.info("Restaurant %s deleted with %d booking(s)", restaurant_id, removed.rowcount)

    # Tables

    async def list_tables(self, restaurant_id: str) -> list[Table]:
        query = (
            select(TableModel)
            .where(TableModel.restaurant_id == restaurant_id)
            .order_by(TableModel.name, TableModel.id)
        )
        with _store_errors("listing tables"):
            rows = (await self.session.scalars(query)).all()
        return [_to_table(r) for r in rows]

    async def get_table(self, table_id: str) -> Table:
        with _store_errors("reading table"):
            row = await self.session.get(TableModel, table_id)
        if row is None:
            raise NotFound(f"Table {table_id} not found")
        return _to_table(row)

    async def create_table(self, restaurant_id: str, *, name: str, capacity: int, section: str) -> Table:
        row = TableModel(restaurant_id=restaurant_id, name=name, capacity=capacity, section=section)
        with _store_errors("creating table"):
            await self._restaurant_row(restaurant_id)
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
        return _to_table(row)

    # Bookings

    async def list_confirmed_bookings(
        self,
        restaurant_id: str,
        booking_date: date,
        table_id: str | None = None,
    ) -> list[Booking]:
        query = select(BookingModel).where(
            BookingModel.restaurant_id == restaurant_id,
            BookingModel.booking_date == booking_date,
            BookingModel.status == BookingStatus.CONFIRMED.value,
        )
        if table_id is not None:
            query = query.where(BookingModel.table_id == table_id)
        with _store_errors("reading bookings"):
            rows = (await self.session.scalars(query.order_by(BookingModel.start_time))).all()
        return [_to_booking(r) for r in rows]

    async def list_bookings(self, restaurant_id: str, booking_date: date | None = None) -> list[Booking]:
        """Every booking regardless of status, by date then start time."""
        query = select(BookingModel).where(BookingModel.restaurant_id == restaurant_id)
        if booking_date is not None:
            query = query.where(BookingModel.booking_date == booking_date)
        query = query.order_by(BookingModel.booking_date, BookingModel.start_time)
        with _store_errors("listing bookings"):
            rows = (await self.session.scalars(query)).all()
        return [_to_booking(r) for r in rows]

    async def count_customer_bookings(self, restaurant_id: str, email: str) -> int:
        """Bookings of any status made at the restaurant under ``email``."""
        query = select(func.count(BookingModel.id)).where(
            BookingModel.restaurant_id == restaurant_id,
            func.lower(BookingModel.customer_email) == email.strip().lower(),
        )
        with _store_errors("counting customer bookings"):
            return await self.session.scalar(query)

    async def list_table_bookings(self, table_id: str, from_date: date) -> list[Booking]:
        query = (
            select(BookingModel)
            .where(
                BookingModel.table_id == table_id,
                BookingModel.booking_date >= from_date,
                BookingModel.status == BookingStatus.CONFIRMED.value,
            )
            .order_by(BookingModel.booking_date, BookingModel.start_time)
        )
        with _store_errors("reading table bookings"):
            rows = (await self.session.scalars(query)).all()
        return [_to_booking(r) for r in rows]

    async def insert(self, booking: NewBooking) -> Booking:
        row = BookingModel(
            restaurant_id=booking.restaurant_id,
            table_id=booking.table_id,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            party_size=booking.party_size,
            status=booking.status.value,
            customer_name=booking.customer.name,
            customer_email=booking.customer.email,
            customer_phone=booking.customer.phone,
            special_requests=booking.customer.special_requests,
        )
        self.session.add(row)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if _is_slot_conflict(exc):
                logger.info("Insert rejected for table %s on %s: %s", booking.table_id, booking.booking_date, exc.orig)
                raise SlotUnavailable("Slot already booked") from exc
            logger.error("Booking rejected by the store: %s", exc.orig)
            raise StoreUnavailable("Booking rejected by the store") from exc
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            logger.error("Store failure while inserting booking: %s", exc)
            raise StoreUnavailable("Store failure while inserting booking") from exc
        with _store_errors("reading inserted booking"):
            await self.session.refresh(row)
        return _to_booking(row)

    async def set_booking_status(self, booking_id: str, status: BookingStatus) -> Booking:
        with _store_errors("updating booking status"):
            row = await self.session.get(BookingModel, booking_id)
            if row is None:
                raise NotFound(f"Booking {booking_id} not found")
            row.status = status.value
            await self.session.commit()
            await self.session.refresh(row)
        return _to_booking(row)
