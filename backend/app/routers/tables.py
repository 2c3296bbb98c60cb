from datetime import datetime

from fastapi import APIRouter, Depends, status

from backend.app.db.store import SqlBookingStore
from backend.app.routers.deps import get_store, http_error
from backend.app.routers.schemas import BookingOut, NextBookingOut, TableIn, TableOut
from backend.app.services.dashboard import next_booking
from backend.app.services.errors import BookingError


router = APIRouter()


@router.get("/restaurants/{restaurant_id}/tables", response_model=list[TableOut])
async def list_tables(
    restaurant_id: str,
    store: SqlBookingStore = Depends(get_store),
) -> list[TableOut]:
    try:
        await store.get_restaurant(restaurant_id)
        tables = await store.list_tables(restaurant_id)
    except BookingError as exc:
        raise http_error(exc) from exc
    return [TableOut.from_domain(t) for t in tables]


@router.post(
    "/restaurants/{restaurant_id}/tables",
    response_model=TableOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_table(
    restaurant_id: str,
    payload: TableIn,
    store: SqlBookingStore = Depends(get_store),
) -> TableOut:
    try:
        table = await store.create_table(
            restaurant_id,
            name=payload.name,
            capacity=payload.capacity,
            section=payload.section,
        )
    except BookingError as exc:
        raise http_error(exc) from exc
    return TableOut.from_domain(table)


@router.get("/tables/{table_id}/next-booking", response_model=NextBookingOut)
async def next_table_booking(
    table_id: str,
    store: SqlBookingStore = Depends(get_store),
) -> NextBookingOut:
    """Next confirmed booking on the table, in restaurant wall-clock time."""
    now = datetime.now()
    try:
        await store.get_table(table_id)
        upcoming = await store.list_table_bookings(table_id, now.date())
    except BookingError as exc:
        raise http_error(exc) from exc
    found = next_booking(upcoming, now)
    return NextBookingOut(
        table_id=table_id,
        booking=BookingOut.from_domain(found) if found is not None else None,
    )
