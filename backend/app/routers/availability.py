from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from backend.app.db.store import SqlBookingStore
from backend.app.routers.deps import get_store, http_error
from backend.app.routers.schemas import AvailabilityOut, SlotOut
from backend.app.services.availability import available_slots
from backend.app.services.errors import BookingError
from backend.app.services.slots import generate_time_slots


router = APIRouter()


@router.get("/slots", response_model=list[str])
async def list_slots() -> list[str]:
    """The fixed daily grid of start times."""
    return generate_time_slots()


@router.get("/restaurants/{restaurant_id}/availability", response_model=AvailabilityOut)
async def check_availability(
    restaurant_id: str,
    booking_date: date = Query(alias="date"),
    party_size: int = Query(ge=1, le=50),
    store: SqlBookingStore = Depends(get_store),
) -> AvailabilityOut:
    try:
        await store.get_active_restaurant(restaurant_id)
        slots = await available_slots(store, restaurant_id, booking_date, party_size)
    except BookingError as exc:
        raise http_error(exc) from exc

    return AvailabilityOut(
        restaurant_id=restaurant_id,
        booking_date=booking_date,
        party_size=party_size,
        slots=[SlotOut.from_domain(s) for s in slots],
    )
