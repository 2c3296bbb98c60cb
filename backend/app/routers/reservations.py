from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from backend.app.core.locks import RedisCommitGuard
from backend.app.db.store import SqlBookingStore
from backend.app.routers.deps import get_commit_guard, get_notification_sinks, get_store, http_error
from backend.app.routers.schemas import BookingOut, BookingStatusIn, CommitBookingIn, DaySummaryOut
from backend.app.services.dashboard import summarize_day
from backend.app.services.domain import BookingStatus, CustomerInfo
from backend.app.services.errors import BookingError
from backend.app.services.notifications import BookingSummary, NotificationSink, notify_quietly
from backend.app.services.reservations import commit_booking


router = APIRouter()


@router.post(
    "/restaurants/{restaurant_id}/bookings",
    response_model=BookingOut,
    status_code=status.HTTP_201_CREATED,
)
async def commit_endpoint(
    restaurant_id: str,
    payload: CommitBookingIn,
    background_tasks: BackgroundTasks,
    store: SqlBookingStore = Depends(get_store),
    guard: RedisCommitGuard = Depends(get_commit_guard),
    sinks: list[NotificationSink] = Depends(get_notification_sinks),
) -> BookingOut:
    try:
        restaurant = await store.get_active_restaurant(restaurant_id)
        # Read before the insert so a failed lookup cannot follow a persisted booking.
        is_new_customer = False
        if sinks:
            previous = await store.count_customer_bookings(restaurant_id, payload.customer_email)
            is_new_customer = previous == 0
        booking = await commit_booking(
            store,
            restaurant_id=restaurant_id,
            booking_date=payload.booking_date,
            start_time=payload.start_time,
            party_size=payload.party_size,
            customer=CustomerInfo(
                name=payload.customer_name,
                email=payload.customer_email,
                phone=payload.customer_phone,
                special_requests=payload.special_requests,
            ),
            guard=guard,
        )
    except BookingError as exc:
        raise http_error(exc) from exc

    if sinks:
        summary = BookingSummary(booking=booking, restaurant=restaurant, is_new_customer=is_new_customer)
        background_tasks.add_task(notify_quietly, sinks, summary)
    return BookingOut.from_domain(booking)


@router.get("/restaurants/{restaurant_id}/bookings", response_model=list[BookingOut])
async def list_bookings(
    restaurant_id: str,
    booking_date: date | None = Query(default=None, alias="date"),
    store: SqlBookingStore = Depends(get_store),
) -> list[BookingOut]:
    try:
        await store.get_restaurant(restaurant_id)
        bookings = await store.list_bookings(restaurant_id, booking_date)
    except BookingError as exc:
        raise http_error(exc) from exc
    return [BookingOut.from_domain(b) for b in bookings]


@router.patch("/bookings/{booking_id}/status", response_model=BookingOut)
async def update_booking_status(
    booking_id: str,
    payload: BookingStatusIn,
    store: SqlBookingStore = Depends(get_store),
) -> BookingOut:
    try:
        booking = await store.set_booking_status(booking_id, BookingStatus(payload.status))
    except BookingError as exc:
        raise http_error(exc) from exc
    return BookingOut.from_domain(booking)


@router.get("/restaurants/{restaurant_id}/summary", response_model=DaySummaryOut)
async def day_summary(
    restaurant_id: str,
    booking_date: date = Query(alias="date"),
    store: SqlBookingStore = Depends(get_store),
) -> DaySummaryOut:
    try:
        await store.get_restaurant(restaurant_id)
        tables = await store.list_tables(restaurant_id)
        bookings = await store.list_confirmed_bookings(restaurant_id, booking_date)
    except BookingError as exc:
        raise http_error(exc) from exc
    return DaySummaryOut.from_domain(summarize_day(restaurant_id, booking_date, tables, bookings))
