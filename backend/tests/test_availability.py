import pytest

from backend.app.services.availability import available_slots, compute_availability
from backend.app.services.domain import BookingStatus, CustomerInfo, NewBooking
from backend.app.services.slots import generate_time_slots, reservation_window


@pytest.fixture
def inventory(make_table):
    return [
        make_table("T1", 2),
        make_table("T2", 2),
        make_table("T3", 4),
        make_table("T4", 4),
        make_table("T5", 6),
    ]


def _slot(result, at):
    return next(s for s in result if s.time == at)


def test_every_slot_reported(inventory):
    result = compute_availability(inventory, [], 2)

    assert [s.time for s in result] == generate_time_slots()
    assert all(s.available and s.table_capacity == 2 for s in result)


def test_second_two_top_covers_booked_first(inventory, make_booking):
    bookings = [make_booking("T1", "18:00", "20:30")]

    slot = _slot(compute_availability(inventory, bookings, 2), "18:00")

    assert slot.available is True
    assert slot.table_capacity == 2


def test_falls_back_to_four_top_when_two_tops_taken(inventory, make_booking):
    bookings = [
        make_booking("T1", "18:00", "20:30"),
        make_booking("T2", "18:00", "20:30"),
    ]

    for party_size in (1, 2):
        slot = _slot(compute_availability(inventory, bookings, party_size), "18:00")
        assert slot.available is True
        assert slot.table_capacity == 4


def test_slot_unavailable_when_every_suitable_table_taken(inventory, make_booking):
    bookings = [make_booking(t.id, "18:00", "20:30") for t in inventory]

    result = compute_availability(inventory, bookings, 2)

    assert _slot(result, "18:00").available is False
    assert _slot(result, "18:00").table_capacity is None
    # 16:00-18:30 overlaps, 15:30-18:00 only touches.
    assert _slot(result, "16:00").available is False
    assert _slot(result, "15:30").available is True
    assert _slot(result, "19:30").available is False


def test_cancelled_bookings_are_ignored(inventory, make_booking):
    bookings = [make_booking(t.id, "18:00", "20:30", status=BookingStatus.CANCELLED) for t in inventory]

    slot = _slot(compute_availability(inventory, bookings, 6), "18:00")

    assert slot.available is True
    assert slot.table_capacity == 6


def test_unsatisfiable_party_marks_every_slot_unavailable(inventory):
    result = compute_availability(inventory, [], 10)

    assert len(result) == 18
    assert not any(s.available for s in result)


def test_only_large_table_considered_for_large_party(inventory, make_booking):
    bookings = [make_booking("T5", "12:00", "14:30")]

    result = compute_availability(inventory, bookings, 5)

    assert _slot(result, "11:00").available is False
    assert _slot(result, "14:30").available is True
    assert _slot(result, "14:30").table_capacity == 6


@pytest.mark.asyncio
async def test_available_slots_reads_from_store(store, restaurant, booking_day):
    start, end = reservation_window("18:00")
    for name in ("T1", "T2"):
        await store.insert(
            NewBooking(
                restaurant_id=restaurant.id,
                table_id=restaurant.tables[name],
                booking_date=booking_day,
                start_time=start,
                end_time=end,
                party_size=2,
                customer=CustomerInfo(name="Guest", email="guest@example.com"),
            )
        )

    result = await available_slots(store, restaurant.id, booking_day, 2)

    assert _slot(result, "18:00").table_capacity == 4
    assert _slot(result, "11:00").table_capacity == 2


@pytest.mark.asyncio
async def test_available_slots_unknown_restaurant_has_nothing(store, booking_day):
    result = await available_slots(store, "missing", booking_day, 2)
    assert not any(s.available for s in result)
