class BookingError(Exception):
    """Base class for failures raised by the booking services."""


class NoSuitableTable(BookingError):
    """No table in the restaurant seats the requested party size."""

    def __init__(self, party_size: int) -> None:
        super().__init__(f"No table available for a party of {party_size}")
        self.party_size = party_size


class SlotUnavailable(BookingError):
    """Every suitable table is taken for the requested window."""


class SlotBusy(BookingError):
    """Another commit holds the guard for this restaurant and date."""


class InvalidBookingTime(BookingError, ValueError):
    """Start time is malformed or the reservation window leaves the day."""


class StoreUnavailable(BookingError):
    """The backing store could not be read or written."""


class NotificationFailure(BookingError):
    """A best-effort notification sink failed."""


class NotFound(BookingError):
    """A requested record does not exist."""


class GuardUnavailable(BookingError):
    """The commit guard's backend could not be reached."""
