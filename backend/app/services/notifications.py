"""Best-effort outbound notifications for confirmed bookings.

A sink raises ``NotificationFailure`` when delivery fails; ``notify_quietly``
turns every such failure into a warning so a booking that is already
persisted is never reported as failed.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from backend.app.core.config import Settings
from backend.app.services.domain import Booking, Restaurant
from backend.app.services.errors import NotificationFailure
from backend.app.services.slots import format_time


logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


@dataclass(frozen=True)
class BookingSummary:
    booking: Booking
    restaurant: Restaurant
    # First booking at this restaurant under the customer's email.
    is_new_customer: bool = False


class NotificationSink(Protocol):
    name: str

    async def notify(self, summary: BookingSummary) -> None: ...


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_booking_datetime(booking: Booking) -> str:
    """E.g. ``Wednesday, November 5th, 2025 at 19:00``."""
    d = booking.booking_date
    return f"{d:%A}, {d:%B} {_ordinal(d.day)}, {d.year} at {format_time(booking.start_time)}"


class _HttpSink:
    name = "http"

    def __init__(self, *, timeout: float = 5.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout
        self._transport = transport

    async def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                return response
        except httpx.HTTPError as exc:
            raise NotificationFailure(f"{self.name} notification failed: {exc}") from exc


class CrmSink(_HttpSink):
    """Pushes the customer and booking to the external CRM endpoint."""

    name = "crm"

    def __init__(
        self,
        endpoint_url: str,
        *,
        api_key: str | None = None,
        business_ids: dict[str, str] | None = None,
        default_business_id: str | None = None,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self.business_ids = business_ids or {}
        self.default_business_id = default_business_id

    def business_id_for(self, restaurant_id: str) -> str | None:
        return self.business_ids.get(restaurant_id, self.default_business_id)

    def payload(self, summary: BookingSummary) -> dict[str, Any]:
        booking = summary.booking
        customer = booking.customer
        return {
            "customerName": customer.name,
            "customerEmail": customer.email,
            "customerPhone": customer.phone or "",
            "specialRequests": customer.special_requests or "",
            "restaurantId": summary.restaurant.id,
            "restaurantName": summary.restaurant.name,
            "bookingDate": booking.booking_date.isoformat(),
            "startTime": format_time(booking.start_time),
            "partySize": booking.party_size,
            "bookingId": booking.id,
            "businessId": self.business_id_for(summary.restaurant.id),
            "isNewCustomer": summary.is_new_customer,
        }

    async def notify(self, summary: BookingSummary) -> None:
        headers = {}
        if self.api_key:
            headers = {"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"}
        await self._post(self.endpoint_url, self.payload(summary), headers)


class EmailJsSink(_HttpSink):
    """Sends the booking confirmation email through EmailJS."""

    name = "email"

    def __init__(
        self,
        *,
        service_id: str,
        template_id: str,
        public_key: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key

    def template_params(self, summary: BookingSummary) -> dict[str, Any]:
        booking = summary.booking
        restaurant = summary.restaurant
        return {
            "to_name": booking.customer.name,
            "to_email": booking.customer.email,
            "booking_id": booking.id,
            "booking_date_time": format_booking_datetime(booking),
            "party_size": booking.party_size,
            "special_requests": booking.customer.special_requests or "None",
            "restaurant_name": restaurant.name,
            "restaurant_address": restaurant.address,
            "restaurant_phone": restaurant.phone or "",
            "restaurant_email": restaurant.email or "",
        }

    async def notify(self, summary: BookingSummary) -> None:
        await self._post(
            EMAILJS_SEND_URL,
            {
                "service_id": self.service_id,
                "template_id": self.template_id,
                "user_id": self.public_key,
                "template_params": self.template_params(summary),
            },
        )


def build_sinks(config: Settings) -> list[NotificationSink]:
    """Sinks enabled by configuration; unconfigured ones are left out."""
    sinks: list[NotificationSink] = []
    if config.CRM_ENDPOINT_URL:
        sinks.append(
            CrmSink(
                config.CRM_ENDPOINT_URL,
                api_key=config.CRM_API_KEY,
                business_ids=config.CRM_BUSINESS_IDS,
                default_business_id=config.CRM_DEFAULT_BUSINESS_ID,
                timeout=config.NOTIFY_TIMEOUT_SECONDS,
            )
        )
    if config.EMAILJS_SERVICE_ID and config.EMAILJS_TEMPLATE_ID and config.EMAILJS_PUBLIC_KEY:
        sinks.append(
            EmailJsSink(
                service_id=config.EMAILJS_SERVICE_ID,
                template_id=config.EMAILJS_TEMPLATE_ID,
                public_key=config.EMAILJS_PUBLIC_KEY,
                timeout=config.NOTIFY_TIMEOUT_SECONDS,
            )
        )
    return sinks


async def notify_quietly(sinks: Sequence[NotificationSink], summary: BookingSummary) -> list[str]:
    """Deliver to every sink; return the names of the sinks that failed."""
    failed: list[str] = []
    for sink in sinks:
        try:
            await sink.notify(summary)
        except Exception as exc:
            failed.append(sink.name)
            logger.warning(
                "Notification via %s failed for booking %s: %s",
                sink.name,
                summary.booking.id,
                exc,
            )
    return failed
