"""
Per-tenant venue, booking and reservation calls.

Every call resolves a fresh verification token first and sends it in the
``X-Skedda-RequestVerificationToken`` header.
"""

from __future__ import annotations

import logging

import httpx
from typing import Annotated

from pydantic import BaseModel, Field

from skedda_client.config import SkeddaConstants
from skedda_client.errors import UnknownStatus, UpstreamError, VenueCountMismatch
from skedda_client.models import Booking, Space, TimeWindow, Venue, null_as
from skedda_client.recurrence import occupies_window
from skedda_client.session import SkeddaSession, extract_error_detail
from skedda_client.timeutils import format_timestamp, truncate_to_minute

logger = logging.getLogger(__name__)


class _VenueResponse(BaseModel):
    venue: Annotated[list[Venue], null_as(list)] = Field(default_factory=list)
    spaces: Annotated[list[Space], null_as(list)] = Field(default_factory=list)


class _BookingsResponse(BaseModel):
    bookings: Annotated[list[Booking], null_as(list)] = Field(default_factory=list)


def raise_for_upstream_error(response: httpx.Response, expected: int = 200) -> None:
    """
    Raise the most specific error a failed response allows.

    Raises:
        UpstreamError: If the body carries ``errors[0].detail``
        UnknownStatus: Otherwise
    """
    if response.status_code == expected:
        return

    detail = extract_error_detail(response)
    if detail is None:
        raise UnknownStatus(response.status_code)

    raise UpstreamError(detail, response.status_code)


async def fetch_venue(session: SkeddaSession, tenant: str) -> tuple[Venue, list[Space]]:
    """
    Fetch the venue of a tenant together with its spaces.

    Args:
        session: Session to use
        tenant: Skedda subdomain

    Returns:
        Tuple of (venue, spaces)

    Raises:
        VenueCountMismatch: If the response does not hold exactly one venue
    """
    await session.authenticate()

    response = await session.request_with_token("GET", tenant, "/webs")
    raise_for_upstream_error(response)

    body = _VenueResponse.model_validate_json(response.content)
    if len(body.venue) != 1:
        raise VenueCountMismatch(len(body.venue))

    venue = body.venue[0]
    logger.info(f"Fetched venue {venue.name} with {len(body.spaces)} spaces")
    return venue, body.spaces


async def fetch_bookings(
    session: SkeddaSession, tenant: str, window: TimeWindow
) -> list[Booking]:
    """
    Fetch bookings of a tenant that fall inside ``window``.

    Skedda filters one-off bookings by the window itself but returns
    recurring series unfiltered, so those are checked locally.

    The session is used as it is: an anonymous session still sees the
    bookings, only without their titles.

    Args:
        session: Session to use
        tenant: Skedda subdomain
        window: Query window, naive local time

    Returns:
        Bookings in upstream order
    """
    params = {
        "start": format_timestamp(window.start),
        "end": format_timestamp(window.end),
    }
    response = await session.request_with_token(
        "GET", tenant, "/bookingslists", params=params
    )
    raise_for_upstream_error(response)

    body = _BookingsResponse.model_validate_json(response.content)

    bookings = [
        booking
        for booking in body.bookings
        if not booking.is_recurring or occupies_window(window, booking)
    ]
    logger.info(
        f"Fetched {len(bookings)} bookings from {tenant} "
        f"({len(body.bookings) - len(bookings)} recurring filtered out)"
    )
    return bookings


def create_booking_payload(
    venue_id: int, space_ids: list[int], title: str, window: TimeWindow
) -> dict[str, dict]:
    return {
        "booking": {
            "start": format_timestamp(truncate_to_minute(window.start)),
            "end": format_timestamp(truncate_to_minute(window.end)),
            "title": title,
            "venue": venue_id,
            "spaces": space_ids,
            "type": SkeddaConstants.BOOKING_TYPE,
            "price": SkeddaConstants.BOOKING_PRICE,
        }
    }


async def create_booking(
    session: SkeddaSession,
    tenant: str,
    venue_id: int,
    space_ids: list[int],
    title: str,
    window: TimeWindow,
) -> None:
    """
    Book ``space_ids`` of a venue for ``window``.

    Raises:
        UpstreamError: If Skedda refuses the booking with a reason
        UnknownStatus: If it refuses without one
    """
    await session.authenticate()

    payload = create_booking_payload(venue_id, space_ids, title, window)
    logger.info(f"Booking spaces {space_ids} at {tenant} for {window.start:%Y-%m-%d %H:%M}")
    response = await session.request_with_token(
        "POST", tenant, "/bookings", json=payload
    )
    raise_for_upstream_error(response)
    logger.info("Booking confirmed")


def bookings_by_space(
    bookings: list[Booking], space_ids: list[int]
) -> dict[int, list[Booking]]:
    """Group bookings under each of ``space_ids``, every id present even if empty."""
    grouped: dict[int, list[Booking]] = {space_id: [] for space_id in space_ids}
    for booking in bookings:
        for space_id in booking.space_ids:
            if space_id in grouped:
                grouped[space_id].append(booking)
    return grouped
