"""
Concurrent fan-out of gateway calls across tenants and venues.

Every sub-call runs to completion before the aggregate result is examined.
If any of them failed, the error of the earliest launched failing call is
raised and every partial result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, TypeVar

from skedda_client.config import SkeddaConstants
from skedda_client.directory import list_tenants, primary_tenant
from skedda_client.gateway import fetch_bookings, fetch_venue
from skedda_client.models import Booking, Space, TimeWindow, Venue
from skedda_client.session import SkeddaSession

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


async def gather_all_or_nothing(
    keys: list[K],
    call: Callable[[K], Awaitable[V]],
    limit: int = SkeddaConstants.MAX_CONCURRENT_FETCHES,
) -> list[V]:
    """
    Run ``call`` for every key concurrently and join them all.

    Args:
        keys: Inputs, one task each
        call: Coroutine function applied to each key
        limit: Maximum number of calls in flight

    Returns:
        Results indexed like ``keys``, regardless of completion order

    Raises:
        Exception: The first failure in launch order, once all calls finished
    """
    semaphore = asyncio.Semaphore(limit)

    async def bounded(key: K) -> V:
        async with semaphore:
            return await call(key)

    start_time = asyncio.get_running_loop().time()
    results = await asyncio.gather(
        *(bounded(key) for key in keys), return_exceptions=True
    )
    duration = asyncio.get_running_loop().time() - start_time
    logger.info(f"Fan-out of {len(keys)} calls completed in {duration:.2f}s")

    for key, result in zip(keys, results):
        if isinstance(result, BaseException):
            logger.error(f"Call for {key} failed: {result}")
            raise result

    return list(results)


async def fetch_all(
    session: SkeddaSession, tenants: Iterable[str]
) -> tuple[list[Venue], list[Space]]:
    """
    Fetch venue and spaces of every tenant concurrently.

    Args:
        session: Session shared by every call
        tenants: Tenant identifiers

    Returns:
        Tuple of (all venues, all spaces); each space keeps its venue id
    """
    await session.authenticate()

    tenant_list = list(tenants)
    logger.info(f"Fetching venues of {len(tenant_list)} domains...")
    results = await gather_all_or_nothing(
        tenant_list, lambda tenant: fetch_venue(session, tenant)
    )

    venues: list[Venue] = []
    spaces: list[Space] = []
    for venue, venue_spaces in results:
        venues.append(venue)
        spaces.extend(venue_spaces)

    return venues, spaces


async def fetch_bookings_across_venues(
    session: SkeddaSession, venues: Iterable[Venue], window: TimeWindow
) -> dict[int, list[Booking]]:
    """
    Fetch bookings in ``window`` for every distinct venue concurrently.

    Returns:
        Bookings keyed by venue id
    """
    distinct: dict[int, Venue] = {}
    for venue in venues:
        distinct.setdefault(venue.id, venue)

    venue_list = list(distinct.values())
    results = await gather_all_or_nothing(
        venue_list, lambda venue: fetch_bookings(session, venue.domain, window)
    )

    return {venue.id: bookings for venue, bookings in zip(venue_list, results)}


async def load_from_skedda(session: SkeddaSession) -> tuple[list[Venue], list[Space]]:
    """Discover every tenant of the account and fetch all venues and spaces."""
    primary = await primary_tenant(session)
    tenants = await list_tenants(session, primary)
    return await fetch_all(session, tenants)
