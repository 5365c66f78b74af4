"""Local cache of the venue/space directory, keyed by existence only."""

from __future__ import annotations

import logging
import sqlite3

from diskcache import Cache
from pydantic import ValidationError

from skedda_client.config import AppSettings
from skedda_client.fanout import load_from_skedda
from skedda_client.models import Space, Venue
from skedda_client.session import SkeddaSession

logger = logging.getLogger(__name__)

DIRECTORY_KEY = "venues_and_spaces"


def open_cache(settings: AppSettings | None = None) -> Cache:
    settings = settings or AppSettings()
    return Cache(settings.cache_path)


def save_directory(cache: Cache, venues: list[Venue], spaces: list[Space]) -> None:
    cache.set(
        DIRECTORY_KEY,
        {
            "venues": [venue.model_dump(by_alias=True) for venue in venues],
            "spaces": [space.model_dump(by_alias=True) for space in spaces],
        },
    )
    logger.info(f"Cached {len(venues)} venues and {len(spaces)} spaces")


def load_cached_directory(cache: Cache) -> tuple[list[Venue], list[Space]] | None:
    """
    Restore the cached directory.

    Returns:
        Tuple of (venues, spaces), or None on a miss or unreadable entry
    """
    data = cache.get(DIRECTORY_KEY)
    if not isinstance(data, dict):
        return None

    try:
        venues = [Venue.model_validate(item) for item in data.get("venues", [])]
        spaces = [Space.model_validate(item) for item in data.get("spaces", [])]
    except ValidationError as e:
        logger.warning(f"Cached directory is unreadable: {e}")
        return None

    return venues, spaces


async def load_directory(
    session: SkeddaSession, cache: Cache, *, no_cache: bool = False
) -> tuple[list[Venue], list[Space]]:
    """
    Get venues and spaces from the cache, or from Skedda on a miss.

    With ``no_cache`` the cache is neither read nor written.
    """
    if no_cache:
        logger.info("Loading venues and spaces from Skedda...")
        return await load_from_skedda(session)

    cached = load_cached_directory(cache)
    if cached is not None:
        logger.debug("Using cached venues and spaces")
        return cached

    logger.info("Caching venues and spaces from Skedda...")
    venues, spaces = await load_from_skedda(session)
    refresh_cache(cache, venues, spaces)
    return venues, spaces


def refresh_cache(cache: Cache, venues: list[Venue], spaces: list[Space]) -> bool:
    """Write the directory to the cache; a failed write is logged, not raised."""
    try:
        save_directory(cache, venues, spaces)
    except (OSError, sqlite3.Error) as e:
        logger.warning(f"Failed to cache venues and spaces: {e}")
        return False
    return True
