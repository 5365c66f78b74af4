"""
Command line interface: configure, cache, list, find and book.

Examples:
  skedda configure
  skedda list
  skedda find --venue "Head Office" --on tomorrow --from 2pm --till 3:30pm
  skedda book --spaces "Room 4" --title "Standup" --from 9am --till 9:15am
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime, time, timedelta

import httpx
from diskcache import Cache
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from skedda_client.cache import load_directory, open_cache, refresh_cache
from skedda_client.config import AppSettings, SkeddaConstants, load_login_details
from skedda_client.credentials import configure
from skedda_client.errors import AuthenticationFailed, CredentialsMissing, SkeddaError
from skedda_client.fanout import fetch_bookings_across_venues, load_from_skedda
from skedda_client.gateway import bookings_by_space, create_booking
from skedda_client.matcher import Matcher
from skedda_client.models import Space, TimeWindow, Venue, find_by_id, sort_spaces
from skedda_client.session import SkeddaSession
from skedda_client.timeutils import is_aligned, parse_clock, resolve_day

logger = logging.getLogger(__name__)

console = Console()

PROG = "skedda"


class UsageError(Exception):
    """Invalid combination of command line inputs."""

    pass


# --- Window Arithmetic ---


def build_window(
    on: str | None,
    from_time: time | None,
    till_time: time | None,
    today: date | None = None,
) -> TimeWindow:
    """
    Turn ``--on``/``--from``/``--till`` into a window on a single day.

    No times means the whole day, ``--from`` alone means a default-length
    slot. A window spilling into the next day ends at 23:45 instead.

    Raises:
        UsageError: If the inputs do not describe a forward window
    """
    try:
        on_date = resolve_day(on, today)
    except ValueError as e:
        raise UsageError(f"invalid date {on!r}, use today, tomorrow or YYYY-MM-DD") from e

    if from_time is None and till_time is not None:
        raise UsageError("--from is required when --till is provided")

    if from_time is None:
        start = datetime.combine(on_date, time.min)
        end = start + timedelta(days=1)
    elif till_time is None:
        start = datetime.combine(on_date, from_time)
        end = start + timedelta(minutes=SkeddaConstants.DEFAULT_SLOT_MINUTES)
    else:
        start = datetime.combine(on_date, from_time)
        end = datetime.combine(on_date, till_time)

    # Pull 'end' back to the same date in case of full day
    if start.date() != end.date():
        granularity = timedelta(minutes=SkeddaConstants.BOOKING_GRANULARITY_MINUTES)
        end = datetime.combine(end.date(), time.min) - granularity

    if not start < end:
        raise UsageError("--from cannot be ahead of --till")

    return TimeWindow(start, end)


def check_bookable(window: TimeWindow) -> None:
    minutes = SkeddaConstants.BOOKING_GRANULARITY_MINUTES
    if not (is_aligned(window.start, minutes) and is_aligned(window.end, minutes)):
        raise UsageError(
            f"--from and --till has to be round to {minutes} minutes for booking"
        )


def _clock(value: datetime) -> str:
    return f"{value:%I:%M%p}".lstrip("0").lower()


def describe(spaces: list[Space], window: TimeWindow) -> str:
    names = ", ".join(space.name for space in spaces)
    return (
        f"{names} on {window.start:%a %d %b}, "
        f"between {_clock(window.start)} and {_clock(window.end)}"
    )


# --- Name Resolution ---


def select_venue_spaces(venues: list[Venue], spaces: list[Space], query: str) -> list[Space]:
    matches = Matcher(venues).match(query)
    if not matches:
        raise UsageError("no venue found")
    if len(matches) > 1:
        names = ", ".join(venue.name for venue in matches)
        raise UsageError(f"found multiple matching venues, be more specific: {names}")

    venue = matches[0]
    return [space for space in spaces if space.venue_id == venue.id]


def select_spaces(spaces: list[Space], queries: list[str]) -> list[Space]:
    return Matcher(spaces).match_multiple(queries)


def venues_for_spaces(venues: list[Venue], spaces: list[Space]) -> list[Venue]:
    """The venue of every space, in space order; each must be known."""
    result = []
    for space in spaces:
        venue = find_by_id(venues, space.venue_id)
        if venue is None:
            raise UsageError("could not find details about the venue")
        result.append(venue)
    return result


def venue_for_booking(venues: list[Venue], spaces: list[Space]) -> Venue:
    if not spaces:
        raise UsageError("no spaces found")

    venue_ids = {space.venue_id for space in spaces}
    if len(venue_ids) > 1:
        raise UsageError("you must choose spaces from a single venue only")

    return venues_for_spaces(venues, spaces[:1])[0]


# --- Commands ---


async def cmd_cache(args: argparse.Namespace, session: SkeddaSession, cache: Cache) -> None:
    venues, spaces = await load_from_skedda(session)
    if not refresh_cache(cache, venues, spaces):
        console.print("[yellow]Failed to save cache[/yellow]")
        return
    console.print(f"[green]Cached {len(venues)} venues and {len(spaces)} spaces[/green]")


async def cmd_list(args: argparse.Namespace, session: SkeddaSession, cache: Cache) -> None:
    venues, spaces = await load_directory(session, cache, no_cache=args.no_cache)

    table = Table(title="Venues and spaces")
    table.add_column("Venue", style="green")
    table.add_column("Space", style="cyan")
    table.add_column("ID", style="dim", no_wrap=True)

    for venue in venues:
        table.add_row(escape(venue.name), "", str(venue.id))
        for space in sort_spaces(s for s in spaces if s.venue_id == venue.id):
            table.add_row("", escape(space.name), str(space.id))

    console.print(table)


async def cmd_find(args: argparse.Namespace, session: SkeddaSession, cache: Cache) -> None:
    window = build_window(args.on, args.from_time, args.till_time)
    venues, spaces = await load_directory(session, cache, no_cache=args.no_cache)

    if args.venue:
        selected = select_venue_spaces(venues, spaces, args.venue)
    else:
        selected = select_spaces(spaces, args.spaces)

    if not selected:
        raise UsageError("no spaces found")

    selected_venues = venues_for_spaces(venues, selected)

    console.print(f"Finding bookings in {escape(describe(selected, window))}...")

    try:
        await session.authenticate()
    except (CredentialsMissing, AuthenticationFailed) as e:
        logger.debug(f"Continuing anonymously: {e}")
        console.print(
            "[yellow]Failed to authenticate. You will not see the title of the bookings.[/yellow]\n"
        )

    per_venue = await fetch_bookings_across_venues(session, selected_venues, window)

    all_bookings = [booking for bookings in per_venue.values() for booking in bookings]
    grouped = bookings_by_space(all_bookings, [space.id for space in selected])

    for space in sort_spaces(selected):
        venue = find_by_id(venues, space.venue_id)
        console.print(f"\n[bold]{escape(venue.name)} -- {escape(space.name)}[/bold]")

        bookings = grouped[space.id]
        if not bookings:
            console.print("\t[green]* Slot is available *[/green]")
            continue

        for i, booking in enumerate(bookings, 1):
            console.print(f"\t{i}. {escape(str(booking))}")


async def cmd_book(args: argparse.Namespace, session: SkeddaSession, cache: Cache) -> None:
    window = build_window(args.on, args.from_time, args.till_time)
    check_bookable(window)

    title = args.title.strip()
    if not title:
        raise UsageError("--title is required")

    venues, spaces = await load_directory(session, cache, no_cache=args.no_cache)
    selected = select_spaces(spaces, args.spaces)
    venue = venue_for_booking(venues, selected)

    console.print(f"Booking {escape(describe(selected, window))}...")

    if not args.assume_yes and not Confirm.ask("\nAre you sure?", default=False):
        return

    await session.authenticate()
    await create_booking(
        session, venue.domain, venue.id, [space.id for space in selected], title, window
    )
    console.print("\n[bold green]Booked![/bold green]")


COMMANDS = {
    "cache": cmd_cache,
    "list": cmd_list,
    "find": cmd_find,
    "book": cmd_book,
}


async def run_command(args: argparse.Namespace, settings: AppSettings) -> None:
    login = load_login_details(settings)
    command = COMMANDS[args.command]

    async with SkeddaSession(login.skedda_username, login.skedda_password) as session:
        with open_cache(settings) as cache:
            await command(args, session, cache)


# --- Argument Parsing ---


def _clock_arg(value: str) -> time:
    try:
        return parse_clock(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Book a space with Skedda",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:")[1] if __doc__ else None,
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logs")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "configure", aliases=["config"], help="Configure Skedda credentials"
    )

    no_cache = argparse.ArgumentParser(add_help=False)
    no_cache.add_argument(
        "-x",
        "--no-cache",
        action="store_true",
        help="Do not load venues and spaces from cache",
    )

    window = argparse.ArgumentParser(add_help=False)
    window.add_argument(
        "-d", "--on", help="DATE (possible values: today, tomorrow, YYYY-MM-DD)"
    )
    window.add_argument(
        "-a", "--from", dest="from_time", type=_clock_arg, help="TIME from (3:04pm or 3pm)"
    )
    window.add_argument(
        "-b", "--till", dest="till_time", type=_clock_arg, help="TIME till (3:04pm or 3pm)"
    )

    subparsers.add_parser("cache", aliases=["c"], help="Cache the venues and spaces")
    subparsers.add_parser(
        "list", aliases=["l"], parents=[no_cache], help="List venues and spaces"
    )

    find = subparsers.add_parser(
        "find", aliases=["f"], parents=[no_cache, window], help="Find bookings"
    )
    target = find.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "-v", "--venue", help="Venue to check (selects all spaces in the venue)"
    )
    target.add_argument(
        "-s", "--spaces", "--space", action="append", help="Spaces to check"
    )

    book = subparsers.add_parser(
        "book", parents=[no_cache, window], help="Book spaces for meeting"
    )
    book.add_argument(
        "-s", "--spaces", "--space", action="append", required=True, help="Spaces to book"
    )
    book.add_argument("-t", "--title", required=True, help="Title for the booking")
    book.add_argument(
        "-y",
        "--yes",
        "--assume-yes",
        dest="assume_yes",
        action="store_true",
        help="Assume yes to all prompts and run non-interactively",
    )

    return parser


ALIASES = {"config": "configure", "c": "cache", "l": "list", "f": "find"}


def main(argv: list[str] | None = None) -> int:
    """Main entry point with argument parsing."""
    args = build_parser().parse_args(argv)
    args.command = ALIASES.get(args.command, args.command)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    settings = AppSettings()

    try:
        if args.command == "configure":
            configure(settings)
            console.print("\n\n[green]Configured![/green]")
            return 0

        asyncio.run(run_command(args, settings))
        return 0

    except KeyboardInterrupt:
        console.print("\nCancelled by user")
        return 1

    except (SkeddaError, UsageError, httpx.HTTPError, ValidationError, ValueError) as e:
        console.print(f"\n[red]Error:[/red] {escape(str(e))}")

        if isinstance(e, CredentialsMissing):
            console.print(f"\nTry using `{PROG} configure`")
        elif isinstance(e, AuthenticationFailed):
            console.print(f"\nTry changing credentials using `{PROG} configure`")
        return 1


if __name__ == "__main__":
    sys.exit(main())
