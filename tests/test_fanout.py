"""Tests for the all-or-nothing concurrent fan-out."""

import asyncio
from datetime import datetime

import pytest

from skedda_client.errors import InvalidTenant, UnexpectedRedirect, UnknownStatus, UpstreamError
from skedda_client.fanout import (
    fetch_all,
    fetch_bookings_across_venues,
    gather_all_or_nothing,
    load_from_skedda,
)
from skedda_client.models import TimeWindow, Venue
from tests.fake_skedda import error_body

WINDOW = TimeWindow(datetime(2024, 6, 13, 9, 0), datetime(2024, 6, 13, 17, 0))


class TestGatherAllOrNothing:
    @pytest.mark.asyncio
    async def test_results_follow_launch_order(self):
        async def call(delay):
            await asyncio.sleep(delay)
            return delay

        assert await gather_all_or_nothing([0.03, 0.0, 0.01], call) == [0.03, 0.0, 0.01]

    @pytest.mark.asyncio
    async def test_waits_for_stragglers_then_raises_first_in_launch_order(self):
        finished = []

        async def call(key):
            if key == "slow-ok":
                await asyncio.sleep(0.02)
            elif key == "late-fail":
                await asyncio.sleep(0.01)
                raise ValueError("late")
            elif key == "early-fail":
                raise KeyError("early")
            finished.append(key)
            return key

        with pytest.raises(ValueError, match="late"):
            await gather_all_or_nothing(["a", "late-fail", "slow-ok", "early-fail"], call)

        assert sorted(finished) == ["a", "slow-ok"]

    @pytest.mark.asyncio
    async def test_limit_caps_calls_in_flight(self):
        in_flight = 0
        peak = 0

        async def call(key):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            return key

        await gather_all_or_nothing(list(range(10)), call, limit=3)
        assert peak == 3


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_combines_every_tenant(self, skedda):
        async with skedda.session() as session:
            venues, spaces = await fetch_all(session, ["acme", "globex", "initech"])

        assert sorted(venue.id for venue in venues) == [1, 2, 3]
        assert sorted(space.id for space in spaces) == [11, 12, 21, 31, 32]
        assert len(skedda.calls("/logins")) == 1

    @pytest.mark.asyncio
    async def test_one_failure_fails_everything(self, skedda):
        skedda.venue_responses["globex"] = (500, error_body("Venue is archived"))

        async with skedda.session() as session:
            with pytest.raises(UpstreamError, match="Venue is archived"):
                await fetch_all(session, ["acme", "globex", "initech"])

        # siblings still ran to completion
        hosts = {r.url.host for r in skedda.calls("/webs", "GET")}
        assert hosts == {"acme.skedda.com", "globex.skedda.com", "initech.skedda.com"}

    @pytest.mark.asyncio
    async def test_empty_tenant_list(self, skedda):
        async with skedda.session() as session:
            assert await fetch_all(session, []) == ([], [])


class TestFetchBookingsAcrossVenues:
    @pytest.mark.asyncio
    async def test_keyed_by_venue_and_deduplicated(self, skedda):
        skedda.tenants["globex"]["bookings"] = [
            {
                "id": 5,
                "title": "Demo",
                "start": "2024-06-13T10:00:00",
                "end": "2024-06-13T11:00:00",
                "recurrenceRule": None,
                "spaces": [21],
                "venue": 2,
            }
        ]
        acme = Venue(id=1, name="Acme", domain="acme")
        globex = Venue(id=2, name="Globex", domain="globex")

        async with skedda.session() as session:
            result = await fetch_bookings_across_venues(session, [acme, globex, acme], WINDOW)

        assert set(result) == {1, 2}
        assert result[1] == []
        assert [b.id for b in result[2]] == [5]
        assert len(skedda.calls("/bookingslists")) == 2

    @pytest.mark.asyncio
    async def test_one_failure_fails_everything(self, skedda):
        acme = Venue(id=1, name="Acme", domain="acme")
        gone = Venue(id=9, name="Gone", domain="gone")

        async with skedda.session() as session:
            with pytest.raises(InvalidTenant, match="invalid domain: gone"):
                await fetch_bookings_across_venues(session, [acme, gone], WINDOW)


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_discover_and_fetch(self, skedda):
        async with skedda.session() as session:
            venues, spaces = await load_from_skedda(session)

        venue_ids = {venue.id for venue in venues}
        assert venue_ids == {1, 2, 3}
        assert spaces
        assert all(space.venue_id in venue_ids for space in spaces)

    @pytest.mark.asyncio
    async def test_primary_probe_failure_stops_discovery(self, skedda):
        skedda.primary_location = "https://elsewhere.example.com/"

        async with skedda.session() as session:
            with pytest.raises(UnexpectedRedirect, match="unknown URL"):
                await load_from_skedda(session)

        assert skedda.calls("/webs") == []

    @pytest.mark.asyncio
    async def test_unknown_status_surfaces(self, skedda):
        skedda.venue_responses["initech"] = (502, "Bad Gateway")

        async with skedda.session() as session:
            with pytest.raises(UnknownStatus):
                await load_from_skedda(session)
