from skedda_client.matcher import Matcher
from skedda_client.models import Space, Venue

SPACES = [
    Space(id=11, name="Board Room", venue_id=1),
    Space(id=12, name="Quiet Pod", venue_id=1),
    Space(id=13, name="Board Room Annex", venue_id=1),
    Space(id=21, name="Lab A", venue_id=2),
]


def names(items):
    return [item.name for item in items]


def test_exact_match_wins():
    assert names(Matcher(SPACES).match("board room")) == ["Board Room"]


def test_fuzzy_match():
    assert "Quiet Pod" in names(Matcher(SPACES).match("quiet pd"))


def test_nothing_above_cutoff():
    assert Matcher(SPACES).match("zzzz") == []


def test_blank_query():
    assert Matcher(SPACES).match("   ") == []


def test_match_multiple_drops_repeats():
    matched = Matcher(SPACES).match_multiple(["Lab A", "lab a", "Quiet Pod"])
    assert [space.id for space in matched] == [21, 12]


def test_venues_match_on_name():
    venues = [Venue(id=1, name="Head Office", domain="hq"), Venue(id=2, name="Lab", domain="lab")]
    assert [venue.id for venue in Matcher(venues).match("head office")] == [1]
