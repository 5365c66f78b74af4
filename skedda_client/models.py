"""Venue, space and booking records as returned by Skedda."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import cached_property
from typing import Annotated, Any, Callable, Iterable, Protocol, TypeVar

from dateutil.rrule import rruleset
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from skedda_client.recurrence import has_occurrences, parse_rule_set


def null_as(empty: Callable[[], Any]) -> BeforeValidator:
    """Read a JSON ``null`` as the empty value built by ``empty``."""
    return BeforeValidator(lambda value: empty() if value is None else value)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Venue(_Record):
    id: int
    name: str
    domain: str = Field(alias="subdomain")

    def __str__(self) -> str:
        return self.name


class Space(_Record):
    id: int
    name: str
    venue_id: int = Field(alias="venue")

    def __str__(self) -> str:
        return self.name


class Booking(_Record):
    id: int
    title: str | None = None
    start: datetime
    end: datetime
    recurrence_rule: str | None = Field(default=None, alias="recurrenceRule")
    space_ids: Annotated[list[int], null_as(list)] = Field(default_factory=list, alias="spaces")
    venue_id: int = Field(alias="venue")

    @field_validator("recurrence_rule")
    @classmethod
    def _rule_must_parse(cls, value: str | None) -> str | None:
        if value:
            parse_rule_set(value)
        return value

    @cached_property
    def rule_set(self) -> rruleset | None:
        if not self.recurrence_rule:
            return None
        return parse_rule_set(self.recurrence_rule)

    @property
    def is_recurring(self) -> bool:
        return has_occurrences(self.rule_set)

    def __str__(self) -> str:
        title = self.title or "[Unknown]"
        if self.is_recurring:
            return f"{title} -- {_clock(self.start)} - {_clock(self.end)} (Recurring)"
        return f"{title} -- {self.start:%Y-%m-%d} {_clock(self.start)} - {_clock(self.end)}"


def _clock(value: datetime) -> str:
    return value.strftime("%I:%M%p").lower()


@dataclass(frozen=True)
class TimeWindow:
    """A query or booking window; ``start`` never comes after ``end``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"window start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )


class _Identified(Protocol):
    id: int


R = TypeVar("R", bound=_Identified)


def find_by_id(items: Iterable[R], item_id: int) -> R | None:
    for item in items:
        if item.id == item_id:
            return item
    return None


def sort_spaces(spaces: Iterable[Space]) -> list[Space]:
    return sorted(spaces, key=lambda s: (s.venue_id, s.name))
