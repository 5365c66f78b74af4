"""Fuzzy resolution of user-typed names to venues and spaces."""

from __future__ import annotations

from typing import Generic, Iterable, TypeVar

from rapidfuzz import fuzz, process, utils

T = TypeVar("T")

DEFAULT_SCORE_CUTOFF = 80


class Matcher(Generic[T]):
    """
    Match free text against the display names of ``items``.

    Backed by fuzz.WRatio over case-folded, punctuation-stripped labels. An
    exact (case-insensitive) name match wins outright.
    """

    def __init__(self, items: Iterable[T], score_cutoff: float = DEFAULT_SCORE_CUTOFF):
        self.items = list(items)
        self.labels = [str(item) for item in self.items]
        self.score_cutoff = score_cutoff

    def match(self, query: str) -> list[T]:
        """Items whose label scores at or above the cutoff, best first."""
        query_key = utils.default_process(query)
        if not query_key:
            return []

        exact = [
            item
            for item, label in zip(self.items, self.labels)
            if utils.default_process(label) == query_key
        ]
        if exact:
            return exact

        # process.extract returns a tuple of (label, score, index)
        matches = process.extract(
            query,
            self.labels,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            score_cutoff=self.score_cutoff,
            limit=None,
        )
        return [self.items[index] for _, _, index in matches]

    def match_multiple(self, queries: Iterable[str]) -> list[T]:
        """Concatenate the matches of every query, dropping repeats."""
        result: list[T] = []
        seen: set[int] = set()
        for query in queries:
            for item in self.match(query):
                if id(item) not in seen:
                    seen.add(id(item))
                    result.append(item)
        return result
