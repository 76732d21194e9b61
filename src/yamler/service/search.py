"""Fuzzy search over flattened entries.

Each entry is scored against the query on its ``path`` and ``key`` fields.
A field's distance is ``1 - similarity`` of the query to the best-aligned
window of the field (difflib ratio), plus a small penalty for how far into
the field the match starts.  The entry keeps its best field; it matches when
that distance is within the threshold.  Lower is better.
"""

from __future__ import annotations

from collections.abc import Sequence
from difflib import SequenceMatcher

from yamler.models.document import Entry, SearchResult

DEFAULT_THRESHOLD = 0.4
DEFAULT_DISTANCE = 100

_SEARCH_FIELDS = ("path", "key")


def _partial_ratio(query: str, text: str) -> tuple[float, int]:
    """Best similarity of *query* to any ``len(query)`` window of *text*.

    Returns ``(ratio, window_start)``.
    """
    if len(text) <= len(query):
        return SequenceMatcher(None, query, text, autojunk=False).ratio(), 0

    width = len(query)
    best, best_start = 0.0, 0
    blocks = SequenceMatcher(None, query, text, autojunk=False).get_matching_blocks()
    for a, b, _size in blocks:
        start = max(0, min(b - a, len(text) - width))
        ratio = SequenceMatcher(None, query, text[start : start + width], autojunk=False).ratio()
        if ratio > best:
            best, best_start = ratio, start
    return best, best_start


def field_distance(query: str, text: str, distance: int = DEFAULT_DISTANCE) -> float:
    """Distance of a lower-cased *query* to a lower-cased field value."""
    start = text.find(query)
    if start >= 0:
        return start / distance
    ratio, start = _partial_ratio(query, text)
    return (1.0 - ratio) + start / distance


class SearchIndex:
    """Query-ready view over an entry list.

    Built once per loaded document and queried per keystroke; results are
    identical to scoring the entries from scratch for every query.
    """

    def __init__(
        self,
        entries: Sequence[Entry],
        threshold: float = DEFAULT_THRESHOLD,
        distance: int = DEFAULT_DISTANCE,
    ) -> None:
        self._entries = tuple(entries)
        self._fields = [
            tuple(str(getattr(entry, name)).lower() for name in _SEARCH_FIELDS)
            for entry in self._entries
        ]
        self.threshold = threshold
        self.distance = distance

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    def search(self, query: str) -> list[SearchResult]:
        """Return matches ordered by ascending distance, then entry order."""
        needle = query.strip().lower()
        if not needle or not self._entries:
            return []

        scored: list[tuple[float, int]] = []
        for position, fields in enumerate(self._fields):
            score = min(field_distance(needle, value, self.distance) for value in fields)
            if score <= self.threshold:
                scored.append((score, position))
        scored.sort()
        return [SearchResult(entry=self._entries[pos], score=score) for score, pos in scored]


def build_and_search(
    entries: Sequence[Entry],
    query: str,
    threshold: float = DEFAULT_THRESHOLD,
    distance: int = DEFAULT_DISTANCE,
) -> list[Entry]:
    """Index *entries* and return the matching entries for *query*, best first."""
    index = SearchIndex(entries, threshold=threshold, distance=distance)
    return [result.entry for result in index.search(query)]
