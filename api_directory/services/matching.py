"""
Approximate weighted multi-field matching.

Each field is scored with a bit-parallel (Wu-Manber "bitap") approximate
substring search. Distances are on a 0.0 (exact) .. 1.0 (anything) scale:

    errors / len(query) + offset / location_distance

is compared against the threshold. A field that matches then gets a small
length penalty, coverage_weight * (1 - len(query) / len(field)), which only
affects ranking: a short field that is mostly the query beats a long one.
A field equal to the query scores 0.0, and a match far into a long
description costs more than one at the start of a name.
"""

import logging
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from api_directory.core.config import (
    COVERAGE_WEIGHT,
    LOCATION_DISTANCE,
    SEARCH_THRESHOLD,
    SEARCH_WEIGHTS,
)

logger = logging.getLogger(__name__)

NO_MATCH = 1.0
# Stand-in for a 0.0 distance in the record product, so field weights still count
EXACT_FLOOR = sys.float_info.epsilon


def _bitap_hits(text: str, pattern: str, max_errors: int) -> list[tuple[int, int]]:
    """
    Return (errors, end_index) for every text position where pattern ends with
    at most max_errors edits (insert/delete/substitute). One hit per position,
    carrying the smallest error count.
    """
    m = len(pattern)
    full = (1 << m) - 1
    match_bit = 1 << (m - 1)
    masks: dict[str, int] = {}
    for i, ch in enumerate(pattern):
        masks[ch] = masks.get(ch, 0) | (1 << i)

    # state[d] bit i: pattern[:i + 1] matches a suffix of text[:j + 1] with <= d errors
    state = [(1 << d) - 1 for d in range(max_errors + 1)]
    hits: list[tuple[int, int]] = []
    for j, ch in enumerate(text):
        mask = masks.get(ch, 0)
        old_prev = state[0]
        state[0] = ((state[0] << 1) | 1) & mask
        for d in range(1, max_errors + 1):
            old = state[d]
            state[d] = (
                (((old << 1) | 1) & mask)
                | old_prev
                | (((old_prev | state[d - 1]) << 1) | 1)
            ) & full
            old_prev = old
        for d in range(max_errors + 1):
            if state[d] & match_bit:
                hits.append((d, j))
                break
    return hits


def field_distance(
    pattern: str,
    text: str,
    threshold: float = SEARCH_THRESHOLD,
    location_distance: int = LOCATION_DISTANCE,
    coverage_weight: float = COVERAGE_WEIGHT,
) -> float:
    """
    Distance of the best approximate occurrence of pattern in text, or NO_MATCH
    when nothing scores within threshold. The length penalty is added after the
    threshold test. Both strings are expected lowercased.
    """
    if not pattern or not text:
        return NO_MATCH
    if pattern == text:
        return 0.0
    m = len(pattern)
    max_errors = min(int(threshold * m), m - 1)
    coverage = coverage_weight * (1.0 - min(1.0, m / len(text)))
    best = NO_MATCH
    for errors, end in _bitap_hits(text, pattern, max_errors):
        offset = max(0, end - m + 1)
        location = offset / location_distance if location_distance > 0 else 0.0
        if location > threshold or location >= best:
            break
        score = errors / m + location
        if score < best:
            best = score
    if best > threshold:
        return NO_MATCH
    return min(best + coverage, NO_MATCH)


@dataclass(frozen=True)
class _Entry:
    position: int
    fields: dict[str, list[str]]


class FuzzyIndex:
    """
    Weighted fuzzy index over dict-shaped records.

    A field matches when its distance is within threshold; a record with no
    matching field is dropped. The record score is the product of
    distance ** weight over its matched fields, with an exact field counted
    as EXACT_FLOOR, so more (and heavier) matched fields rank higher.

    Records whose primary_key field equals the query sort ahead of every
    other record, whatever the other fields score.
    """

    def __init__(
        self,
        records: Sequence[Mapping[str, Any]],
        weights: Mapping[str, float] = SEARCH_WEIGHTS,
        threshold: float = SEARCH_THRESHOLD,
        location_distance: int = LOCATION_DISTANCE,
        coverage_weight: float = COVERAGE_WEIGHT,
        primary_key: str | None = "name",
    ) -> None:
        self.weights = dict(weights)
        self.threshold = threshold
        self.location_distance = location_distance
        self.coverage_weight = coverage_weight
        self.primary_key = primary_key if primary_key in self.weights else None
        self._entries = [
            _Entry(position=i, fields={key: _normalize(record.get(key)) for key in self.weights})
            for i, record in enumerate(records)
        ]
        logger.info("[matching:index] built entries=%d keys=%s", len(self._entries), list(self.weights))

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, query: str) -> list[tuple[int, float]]:
        """Return (record position, score) pairs, best first; ties keep dataset order."""
        pattern = (query or "").strip().lower()
        if not pattern:
            return []
        scored: list[tuple[bool, float, int]] = []
        for entry in self._entries:
            score = self._score(pattern, entry)
            if score is not None:
                exact = self.primary_key is not None and pattern in entry.fields[self.primary_key]
                scored.append((not exact, score, entry.position))
        # list.sort is stable: equal keys stay in dataset order
        scored.sort(key=lambda item: (item[0], item[1]))
        return [(position, score) for _, score, position in scored]

    def _score(self, pattern: str, entry: _Entry) -> float | None:
        total = 1.0
        matched = False
        for key, weight in self.weights.items():
            values = entry.fields[key]
            if not values:
                continue
            distance = min(
                field_distance(pattern, value, self.threshold, self.location_distance, self.coverage_weight)
                for value in values
            )
            if distance >= NO_MATCH:
                continue
            matched = True
            total *= max(distance, EXACT_FLOOR) ** weight
        return total if matched else None


def _normalize(value: Any) -> list[str]:
    """Lowercase a field into a list of strings (lists such as categories stay element-wise)."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value.lower()] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v).lower() for v in value if v is not None and str(v)]
    return [str(value).lower()]
