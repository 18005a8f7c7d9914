"""
Search: rank directory records against a free-text query.

Responsibility: Load the dataset through the cache, keep a fuzzy index for the
current snapshot, and return the top matches as SearchResult projections.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from api_directory.core.config import SEARCH_LIMIT, SEARCH_THRESHOLD, SEARCH_WEIGHTS
from api_directory.schemas.api_record import APIRecord, SearchResult
from api_directory.services.cache import DatasetCache
from api_directory.services.fetcher import GitHubContentFetcher
from api_directory.services.matching import FuzzyIndex

logger = logging.getLogger(__name__)


class SearchEngine:
    """Ranked search over the cached dataset. The index is rebuilt only when the snapshot changes."""

    def __init__(
        self,
        cache: DatasetCache,
        weights: dict[str, float] | None = None,
        threshold: float = SEARCH_THRESHOLD,
    ) -> None:
        self._cache = cache
        self._weights = dict(weights or SEARCH_WEIGHTS)
        self._threshold = threshold
        self._index_key: float | None = None
        self._records: list[APIRecord] = []
        self._index: FuzzyIndex | None = None

    async def search(self, query: str, limit: int = SEARCH_LIMIT) -> list[SearchResult]:
        logger.info("[search:search] IN  query=%r limit=%d", query, limit)
        if not query or not query.strip():
            logger.info("[search:search] OUT empty query, returning []")
            return []
        if limit < 1:
            return []

        index, records = await self._current_index()
        hits = index.search(query)
        results = [SearchResult.from_record(records[pos], score) for pos, score in hits[:limit]]
        logger.info("[search:search] OUT matches=%d returned=%d", len(hits), len(results))
        return results

    async def _current_index(self) -> tuple[FuzzyIndex, list[APIRecord]]:
        snapshot = await self._cache.get_snapshot()
        if self._index is None or self._index_key != snapshot.fetched_at:
            records = _parse_records(snapshot.data.get("data") or [])
            self._index = FuzzyIndex(
                [r.model_dump() for r in records],
                weights=self._weights,
                threshold=self._threshold,
            )
            self._records = records
            self._index_key = snapshot.fetched_at
        return self._index, self._records


def _parse_records(items: list[Any]) -> list[APIRecord]:
    records: list[APIRecord] = []
    skipped = 0
    for item in items:
        try:
            records.append(APIRecord.model_validate(item))
        except PydanticValidationError:
            skipped += 1
    if skipped:
        logger.warning("[search:parse_records] skipped %d malformed records", skipped)
    return records


_engine: SearchEngine | None = None


def get_search_engine() -> SearchEngine:
    """Lazy process-wide engine backed by the GitHub fetcher and the configured cache file."""
    global _engine
    if _engine is None:
        _engine = SearchEngine(DatasetCache(GitHubContentFetcher()))
    return _engine


async def search_apis(query: str, limit: int = SEARCH_LIMIT) -> list[dict[str, Any]]:
    """Search tool contract: ordered list of {name, description, url, categories, https, auth, cors}."""
    if not query or not query.strip():
        return []
    results = await get_search_engine().search(query, limit)
    return [r.to_tool_output() for r in results]
