"""
Freshness-gated cache: keep the fetched dataset on disk and refetch after a TTL.

The snapshot file's mtime is the freshness signal. Writes go to a temp file in
the same directory and are renamed into place, so readers see either the old
snapshot or the new one, never a truncated file.

Refreshes are single-flight within a process (asyncio.Lock). Separate processes
sharing one cache file can still race; the last writer wins. If the snapshot
cannot be written, the fetched dataset is still returned, unpersisted.
"""

import asyncio
import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from api_directory.core.config import (
    CACHE_FILE,
    CACHE_SERVE_STALE,
    CACHE_TTL_SECONDS,
    DATASET_RESOURCE,
)
from api_directory.core.errors import ApiDirectoryError, SerializationError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, resource_name: str) -> Any: ...


@dataclass(frozen=True)
class CacheSnapshot:
    """The dataset as last fetched. fetched_at is the snapshot file's mtime (epoch seconds)."""

    data: dict[str, Any]
    fetched_at: float
    from_cache: bool


class DatasetCache:
    """Wrap a fetcher with an on-disk snapshot and a time-to-live."""

    def __init__(
        self,
        fetcher: Fetcher,
        cache_file: str | Path = CACHE_FILE,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        resource_name: str = DATASET_RESOURCE,
        serve_stale: bool = CACHE_SERVE_STALE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetcher = fetcher
        self._path = Path(cache_file)
        self._ttl = ttl_seconds
        self._resource_name = resource_name
        self._serve_stale = serve_stale
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get_dataset(self) -> dict[str, Any]:
        """Return the dataset document, fetching only when the snapshot is missing or stale."""
        snapshot = await self.get_snapshot()
        return snapshot.data

    async def get_snapshot(self) -> CacheSnapshot:
        snapshot = self._read_fresh()
        if snapshot is not None:
            return snapshot
        async with self._lock:
            # Another caller may have refreshed while we waited.
            snapshot = self._read_fresh()
            if snapshot is not None:
                return snapshot
            return await self._refresh()

    def clear(self) -> bool:
        """Delete the snapshot file. Returns True if a file was removed."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        logger.info("[cache:clear] removed %s", self._path)
        return True

    async def _refresh(self) -> CacheSnapshot:
        logger.info("[cache:refresh] fetching resource=%r", self._resource_name)
        try:
            document = await self._fetcher.fetch(self._resource_name)
            _check_shape(document)
        except ApiDirectoryError as e:
            stale = self._read() if self._serve_stale else None
            if stale is None:
                logger.error("[cache:refresh] fetch failed, no usable snapshot: %s", e.message)
                raise
            logger.warning(
                "[cache:refresh] fetch failed (%s); serving stale snapshot from %s",
                e.message,
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(stale.fetched_at)),
            )
            return stale
        try:
            fetched_at = self._write(document)
        except OSError:
            # Serve this turn from memory; the next call fetches again
            logger.exception("[cache:refresh] could not write snapshot %s; serving unpersisted dataset", self._path)
            return CacheSnapshot(data=document, fetched_at=self._clock(), from_cache=False)
        logger.info("[cache:refresh] OUT cached records=%d path=%s", len(document["data"]), self._path)
        return CacheSnapshot(data=document, fetched_at=fetched_at, from_cache=False)

    def _read_fresh(self) -> CacheSnapshot | None:
        try:
            mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            return None
        age = self._clock() - mtime
        if age >= self._ttl:
            logger.info("[cache:read] snapshot expired age=%.0fs ttl=%.0fs", age, self._ttl)
            return None
        snapshot = self._read()
        if snapshot is not None:
            logger.info("[cache:read] using cached dataset age=%.0fs", age)
        return snapshot

    def _read(self) -> CacheSnapshot | None:
        """Load the snapshot regardless of age. Unreadable content counts as a miss."""
        try:
            mtime = self._path.stat().st_mtime
            with self._path.open(encoding="utf-8") as f:
                document = json.load(f)
            _check_shape(document)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError, SerializationError) as e:
            logger.warning("[cache:read] ignoring unreadable snapshot %s: %s", self._path, e)
            return None
        return CacheSnapshot(data=document, fetched_at=mtime, from_cache=True)

    def _write(self, document: dict[str, Any]) -> float:
        """Atomically replace the snapshot file. Returns the new file's mtime."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return self._path.stat().st_mtime


def _check_shape(document: Any) -> None:
    if not isinstance(document, dict) or not isinstance(document.get("data"), list):
        raise SerializationError("Dataset must be a JSON object with a 'data' list")
