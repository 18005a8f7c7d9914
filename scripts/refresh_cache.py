#!/usr/bin/env python3
"""
Warm or refresh the public API directory cache.

Fetches db/resources.json from the dev-resources repository into the cache
file (CACHE_FILE, default cache/apis.json) unless a fresh snapshot exists.
Use --force to drop the snapshot first, and --query to try a search.

Run from project root:

    python scripts/refresh_cache.py
    python scripts/refresh_cache.py --force --query weather
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Project root on path so "api_directory" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from api_directory.core.errors import ApiDirectoryError
from api_directory.services.cache import DatasetCache
from api_directory.services.fetcher import GitHubContentFetcher
from api_directory.services.search_service import SearchEngine


async def _run(force: bool, query: str | None) -> int:
    cache = DatasetCache(GitHubContentFetcher(), serve_stale=False)
    if force and cache.clear():
        print(f"Removed {cache.path}")
    try:
        snapshot = await cache.get_snapshot()
    except ApiDirectoryError as e:
        print(f"Refresh failed: {e.message}", file=sys.stderr)
        return 1
    source = "cache" if snapshot.from_cache else "GitHub"
    print(f"Loaded {len(snapshot.data['data'])} records from {source} ({cache.path})")

    if query:
        for i, r in enumerate(await SearchEngine(cache).search(query), 1):
            print(f"  {i}. {r.name} [{', '.join(r.categories)}] score={r.score:.4f} {r.url}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Warm or refresh the API directory cache.")
    parser.add_argument("--force", action="store_true", help="Delete the snapshot before fetching.")
    parser.add_argument("--query", help="Run a search against the refreshed dataset.")
    args = parser.parse_args()
    sys.exit(asyncio.run(_run(args.force, args.query)))


if __name__ == "__main__":
    main()
