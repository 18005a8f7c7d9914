"""
Remote dataset fetcher: resolve a resource name through the GitHub contents API,
then download the file it points to.

Two hops, two fault domains: a failed metadata lookup and a failed content
download raise TransportError with different `stage` values. No retries here;
callers decide whether to retry.
"""

import json
import logging
from typing import Any

import httpx

from api_directory.core.config import (
    DATASET_DIR,
    DATASET_OWNER,
    DATASET_REPO,
    FETCH_TIMEOUT,
    GITHUB_ACCESS_TOKEN,
    GITHUB_API_URL,
)
from api_directory.core.errors import (
    AmbiguousResourceError,
    NotFoundError,
    SerializationError,
    TransportError,
)

logger = logging.getLogger(__name__)

STAGE_METADATA = "metadata"
STAGE_DOWNLOAD = "download"


class GitHubContentFetcher:
    """Fetch JSON documents stored in a GitHub repository directory."""

    def __init__(
        self,
        owner: str = DATASET_OWNER,
        repo: str = DATASET_REPO,
        directory: str = DATASET_DIR,
        token: str = GITHUB_ACCESS_TOKEN,
        api_url: str = GITHUB_API_URL,
        timeout: float = FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._directory = directory.strip("/")
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def contents_url(self, resource_name: str) -> str:
        path = f"{self._directory}/{resource_name}.json" if self._directory else f"{resource_name}.json"
        return f"{self._api_url}/repos/{self._owner}/{self._repo}/contents/{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def fetch(self, resource_name: str) -> Any:
        """Return the parsed JSON document for resource_name."""
        logger.info("[fetcher:fetch] IN  resource=%r", resource_name)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            download_url = await self._resolve_download_url(client, resource_name)
            document = await self._download(client, download_url)
        logger.info("[fetcher:fetch] OUT resource=%r", resource_name)
        return document

    async def _resolve_download_url(self, client: httpx.AsyncClient, resource_name: str) -> str:
        url = self.contents_url(resource_name)
        logger.info("[fetcher:metadata] GET %s", url)
        response = await _get(client, url, STAGE_METADATA, headers=self._headers())
        if response.status_code == 404:
            raise NotFoundError(f"Resource not found: {resource_name!r} ({url})")
        if not response.is_success:
            logger.warning("[fetcher:metadata] status=%s body=%s", response.status_code, response.text[:200])
            raise TransportError(
                f"Metadata lookup for {resource_name!r} failed with status {response.status_code}",
                stage=STAGE_METADATA,
                status_code=response.status_code,
            )
        meta = _parse_json(response, STAGE_METADATA)
        if isinstance(meta, list):
            raise AmbiguousResourceError(f"Expected a file but got a directory for path: {resource_name}")
        download_url = meta.get("download_url") if isinstance(meta, dict) else None
        if not download_url:
            raise NotFoundError(f"Download URL not found for resource {resource_name!r}")
        return download_url

    async def _download(self, client: httpx.AsyncClient, download_url: str) -> Any:
        logger.info("[fetcher:download] GET %s", download_url)
        response = await _get(client, download_url, STAGE_DOWNLOAD)
        if not response.is_success:
            logger.warning("[fetcher:download] status=%s reason=%s", response.status_code, response.reason_phrase)
            raise TransportError(
                f"Unexpected response {response.status_code} {response.reason_phrase}",
                stage=STAGE_DOWNLOAD,
                status_code=response.status_code,
            )
        return _parse_json(response, STAGE_DOWNLOAD)


async def _get(client: httpx.AsyncClient, url: str, stage: str, **kwargs: Any) -> httpx.Response:
    try:
        return await client.get(url, **kwargs)
    except httpx.TimeoutException as e:
        logger.warning("[fetcher:%s] timed out: %s", stage, url)
        raise TransportError(f"{stage} request timed out: {url}", stage=stage) from e
    except httpx.HTTPError as e:
        logger.warning("[fetcher:%s] request failed: %s", stage, e)
        raise TransportError(f"{stage} request failed: {e}", stage=stage) from e


def _parse_json(response: httpx.Response, stage: str) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SerializationError(f"{stage} response is not valid JSON: {e}") from e
