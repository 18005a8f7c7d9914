"""
Tests for GitHubContentFetcher over httpx.MockTransport (no network).
"""

import httpx
import pytest

from api_directory.core.errors import (
    AmbiguousResourceError,
    NotFoundError,
    SerializationError,
    TransportError,
)
from api_directory.services.fetcher import GitHubContentFetcher

API_URL = "https://api.github.com"
DOWNLOAD_URL = "https://raw.githubusercontent.com/marcelscruz/dev-resources/main/db/resources.json"
DATASET = {"data": [{"name": "OpenWeatherMap"}]}


def make_fetcher(handler, token: str = "") -> GitHubContentFetcher:
    return GitHubContentFetcher(
        owner="marcelscruz",
        repo="dev-resources",
        directory="db",
        token=token,
        api_url=API_URL,
        transport=httpx.MockTransport(handler),
    )


def routes(metadata: httpx.Response | Exception, download: httpx.Response | Exception | None = None, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        result = metadata if request.url.host == "api.github.com" else download
        if isinstance(result, Exception):
            raise result
        return result

    return handler


@pytest.mark.asyncio
async def test_fetch_resolves_download_url_then_downloads() -> None:
    seen: list[httpx.Request] = []
    handler = routes(
        httpx.Response(200, json={"type": "file", "download_url": DOWNLOAD_URL}),
        httpx.Response(200, json=DATASET),
        seen,
    )

    document = await make_fetcher(handler, token="secret").fetch("resources")

    assert document == DATASET
    assert [str(r.url) for r in seen] == [
        f"{API_URL}/repos/marcelscruz/dev-resources/contents/db/resources.json",
        DOWNLOAD_URL,
    ]
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert seen[0].headers["Accept"] == "application/vnd.github+json"


@pytest.mark.asyncio
async def test_no_token_sends_no_authorization_header() -> None:
    seen: list[httpx.Request] = []
    handler = routes(httpx.Response(200, json={"download_url": DOWNLOAD_URL}), httpx.Response(200, json=DATASET), seen)

    await make_fetcher(handler).fetch("resources")

    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_metadata_404_is_not_found() -> None:
    handler = routes(httpx.Response(404, json={"message": "Not Found"}))
    with pytest.raises(NotFoundError) as exc_info:
        await make_fetcher(handler).fetch("missing")
    assert "missing" in exc_info.value.message


@pytest.mark.asyncio
async def test_directory_listing_is_ambiguous() -> None:
    handler = routes(httpx.Response(200, json=[{"name": "a.json"}, {"name": "b.json"}]))
    with pytest.raises(AmbiguousResourceError):
        await make_fetcher(handler).fetch("resources")


@pytest.mark.asyncio
async def test_missing_download_url_is_not_found() -> None:
    handler = routes(httpx.Response(200, json={"type": "file", "download_url": None}))
    with pytest.raises(NotFoundError):
        await make_fetcher(handler).fetch("resources")


@pytest.mark.asyncio
async def test_metadata_server_error_is_transport_error() -> None:
    handler = routes(httpx.Response(500, text="oops"))
    with pytest.raises(TransportError) as exc_info:
        await make_fetcher(handler).fetch("resources")
    assert exc_info.value.stage == "metadata"
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_download_failure_is_transport_error_with_download_stage() -> None:
    handler = routes(httpx.Response(200, json={"download_url": DOWNLOAD_URL}), httpx.Response(503))
    with pytest.raises(TransportError) as exc_info:
        await make_fetcher(handler).fetch("resources")
    assert exc_info.value.stage == "download"
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_timeout_is_transport_error() -> None:
    handler = routes(
        httpx.Response(200, json={"download_url": DOWNLOAD_URL}),
        httpx.ReadTimeout("timed out"),
    )
    with pytest.raises(TransportError) as exc_info:
        await make_fetcher(handler).fetch("resources")
    assert exc_info.value.stage == "download"


@pytest.mark.asyncio
async def test_connect_error_is_transport_error() -> None:
    handler = routes(httpx.ConnectError("name resolution failed"))
    with pytest.raises(TransportError) as exc_info:
        await make_fetcher(handler).fetch("resources")
    assert exc_info.value.stage == "metadata"


@pytest.mark.asyncio
async def test_invalid_json_download_is_serialization_error() -> None:
    handler = routes(httpx.Response(200, json={"download_url": DOWNLOAD_URL}), httpx.Response(200, text="<html>"))
    with pytest.raises(SerializationError):
        await make_fetcher(handler).fetch("resources")
