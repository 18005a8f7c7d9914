"""
Integration tests for MCP tool endpoints.

Uses mocks for the search service so tests do not require GitHub or a cache file.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from api_directory.core.errors import TransportError
from api_directory.main import app

FAKE_RESULTS = [
    {
        "name": "OpenWeatherMap",
        "description": "weather data",
        "url": "https://openweathermap.org/api",
        "categories": ["Weather"],
        "https": True,
        "auth": "apiKey",
        "cors": "yes",
    }
]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_mcp_search_public_apis_returns_results(client: TestClient) -> None:
    """POST /mcp/tools/search_public_apis returns 200 and { results: [...] }."""
    with patch("api_directory.mcp.server.search_apis", new=AsyncMock(return_value=FAKE_RESULTS)) as mock_search:
        response = client.post("/mcp/tools/search_public_apis", json={"query": "weather"})
    assert response.status_code == 200
    assert response.json() == {"results": FAKE_RESULTS}
    mock_search.assert_awaited_once_with("weather")


def test_mcp_search_public_apis_empty_query_returns_empty_results(client: TestClient) -> None:
    """POST with blank query returns 200 and empty results (search not called)."""
    with patch("api_directory.mcp.server.search_apis", new=AsyncMock()) as mock_search:
        response = client.post("/mcp/tools/search_public_apis", json={"query": "   "})
    assert response.status_code == 200
    assert response.json() == {"results": []}
    mock_search.assert_not_called()


def test_mcp_search_public_apis_missing_body_returns_422(client: TestClient) -> None:
    """POST without body returns 422."""
    response = client.post("/mcp/tools/search_public_apis")
    assert response.status_code == 422


def test_mcp_search_public_apis_directory_unavailable_returns_503(client: TestClient) -> None:
    """Dataset fetch failures surface as 503 with a message."""
    error = TransportError("metadata request timed out", stage="metadata")
    with patch("api_directory.mcp.server.search_apis", new=AsyncMock(side_effect=error)):
        response = client.post("/mcp/tools/search_public_apis", json={"query": "weather"})
    assert response.status_code == 503
    assert "timed out" in response.json()["detail"]


def test_mcp_list_tools(client: TestClient) -> None:
    response = client.get("/mcp/tools")
    assert response.status_code == 200
    assert [t["name"] for t in response.json()["tools"]] == ["search_public_apis"]


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"ok": True}
