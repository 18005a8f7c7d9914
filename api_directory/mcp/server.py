"""
Minimal MCP-style tool server: exposes the public API search as a standardized
tool interface so external agents can query the directory without the LLM.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from api_directory.core.errors import ApiDirectoryError
from api_directory.services.search_service import search_apis

logger = logging.getLogger(__name__)

# MCP tool schema for discovery / documentation
tools = [
    {
        "name": "search_public_apis",
        "description": "Search and list public APIs from GitHub (dev-resources repo)",
        "input_schema": {"query": "string"},
        "output_schema": {
            "results": "list of {name, description, url, categories: string[], https: boolean, auth: string, cors: string}",
        },
    },
]

mcp_router = APIRouter(tags=["mcp"])


class SearchPublicApisRequest(BaseModel):
    """Request body for MCP tool search_public_apis."""
    query: str = ""


@mcp_router.get("/tools", summary="List MCP tools")
def mcp_list_tools() -> dict[str, list[dict[str, Any]]]:
    return {"tools": tools}


@mcp_router.post(
    "/tools/search_public_apis",
    summary="MCP tool: search_public_apis",
    description="Fuzzy search over the cached public API directory. Returns up to 10 APIs, best match first.",
)
async def mcp_search_public_apis(body: SearchPublicApisRequest) -> dict[str, list[dict[str, Any]]]:
    """
    This endpoint acts as an MCP tool server,
    allowing external agents to call the directory search
    through a standardized interface.
    """
    logger.info("MCP tool called: search_public_apis")
    query = (body.query or "").strip()
    if not query:
        return {"results": []}
    try:
        results = await search_apis(query)
    except ApiDirectoryError as e:
        logger.warning("MCP search_public_apis failed: %s", e.message)
        raise HTTPException(status_code=503, detail=f"API directory unavailable: {e.message}") from e
    return {"results": results}
