"""
Agent tools: definitions and execution for tool-calling (agentic) mode.

Tools: search_public_apis (fuzzy search over the cached dev-resources directory).
"""

import json
import logging
from typing import Any

from api_directory.core.errors import ApiDirectoryError, TransportError
from api_directory.services.search_service import search_apis

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "search_public_apis"

# OpenAI function-calling format: list of tool definitions
AGENT_TOOLS = [
    {
        "type": "function",
        "function": {
            "name": SEARCH_TOOL_NAME,
            "description": "Search and list public APIs from the dev-resources directory on GitHub. Returns up to 10 APIs with name, description, url, categories, https, auth and cors.",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Keyword to search for APIs (e.g. weather, currency, music)",
                    }
                },
                "required": ["query"],
            },
        },
    },
]


async def execute_tool(name: str, arguments: dict[str, Any]) -> tuple[str, Any]:
    """
    Execute a tool by name. Returns (text for the LLM, structured result or None).
    Dataset failures come back as explanatory text so the turn can still be answered.
    """
    args = arguments or {}
    logger.info("[tools] execute_tool name=%r arguments=%r", name, args)

    if name == SEARCH_TOOL_NAME:
        query = str(args.get("query") or "").strip()
        if not query:
            return "Error: query is required.", None
        try:
            results = await search_apis(query)
        except TransportError as e:
            logger.warning("[tools] %s failed at %s stage: %s", name, e.stage, e.message)
            return "The API directory is temporarily unreachable. Please try again shortly.", None
        except ApiDirectoryError as e:
            logger.warning("[tools] %s failed: %s", name, e.message)
            return f"The API directory could not be loaded: {e.message}", None
        if not results:
            return f"No APIs found matching {query!r}.", results
        return json.dumps(results), results

    return f"Unknown tool: {name}", None
