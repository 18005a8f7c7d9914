"""
API route aggregator: register endpoints; no logic — only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api_directory.agent.registry import AgentRegistry, get_registry
from api_directory.api.handlers import handle_a2a_request

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "API directory agent running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- A2A ---

@router.get("/a2a/agents", tags=["a2a"], summary="List registered agents")
def list_agents(registry: AgentRegistry = Depends(get_registry)) -> dict:
    return {"agents": registry.names()}


@router.post(
    "/a2a/agent/{agent_id}",
    tags=["a2a"],
    summary="Run an agent task (JSON-RPC 2.0)",
    description=(
        "Send a JSON-RPC 2.0 envelope with params.message or params.messages; receive a completed task with "
        "artifacts and history. Errors: -32600 (400) malformed request, including malformed params such as a "
        "message whose parts is not a list; -32602 (404) unknown agent; -32603 (500) internal error."
    ),
)
async def post_a2a_task(
    agent_id: str,
    request: Request,
    registry: AgentRegistry = Depends(get_registry),
) -> JSONResponse:
    body = await request.body()
    status_code, payload = await handle_a2a_request(agent_id, body, registry)
    return JSONResponse(payload, status_code=status_code)
