"""
API handlers: read request data, call the agent, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Envelope validation, message
normalisation and exception-to-status mapping for the A2A task endpoint live
here so agents and services stay free of protocol details.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from api_directory.agent.registry import AgentRegistry
from api_directory.core.errors import NotFoundError, ValidationError
from api_directory.schemas.a2a import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    JsonRpcError,
    JsonRpcErrorResponse,
    Message,
    TaskParams,
)

logger = logging.getLogger(__name__)

UNSERIALIZABLE_TOOL_RESULT = "[Unserializable Tool Result]"
NO_RESPONSE = "No response generated."


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


def error_payload(request_id: Any, code: int, message: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    response = JsonRpcErrorResponse(id=request_id, error=JsonRpcError(code=code, message=message, data=data))
    payload = response.model_dump(exclude_none=True)
    payload["id"] = request_id  # null id is meaningful in JSON-RPC
    return payload


def parse_envelope(raw: bytes | str | dict) -> tuple[Any, TaskParams]:
    """
    Validate the JSON-RPC envelope. Returns (request id, params).
    Raises ValidationError when the version marker or id is missing, or params are malformed.
    """
    if isinstance(raw, (bytes, str)):
        try:
            body = json.loads(raw or b"null")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError("Invalid Request: body must be a JSON object", details=str(e)) from e
    else:
        body = raw
    if not isinstance(body, dict):
        raise ValidationError("Invalid Request: body must be a JSON object")

    version = body.get("jsonrpc", body.get("protocolVersion"))
    request_id = body.get("id")
    if version != JSONRPC_VERSION or not request_id:
        raise ValidationError('Invalid Request: jsonrpc must be "2.0" and id is required')

    params = body.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ValidationError("Invalid Request: params must be an object")
    try:
        return request_id, TaskParams.model_validate(params)
    except PydanticValidationError as e:
        raise ValidationError("Invalid Request: malformed params", details=str(e)) from e


def request_id_of(raw: bytes | str | dict) -> Any:
    """Best-effort id for error responses to requests that failed validation."""
    if isinstance(raw, dict):
        return raw.get("id")
    try:
        body = json.loads(raw or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body.get("id") if isinstance(body, dict) else None


def to_turns(messages: list[Message]) -> list[dict[str, str]]:
    """Agent turn format: one {role, content} per message, parts joined by newlines."""
    return [
        {"role": msg.role, "content": "\n".join(part.as_text() for part in msg.parts)}
        for msg in messages
    ]


def serialize_tool_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    try:
        return json.dumps(result, indent=2)
    except (TypeError, ValueError) as e:
        logger.warning("[a2a] tool result not serializable: %s", e)
        return UNSERIALIZABLE_TOOL_RESULT


def _agent_message(text: str) -> dict[str, Any]:
    return {
        "kind": "message",
        "role": "agent",
        "parts": [{"kind": "text", "text": text}],
        "messageId": _new_id("msg"),
    }


def build_task_result(
    agent_id: str,
    params: TaskParams,
    messages: list[Message],
    text: str,
    tool_results: list[Any],
) -> dict[str, Any]:
    """result object of a completed task: status, artifacts and history."""
    safe_tool_results = [serialize_tool_result(r) for r in tool_results]
    artifacts = [
        {
            "artifactId": _new_id("artifact"),
            "name": f"{agent_id}Response",
            "parts": [{"kind": "text", "text": text}],
        }
    ]
    if safe_tool_results:
        artifacts.append(
            {
                "artifactId": _new_id("artifact"),
                "name": "ToolResults",
                "parts": [{"kind": "text", "text": r} for r in safe_tool_results],
            }
        )

    agent_message = _agent_message(text)
    history = [
        {
            "kind": "message",
            "role": msg.role,
            "parts": [part.model_dump(exclude_none=True) for part in msg.parts],
            "messageId": msg.messageId or _new_id("msg"),
        }
        for msg in messages
    ]
    history.append(_agent_message(text))

    return {
        "id": params.taskId or _new_id("task"),
        "contextId": params.contextId or _new_id("ctx"),
        "status": {
            "state": "completed",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": agent_message,
        },
        "artifacts": artifacts,
        "history": history,
        "kind": "task",
    }


async def handle_a2a_request(agent_id: str, raw: bytes | str | dict, registry: AgentRegistry) -> tuple[int, dict[str, Any]]:
    """
    Run one A2A task request against the named agent. Returns (HTTP status, JSON-RPC payload).

    400/-32600 malformed envelope, 404/-32602 unknown agent, 500/-32603 anything
    else (detail only under error.data.details).
    """
    logger.info("[a2a:handle] IN  agent_id=%s", agent_id)
    try:
        request_id, params = parse_envelope(raw)
    except ValidationError as e:
        logger.info("[a2a:handle] invalid request: %s", e.message)
        data = {"details": e.details} if e.details else None
        return 400, error_payload(request_id_of(raw), INVALID_REQUEST, e.message, data)

    try:
        agent = registry.get(agent_id)
    except NotFoundError as e:
        logger.info("[a2a:handle] %s", e.message)
        return 404, error_payload(request_id, INVALID_PARAMS, e.message)

    try:
        messages = params.message_list()
        response = await agent.respond(to_turns(messages))
        text = response.text.strip() if isinstance(response.text, str) else ""
        result = build_task_result(agent_id, params, messages, text or NO_RESPONSE, list(response.tool_results or []))
    except Exception as e:
        logger.exception("[a2a:handle] A2A route error agent_id=%s", agent_id)
        return 500, error_payload(request_id, INTERNAL_ERROR, "Internal error", {"details": str(e)})

    logger.info("[a2a:handle] OUT task_id=%s artifacts=%d", result["id"], len(result["artifacts"]))
    return 200, {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}
