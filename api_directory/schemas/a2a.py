"""Schemas for the A2A (JSON-RPC 2.0) task endpoint."""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

# JSON-RPC error codes used by the adapter
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class MessagePart(BaseModel):
    """One part of a message: {"kind": "text", "text": ...} or {"kind": "data", "data": ...}."""

    model_config = ConfigDict(extra="allow")

    kind: str = "text"
    text: str | None = None
    data: Any = None

    def as_text(self) -> str:
        if self.kind == "text":
            return self.text or ""
        if self.kind == "data":
            return json.dumps(self.data)
        return ""


class Message(BaseModel):
    """Inbound message object. messageId is generated when the client omits it."""

    model_config = ConfigDict(extra="allow")

    role: str = "user"
    parts: list[MessagePart] = Field(default_factory=list)
    messageId: str | None = None


class TaskParams(BaseModel):
    """params of a task request. A single `message` wins over `messages`."""

    model_config = ConfigDict(extra="allow")

    message: Message | None = None
    messages: list[Message] | None = None
    contextId: str | None = None
    taskId: str | None = None

    def message_list(self) -> list[Message]:
        if self.message is not None:
            return [self.message]
        return list(self.messages or [])


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: dict[str, Any] | None = None


class JsonRpcErrorResponse(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Any = None
    error: JsonRpcError
