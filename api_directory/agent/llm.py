"""
Agent LLM: OpenAI (tool calling) or Hugging Face router (plain chat fallback).
When OPENAI_API_KEY is set the agent uses OpenAI; otherwise it can only summarise via HF.
"""

import json
import logging
from typing import Any

import httpx
from openai import OpenAI

from api_directory.core.config import (
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)

logger = logging.getLogger(__name__)


def openai_available() -> bool:
    return bool(OPENAI_API_KEY)


def hf_available() -> bool:
    return bool(HF_API_KEY)


def chat_with_tools(
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    max_tokens: int = 512,
) -> tuple[str | None, list[dict[str, Any]] | None]:
    """
    Call OpenAI chat with tools.
    Returns (content, tool_calls). If tool_calls is non-empty, caller should execute
    them and call again with tool results; if content is set and no tool_calls, that's the final answer.
    """
    if not OPENAI_API_KEY:
        logger.warning("[llm] chat_with_tools requires OPENAI_API_KEY")
        return None, None
    client = OpenAI(api_key=OPENAI_API_KEY, timeout=LLM_API_TIMEOUT)
    response = client.chat.completions.create(
        model=OPENAI_LLM_MODEL,
        messages=messages,
        tools=tools,
        max_tokens=max_tokens,
    )
    msg = response.choices[0].message if response.choices else None
    if not msg:
        return None, None
    content = (getattr(msg, "content", None) or "").strip() or None
    raw_tool_calls = getattr(msg, "tool_calls", None) or []
    tool_calls = []
    for tc in raw_tool_calls:
        fid = getattr(tc, "id", None) or ""
        fn = getattr(tc, "function", None)
        if not fn:
            continue
        fname = getattr(fn, "name", None) or ""
        fargs = getattr(fn, "arguments", None) or "{}"
        try:
            args = json.loads(fargs) if isinstance(fargs, str) else fargs
        except json.JSONDecodeError:
            logger.warning("[llm:chat_with_tools] unparseable arguments for %s: %r", fname, fargs)
            args = {}
        tool_calls.append({"id": fid, "name": fname, "arguments": args})
    if tool_calls:
        logger.info("[llm:chat_with_tools] OUT tool_calls=%s", [t["name"] for t in tool_calls])
    if content:
        logger.info("[llm:chat_with_tools] OUT content_len=%d", len(content))
    return content, tool_calls if tool_calls else None


def hf_chat(messages: list[dict[str, Any]], max_tokens: int = 512) -> str:
    """Call Hugging Face router chat completions. Returns generated text, or "" on failure."""
    if not HF_API_KEY:
        logger.warning("[llm:hf] no HF_API_KEY")
        return ""
    headers = {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}
    payload = {
        "model": HF_LLM_MODEL,
        "messages": messages,
        "max_tokens": max_tokens,
    }
    try:
        with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
            response = client.post(HF_CHAT_URL, json=payload, headers=headers)
        if response.status_code != 200:
            logger.warning("[llm:hf] HF LLM error %s: %s", response.status_code, response.text[:200])
            return ""
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("[llm:hf] request failed: %s", e)
        return ""
    choices = data.get("choices") or []
    if choices and isinstance(choices[0], dict):
        msg = choices[0].get("message") or {}
        out = (msg.get("content") or "").strip()
        logger.info("[llm:hf] OUT response_len=%d", len(out))
        return out
    return ""
