"""
LangGraph agent: call_model → (run_tools → call_model)* → END.

Tool-calling loop over OpenAI with the search_public_apis tool, bounded by
MAX_AGENTIC_ROUNDS. Without an OpenAI key the agent searches directly on the
last user turn and summarises via Hugging Face, or formats the list itself.
"""

import asyncio
import json
import logging
from typing import Any, Literal, TypedDict

from langgraph.graph import END, StateGraph

from api_directory.agent.llm import chat_with_tools, hf_available, hf_chat, openai_available
from api_directory.agent.registry import AgentResponse
from api_directory.agent.tools import AGENT_TOOLS, SEARCH_TOOL_NAME, execute_tool
from api_directory.core.config import AGENT_MAX_TOKENS, MAX_AGENTIC_ROUNDS, SEARCH_LIMIT
from api_directory.core.errors import ApiDirectoryError, InternalError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the API Directory Agent, a developer's assistant for discovering and understanding public APIs.\n\n"
    "When the user asks for APIs (e.g. \"Find APIs for weather data\", \"Give me AI APIs\"), call "
    "search_public_apis with a short keyword query. Try a broader or alternative keyword if the first search "
    "returns nothing.\n\n"
    "For each API you recommend give: name, a short description, category, the API link, the auth requirement "
    "(say so explicitly when no auth is needed), and HTTPS/CORS support. Add a one or two line tip on how to "
    "call it or what kind of project it fits. Use a numbered list and keep it easy to scan.\n\n"
    "If the request is vague (e.g. \"show APIs\"), ask the user to narrow it down and suggest categories such "
    "as AI, Weather, Finance, Music or Games. If the directory is unavailable, say so plainly."
)

NO_RESPONSE = "No response generated."


class AgentState(TypedDict):
    messages: list  # OpenAI chat messages, system prompt first
    pending_tool_calls: list
    tool_results: list
    rounds: int
    answer: str


def _to_chat_messages(turns: list[dict[str, str]]) -> list[dict[str, str]]:
    """Turn adapter turns into chat messages; A2A "agent" turns become "assistant"."""
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    for t in turns:
        role = (t.get("role") or "user").strip().lower()
        content = (t.get("content") or "").strip()
        if role == "agent":
            role = "assistant"
        if role in ("user", "assistant") and content:
            messages.append({"role": role, "content": content})
    return messages


async def _call_model(state: AgentState) -> dict:
    rounds = state.get("rounds") or 0
    logger.info("[graph:call_model] IN  round=%d messages=%d", rounds, len(state["messages"]))
    content, tool_calls = await asyncio.to_thread(
        chat_with_tools, state["messages"], AGENT_TOOLS, AGENT_MAX_TOKENS
    )
    if tool_calls:
        assistant_msg: dict = {"role": "assistant", "content": content or ""}
        assistant_msg["tool_calls"] = [
            {"id": tc["id"], "type": "function", "function": {"name": tc["name"], "arguments": json.dumps(tc.get("arguments") or {})}}
            for tc in tool_calls
        ]
        return {
            "messages": state["messages"] + [assistant_msg],
            "pending_tool_calls": tool_calls,
            "rounds": rounds + 1,
        }
    logger.info("[graph:call_model] OUT answer_len=%d", len(content or ""))
    return {"answer": content or "", "pending_tool_calls": []}


async def _run_tools(state: AgentState) -> dict:
    messages = list(state["messages"])
    tool_results = list(state.get("tool_results") or [])
    for tc in state.get("pending_tool_calls") or []:
        name = tc.get("name", "")
        args = tc.get("arguments") or {}
        text, result = await execute_tool(name, args)
        messages.append({"role": "tool", "tool_call_id": tc.get("id", ""), "content": text})
        tool_results.append({"toolCallId": tc.get("id", ""), "toolName": name, "args": args, "result": result})
    logger.info("[graph:run_tools] OUT tools_run=%d", len(state.get("pending_tool_calls") or []))
    return {"messages": messages, "tool_results": tool_results, "pending_tool_calls": []}


def _route_after_model(state: AgentState) -> Literal["run_tools", "__end__"]:
    pending = state.get("pending_tool_calls") or []
    rounds = state.get("rounds") or 0
    if pending and rounds <= MAX_AGENTIC_ROUNDS:
        return "run_tools"
    if pending:
        logger.warning("[graph:route_after_model] round limit %d reached, stopping", MAX_AGENTIC_ROUNDS)
    return END


def build_graph():
    """Build and compile the tool-calling graph."""
    graph = StateGraph(AgentState)

    graph.add_node("call_model", _call_model)
    graph.add_node("run_tools", _run_tools)

    graph.set_entry_point("call_model")
    graph.add_conditional_edges("call_model", _route_after_model)
    graph.add_edge("run_tools", "call_model")

    return graph.compile()


_STOPWORDS = frozenset({
    "a", "an", "and", "any", "api", "apis", "are", "can", "find", "for", "free", "from", "give", "list",
    "me", "need", "of", "or", "public", "show", "some", "that", "the", "to", "want", "what", "which", "with",
})


def _keywords(text: str) -> list[str]:
    """Distinct content words of a request, in order."""
    words: list[str] = []
    for raw in text.lower().replace("?", " ").replace(",", " ").replace(".", " ").split():
        word = raw.strip("\"'!:;()")
        if len(word) >= 3 and word not in _STOPWORDS and word not in words:
            words.append(word)
    return words


def _format_results(query: str, results: list[dict[str, Any]]) -> str:
    if not results:
        return f"I couldn't find any public APIs matching {query!r}. Try a broader keyword such as Weather, Finance or Music."
    lines = [f"Here are public APIs matching {query!r}:", ""]
    for i, r in enumerate(results, 1):
        auth = r.get("auth") or "unknown"
        auth_text = "No auth needed" if auth.lower() in ("", "no", "none") else auth
        categories = ", ".join(r.get("categories") or []) or "Uncategorized"
        lines.append(f"{i}. {r.get('name')}: {r.get('description') or ''}")
        lines.append(f"   Link: {r.get('url') or 'n/a'} | Category: {categories}")
        lines.append(f"   Auth: {auth_text} | HTTPS: {r.get('https')} | CORS: {r.get('cors')}")
    return "\n".join(lines)


class ApiDirectoryAgent:
    """Conversational agent that answers questions about public APIs."""

    name = "API Directory Agent"

    def __init__(self) -> None:
        self._graph = build_graph()

    async def respond(self, turns: list[dict[str, str]]) -> AgentResponse:
        messages = _to_chat_messages(turns)
        logger.info("[agent:respond] START turns=%d", len(turns))
        try:
            if openai_available():
                response = await self._run_graph(messages)
            else:
                response = await self._direct_answer(messages)
        except ApiDirectoryError:
            raise
        except Exception as e:
            logger.exception("[agent:respond] agent run failed")
            raise InternalError(f"Agent run failed: {e}") from e
        logger.info("[agent:respond] END answer_len=%d tool_results=%d", len(response.text), len(response.tool_results))
        return response

    async def _run_graph(self, messages: list[dict]) -> AgentResponse:
        initial: AgentState = {
            "messages": messages,
            "pending_tool_calls": [],
            "tool_results": [],
            "rounds": 0,
            "answer": "",
        }
        final = await self._graph.ainvoke(initial)
        answer = (final.get("answer") or "").strip()
        return AgentResponse(text=answer or NO_RESPONSE, tool_results=list(final.get("tool_results") or []))

    async def _direct_answer(self, messages: list[dict]) -> AgentResponse:
        """No tool-calling model: search on the last user turn and summarise the hits."""
        query = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        if not query:
            return AgentResponse(text="What kind of API are you looking for? For example: Weather, Finance, Music or Games.")
        text, results = await execute_tool(SEARCH_TOOL_NAME, {"query": query})
        tool_results = [{"toolCallId": "", "toolName": SEARCH_TOOL_NAME, "args": {"query": query}, "result": results}]
        if results == []:
            # Whole sentences rarely match; retry per keyword and merge by name
            merged: dict[str, dict] = {}
            for word in _keywords(query):
                text, found = await execute_tool(SEARCH_TOOL_NAME, {"query": word})
                tool_results.append({"toolCallId": "", "toolName": SEARCH_TOOL_NAME, "args": {"query": word}, "result": found})
                if found is None:
                    return AgentResponse(text=text, tool_results=tool_results)
                for item in found:
                    merged.setdefault(item["name"], item)
            results = list(merged.values())[:SEARCH_LIMIT]
            text = json.dumps(results)
        if results is None:
            return AgentResponse(text=text, tool_results=tool_results)
        answer = ""
        if hf_available() and results:
            prompt = messages + [
                {"role": "user", "content": f"Directory search results for {query!r} (JSON):\n{text}\n\nAnswer the request above using only these results."}
            ]
            answer = await asyncio.to_thread(hf_chat, prompt, AGENT_MAX_TOKENS)
        return AgentResponse(text=answer or _format_results(query, results), tool_results=tool_results)
