"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# GitHub contents API (dataset source). Token is optional; unauthenticated calls are rate limited.
GITHUB_ACCESS_TOKEN: str = os.getenv("GITHUB_ACCESS_TOKEN", "").strip()
GITHUB_API_URL: str = os.getenv("GITHUB_API_URL", "https://api.github.com").strip().rstrip("/")
DATASET_OWNER: str = os.getenv("DATASET_OWNER", "marcelscruz").strip() or "marcelscruz"
DATASET_REPO: str = os.getenv("DATASET_REPO", "dev-resources").strip() or "dev-resources"
DATASET_DIR: str = os.getenv("DATASET_DIR", "db").strip().strip("/")
DATASET_RESOURCE: str = os.getenv("DATASET_RESOURCE", "resources").strip() or "resources"

# On-disk snapshot of the dataset (relative to the working directory)
CACHE_FILE: str = os.getenv("CACHE_FILE", "cache/apis.json").strip() or "cache/apis.json"
CACHE_TTL_SECONDS: float = float(os.getenv("CACHE_TTL_SECONDS", str(60 * 60 * 24)))
# Serve the stale snapshot when a refresh fails instead of failing the search.
CACHE_SERVE_STALE: bool = _env_bool("CACHE_SERVE_STALE", True)

# API timeouts (seconds)
FETCH_TIMEOUT: float = float(os.getenv("FETCH_TIMEOUT", "20"))
LLM_API_TIMEOUT: float = 60.0

# Fuzzy search (0.0 = exact, 1.0 = anything)
SEARCH_THRESHOLD: float = float(os.getenv("SEARCH_THRESHOLD", "0.1"))
SEARCH_LIMIT: int = 10
SEARCH_WEIGHTS: dict[str, float] = {"name": 0.5, "description": 0.3, "categories": 0.2}
# How far from the start of a field a match may drift before it costs a full point of distance
LOCATION_DISTANCE: int = 100
COVERAGE_WEIGHT: float = 0.05

# OpenAI (agent LLM). When set, the agent uses OpenAI tool calling.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# Hugging Face chat (fallback LLM, no tool calling)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# Agent graph
AGENT_ID: str = "apiDirectoryAgent"
MAX_AGENTIC_ROUNDS: int = 6
AGENT_MAX_TOKENS: int = 1024
