"""Centralized configuration for the SIMRS agent.

Values come from environment variables, optionally loaded from a ``.env``
file.  Unlike the rest of the settings, the Anthropic credential is
optional: without it the chat session starts unconfigured and reports the
missing key in the transcript instead of failing at import time.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _optional_env(name: str) -> str | None:
    """Return a config value, treating blanks and ``your_...`` placeholders as unset."""
    value = os.getenv(name, "").strip()
    if not value or value.startswith("your_"):
        logger.debug("Configuration %s is not set", name)
        return None
    return value


def _flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() in ("1", "true", "yes")


# ── LLM ─────────────────────────────────────────────────────────────
ANTHROPIC_API_KEY: str | None = _optional_env("ANTHROPIC_API_KEY")
MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-sonnet-4-5")
MODEL_TEMPERATURE: float = float(os.getenv("MODEL_TEMPERATURE", "0.1"))
MODEL_MAX_TOKENS: int = int(os.getenv("MODEL_MAX_TOKENS", "1024"))

# Model/tools round trips allowed in one user turn before it is aborted
MAX_TOOL_ITERATIONS: int = int(os.getenv("MAX_TOOL_ITERATIONS", "8"))

# Server-side web search used for grounding general questions
WEB_SEARCH_ENABLED: bool = _flag("WEB_SEARCH_ENABLED", True)
WEB_SEARCH_MAX_USES: int = int(os.getenv("WEB_SEARCH_MAX_USES", "3"))

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
