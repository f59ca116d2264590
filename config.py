"""Environment-driven settings for the shopping assistant backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def env_str(key: str, default: str = "") -> str:
    value = os.getenv(key, default)
    if value is None:
        value = default
    return str(value).strip()


def env_float(key: str, default: float) -> float:
    """Parse a float env var, failing fast on garbage."""
    raw = env_str(key, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{key} must be numeric, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration snapshot taken at startup."""

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-5-mini"
    pickup_threshold: float = 0.6
    pickup_debounce_ms: float = 1500.0
    summary_strategy: str = "value_score"
    http_timeout_seconds: float = 12.0
    search_timeout_seconds: float = 15.0
    log_level: str = "INFO"

    @property
    def openai_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (after load_dotenv)."""
        return cls(
            openai_api_key=env_str("OPENAI_API_KEY") or None,
            openai_model=env_str("OPENAI_MODEL", "gpt-5-mini") or "gpt-5-mini",
            pickup_threshold=env_float("PICKUP_THRESHOLD", 0.6),
            pickup_debounce_ms=env_float("PICKUP_DEBOUNCE_MS", 1500.0),
            summary_strategy=(env_str("SUMMARY_STRATEGY", "value_score") or "value_score").lower(),
            http_timeout_seconds=env_float("HTTP_TIMEOUT_SECONDS", 12.0),
            search_timeout_seconds=env_float("SEARCH_TIMEOUT_SECONDS", 15.0),
            log_level=(env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        )
