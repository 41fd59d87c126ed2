"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime.

To swap providers, change the relevant env var — no code edits required:
  LLM_PROVIDER      → deepseek | openai
  DEEPSEEK_MODEL    → swap the DeepSeek chat model
  OPENAI_LLM_MODEL  → swap the OpenAI chat model
  DB_DSN            → swap database

Leaving the selected provider's API key empty disables remote scoring: every
assessment then uses the deterministic points model.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Provider selection ──────────────────────────────────────────────────
    # Valid values: "deepseek" | "openai"
    llm_provider: str = field(
        default_factory=lambda: _env("LLM_PROVIDER", "deepseek")
    )

    # ── DeepSeek (OpenAI-compatible chat completions) ──────────────────────
    deepseek_api_key: str = field(
        default_factory=lambda: _env("DEEPSEEK_API_KEY", "")
    )
    deepseek_model: str = field(
        default_factory=lambda: _env("DEEPSEEK_MODEL", "deepseek-chat")
    )
    deepseek_base_url: str = field(
        default_factory=lambda: _env("DEEPSEEK_BASE_URL", "https://api.deepseek.com")
    )

    # ── OpenAI ─────────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: _env("OPENAI_API_KEY", "")
    )
    openai_llm_model: str = field(
        default_factory=lambda: _env("OPENAI_LLM_MODEL", "gpt-4o-mini")
    )

    # ── Remote scoring behaviour ───────────────────────────────────────────
    llm_temperature: float = field(
        default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.3)
    )
    llm_timeout: int = field(default_factory=lambda: _env_int("LLM_TIMEOUT", 30))
    llm_retries: int = field(default_factory=lambda: _env_int("LLM_RETRIES", 3))

    # ── Database ───────────────────────────────────────────────────────────
    db_dsn: str = field(
        default_factory=lambda: _env("DB_DSN", "dbname=visapath")
    )

    # ── Assessment history ─────────────────────────────────────────────────
    history_limit: int = field(
        default_factory=lambda: _env_int("HISTORY_LIMIT", 10)
    )

    @property
    def remote_api_key(self) -> str:
        """API key of the selected LLM provider ('' when none is set)."""
        if self.llm_provider.lower() == "openai":
            return self.openai_api_key
        return self.deepseek_api_key

    @property
    def remote_scoring_configured(self) -> bool:
        """True when the selected provider has a credential."""
        return bool(self.remote_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
