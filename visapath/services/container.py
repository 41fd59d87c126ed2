"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Provider selection is driven entirely by environment variables — no code
changes are needed to switch between providers:

  LLM_PROVIDER=deepseek (default) → DeepSeekLLMAdapter
  LLM_PROVIDER=openai             → OpenAILLMAdapter

If the selected provider has no API key, no LLM adapter is built and the
engine receives remote_scorer=None: every assessment uses the deterministic
points model and no network call is ever made.

Replace the database:
  - from visapath.adapters.postgres_db import PostgresAssessmentStore
  + from visapath.adapters.other_db import OtherAssessmentStore

Thread safety:
  @lru_cache(maxsize=1) makes get_engine() return the same instance across
  calls.  Each worker process gets its own engine (and psycopg2 connection).
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from visapath.adapters.postgres_db import PostgresAssessmentStore
from visapath.config.settings import Settings, get_settings
from visapath.domain.exceptions import ConfigurationError, RemoteScoringUnavailable
from visapath.ports.llm_port import LLMPort
from visapath.services.assessment_engine import AssessmentEngine
from visapath.services.remote_scorer import RemoteScorer

logger = logging.getLogger(__name__)


def _build_llm(settings: Settings) -> LLMPort:
    """Instantiate the correct LLMPort adapter based on LLM_PROVIDER.

    Raises:
        ConfigurationError:       Unknown provider name.
        RemoteScoringUnavailable: Provider selected but no API key set.
    """
    provider = settings.llm_provider.lower()
    if provider == "openai":
        from visapath.adapters.openai_llm import OpenAILLMAdapter
        logger.info("LLM provider: OpenAI (%s)", settings.openai_llm_model)
        return OpenAILLMAdapter(settings)
    if provider == "deepseek":
        from visapath.adapters.deepseek_llm import DeepSeekLLMAdapter
        logger.info("LLM provider: DeepSeek (%s)", settings.deepseek_model)
        return DeepSeekLLMAdapter(settings)
    raise ConfigurationError(
        f"Unknown LLM_PROVIDER '{settings.llm_provider}'. "
        "Valid values: 'deepseek', 'openai'."
    )


def _build_remote_scorer(settings: Settings) -> Optional[RemoteScorer]:
    """RemoteScorer for the configured provider, or None without a credential."""
    try:
        llm = _build_llm(settings)
    except RemoteScoringUnavailable as exc:
        logger.warning("Remote scoring disabled, using points model only: %s", exc)
        return None
    return RemoteScorer(llm=llm)


@lru_cache(maxsize=1)
def get_engine() -> AssessmentEngine:
    """Build and return the fully wired AssessmentEngine singleton.

    Returns:
        Fully initialised AssessmentEngine ready for use.

    Raises:
        ConfigurationError: If an unknown provider name is given.
    """
    settings = get_settings()
    logger.info(
        "Building AssessmentEngine | llm_provider=%s remote_configured=%s",
        settings.llm_provider,
        settings.remote_scoring_configured,
    )

    store = PostgresAssessmentStore(settings)   # AssessmentStorePort
    remote_scorer = _build_remote_scorer(settings)

    engine = AssessmentEngine(
        store=store,
        remote_scorer=remote_scorer,
        settings=settings,
    )

    logger.info(
        "AssessmentEngine ready | llm=%s",
        remote_scorer.model_name if remote_scorer else "none (points model)",
    )
    return engine
