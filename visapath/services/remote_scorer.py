"""
services/remote_scorer.py
──────────────────────────────────────────────────────────────────────────────
Remote (LLM) scoring: prompt → LLMPort → parsed assessment.

Responsibilities:
  1. Build the prompt from the normalised profile and the full visa catalog
     (via config/prompts.py) so the model grounds its answer in real options.
  2. Call the LLMPort.  RemoteScoringFailed propagates to the engine, which
     falls back to the deterministic points model.
  3. Parse the answer into an ExternalResult.  When an answer exists but is
     not the expected JSON object, return a SynthesizedResult carrying the
     raw text instead: the model's prose is kept, the points model is NOT
     used.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from visapath.config.prompts import ASSESSMENT_SYSTEM_PROMPT, build_user_message
from visapath.domain.exceptions import RemoteParseFailed
from visapath.domain.models import (
    MAX_FEEDBACK_ITEMS,
    ExternalResult,
    NormalizedProfile,
    SynthesizedResult,
    VisaCategoryRef,
)
from visapath.ports.llm_port import LLMPort

logger = logging.getLogger(__name__)

# Placeholder assessment used when the remote answer cannot be parsed
SYNTHESIZED_SCORE = 65
SYNTHESIZED_VISA_CODE = "189"
SYNTHESIZED_STRENGTHS = ("Strong professional background", "Good education level")
SYNTHESIZED_IMPROVEMENTS = ("Consider skills assessment", "Improve English proficiency")

_REQUIRED_FIELDS = (
    "assessment_score",
    "recommended_visa_code",
    "strengths",
    "improvement_areas",
    "detailed_analysis",
)


class RemoteScorer:
    """Score a profile with an LLM.

    Args:
        llm: Any object satisfying LLMPort.
    """

    def __init__(self, llm: LLMPort) -> None:
        self._llm = llm
        logger.debug("RemoteScorer init | model=%s", llm.model_name)

    @property
    def model_name(self) -> str:
        return self._llm.model_name

    def score(
        self,
        profile: NormalizedProfile,
        catalog: list[VisaCategoryRef],
    ) -> ExternalResult | SynthesizedResult:
        """Ask the remote model for an assessment.

        Returns:
            ExternalResult on a well-formed answer, SynthesizedResult when
            the answer text could not be parsed.

        Raises:
            RemoteScoringFailed: When no answer text was obtained at all.
        """
        user = build_user_message(
            profile.model_dump(),
            [visa.model_dump() for visa in catalog],
        )
        raw = self._llm.generate_json(ASSESSMENT_SYSTEM_PROMPT, user)

        try:
            result = parse_remote_response(raw)
        except RemoteParseFailed as exc:
            logger.warning("Remote answer unusable, synthesising result: %s", exc)
            return synthesize_result(exc.raw_text)

        logger.info(
            "Remote assessment | model=%s score=%d visa=%s",
            self._llm.model_name,
            result.assessment_score,
            result.recommended_visa_code,
        )
        return result


# ── Parsing ────────────────────────────────────────────────────────────────────

def parse_remote_response(raw: str) -> ExternalResult:
    """Parse the model's answer into an ExternalResult.

    Feedback lists longer than five entries are truncated.

    Raises:
        RemoteParseFailed: On invalid JSON, a non-object payload, missing
            fields or wrongly typed values.  ``raw_text`` holds ``raw``.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise RemoteParseFailed("empty answer", raw_text=raw or "")

    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RemoteParseFailed(f"invalid JSON: {exc}", raw_text=raw) from exc

    if not isinstance(parsed, dict):
        raise RemoteParseFailed(
            f"expected a JSON object, got {type(parsed).__name__}", raw_text=raw
        )

    missing = [f for f in _REQUIRED_FIELDS if f not in parsed]
    if missing:
        raise RemoteParseFailed(f"missing fields {missing}", raw_text=raw)

    data = {f: parsed[f] for f in _REQUIRED_FIELDS}
    for list_field in ("strengths", "improvement_areas"):
        if isinstance(data[list_field], list):
            data[list_field] = data[list_field][:MAX_FEEDBACK_ITEMS]

    try:
        return ExternalResult(**data)
    except ValidationError as exc:
        raise RemoteParseFailed(
            f"invalid field values: {exc.error_count()} error(s)", raw_text=raw
        ) from exc


def synthesize_result(raw_text: str) -> SynthesizedResult:
    """Fixed placeholder assessment that keeps the model's raw text."""
    return SynthesizedResult(
        assessment_score=SYNTHESIZED_SCORE,
        recommended_visa_code=SYNTHESIZED_VISA_CODE,
        strengths=list(SYNTHESIZED_STRENGTHS),
        improvement_areas=list(SYNTHESIZED_IMPROVEMENTS),
        detailed_analysis=raw_text,
    )
