"""
tests/integration/test_deepseek_llm.py
──────────────────────────────────────────────────────────────────────────────
Integration tests for the configured remote LLM provider (DeepSeek by default).

Requires:
  • Network access to the provider endpoint
  • DEEPSEEK_API_KEY (or LLM_PROVIDER=openai with OPENAI_API_KEY) set

Run with:
  pytest -m integration visapath/tests/integration/test_deepseek_llm.py -v

IMPORTANT: These tests make real API calls and incur provider costs.
"""
from __future__ import annotations

import pytest

from visapath.domain.models import NormalizedProfile, VisaCategoryRef

pytestmark = pytest.mark.integration

_PROFILE = NormalizedProfile(
    age=29,
    nationality="Brazilian",
    education_level="Bachelor of Nursing",
    current_occupation="Registered Nurse",
    years_of_experience=6,
    preferred_state="Queensland",
)

_CATALOG = [
    VisaCategoryRef(id="i-189", visa_code="189", visa_name="Skilled Independent", points_required=65),
    VisaCategoryRef(id="i-190", visa_code="190", visa_name="Skilled Nominated", points_required=65),
    VisaCategoryRef(id="i-482", visa_code="482", visa_name="Temporary Skill Shortage"),
]


@pytest.fixture(scope="module")
def remote_scorer():
    from visapath.config.settings import get_settings
    from visapath.services.container import _build_remote_scorer
    scorer = _build_remote_scorer(get_settings())
    if scorer is None:
        pytest.skip("No API key configured for the selected LLM provider")
    return scorer


class TestRemoteScoring:
    def test_returns_scored_outcome(self, remote_scorer):
        outcome = remote_scorer.score(_PROFILE, _CATALOG)
        assert outcome.source in ("external", "synthesized")
        assert isinstance(outcome.assessment_score, int)
        assert outcome.recommended_visa_code

    def test_feedback_lists_bounded(self, remote_scorer):
        outcome = remote_scorer.score(_PROFILE, _CATALOG)
        assert len(outcome.strengths) <= 5
        assert len(outcome.improvement_areas) <= 5
