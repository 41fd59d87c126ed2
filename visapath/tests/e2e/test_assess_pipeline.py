"""
tests/e2e/test_assess_pipeline.py
──────────────────────────────────────────────────────────────────────────────
End-to-end pipeline tests using mock adapters.

These run WITHOUT a real database or LLM provider (mock adapters from
conftest.py).  They test the full pipeline wiring:
user id → profile → catalog → scoring → persisted record → response envelope.

For real end-to-end tests that hit live services, see the integration/ folder
and run with: pytest -m integration
"""
from __future__ import annotations

import json

from visapath.domain.models import AssessmentResponse, ScoringSource


class TestFullPipelinePointsModel:
    def test_assess_returns_response(self, engine):
        resp = engine.assess("user-strong")
        assert isinstance(resp, AssessmentResponse)
        assert resp.success is True

    def test_record_mirrors_stored_row(self, engine, store):
        resp = engine.assess("user-strong")
        row = store.assessments[-1]
        assert resp.assessment.id == row["id"]
        assert resp.assessment.strengths == row["strengths"]
        assert resp.assessment.created_at == row["created_at"]

    def test_to_dict_is_json_serialisable(self, engine):
        resp = engine.assess("user-strong")
        text = json.dumps(resp.to_dict())
        assert "nextSteps" in text

    def test_feedback_lists_bounded(self, engine):
        for user in ("user-strong", "user-weak", "user-sparse"):
            a = engine.assess(user).assessment
            assert len(a.strengths) <= 5
            assert len(a.improvement_areas) <= 5


class TestFullPipelineRemote:
    def test_remote_answer_persisted(self, make_engine, mock_llm, store):
        resp = make_engine(mock_llm).assess("user-strong")
        assert resp.scoring_source == ScoringSource.EXTERNAL
        row = store.assessments[-1]
        assert row["assessment_score"] == 78
        assert row["recommended_visa_id"] == "visa-190"
        assert row["detailed_analysis"] == (
            "A competitive profile for state nomination in Victoria."
        )

    def test_prompt_lists_catalog(self, make_engine, mock_llm):
        make_engine(mock_llm).assess("user-strong")
        _, user_message = mock_llm.calls[0]
        for code in ("189", "190", "491"):
            assert f"- {code}:" in user_message

    def test_mixed_sources_share_history(self, make_engine, mock_llm, later_clock):
        remote = make_engine(mock_llm, clock=later_clock)
        local = make_engine(clock=later_clock)
        remote.assess("user-strong")
        local.assess("user-strong")
        history = local.history("user-strong")
        assert [r.assessment_score for r in history] == [80, 78]
