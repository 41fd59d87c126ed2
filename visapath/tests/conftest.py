"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and mock adapter implementations.

Mock adapters implement the Port Protocols via structural subtyping — they do
NOT inherit from any base class.  pytest uses them to test service logic
without any real LLM or database connections.

Fixture hierarchy:
  store            → InMemoryAssessmentStore (implements AssessmentStorePort)
  mock_llm         → MockLLMAdapter returning a well-formed assessment
  engine           → AssessmentEngine with NO remote scorer (points model)
  make_engine      → factory: AssessmentEngine wired with any LLM adapter
  reference_instant→ fixed "now" used by every engine built here
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from visapath.config.settings import Settings
from visapath.domain.exceptions import (
    DatabaseError,
    RemoteFailureKind,
    RemoteScoringFailed,
)
from visapath.services.assessment_engine import AssessmentEngine
from visapath.services.remote_scorer import RemoteScorer

REFERENCE_INSTANT = datetime(2026, 6, 1, tzinfo=timezone.utc)


# ── Settings fixture ───────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def settings() -> Settings:
    """Return a Settings instance with sane test defaults (no API keys)."""
    return Settings(
        llm_provider="deepseek",
        deepseek_api_key="",
        deepseek_model="deepseek-test",
        deepseek_base_url="https://deepseek.invalid",
        openai_api_key="",
        openai_llm_model="gpt-test",
        llm_temperature=0.3,
        llm_timeout=5,
        llm_retries=3,
        db_dsn="dbname=visapath_test",
        history_limit=10,
    )


@pytest.fixture
def reference_instant() -> datetime:
    return REFERENCE_INSTANT


# ── In-memory store fixture data ───────────────────────────────────────────

_PROFILES: dict[str, dict] = {
    # 27 years old at REFERENCE_INSTANT → 80 points → 190
    "user-strong": {
        "id": "user-strong",
        "date_of_birth": "1999-01-15",
        "nationality": "Indian",
        "education_level": "Master of IT",
        "current_occupation": "Software Engineer",
        "years_of_experience": 9,
        "preferred_state": "Victoria",
    },
    # 46 years old at REFERENCE_INSTANT → 10 points → 482
    "user-weak": {
        "id": "user-weak",
        "date_of_birth": "1980-01-01",
        "nationality": "Filipino",
        "education_level": "High School",
        "current_occupation": "Driver",
        "years_of_experience": 1,
        "preferred_state": None,
    },
    "user-sparse": {
        "id": "user-sparse",
    },
}

_CATALOG: list[dict] = [
    {"id": "visa-189", "visa_code": "189", "visa_name": "Skilled Independent", "points_required": 65},
    {"id": "visa-190", "visa_code": "190", "visa_name": "Skilled Nominated", "points_required": 65},
    {"id": "visa-491", "visa_code": "491", "visa_name": "Skilled Work Regional (Provisional)", "points_required": 65},
    # 482 is deliberately absent: tests rely on an unmatched recommendation
]


class InMemoryAssessmentStore:
    """In-memory fake AssessmentStorePort.

    Add an operation name to ``fail_on`` to make it raise DatabaseError.
    """

    def __init__(self) -> None:
        self.profiles = {k: dict(v) for k, v in _PROFILES.items()}
        self.catalog = [dict(v) for v in _CATALOG]
        self.assessments: list[dict[str, Any]] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise DatabaseError(f"{operation} failed (simulated)")

    def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        self._maybe_fail("fetch_profile")
        row = self.profiles.get(user_id)
        return dict(row) if row is not None else None

    def fetch_visa_catalog(self) -> list[dict[str, Any]]:
        self._maybe_fail("fetch_visa_catalog")
        return [dict(v) for v in self.catalog]

    def insert_assessment(self, row: dict[str, Any]) -> dict[str, Any]:
        self._maybe_fail("insert_assessment")
        stored = {"id": f"assessment-{len(self.assessments) + 1}", **row}
        self.assessments.append(stored)
        return dict(stored)

    def list_assessments(self, user_id: str, limit: int) -> list[dict[str, Any]]:
        self._maybe_fail("list_assessments")
        rows = [dict(r) for r in self.assessments if r["user_id"] == user_id]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return rows[:limit]


# ── Mock LLM adapters ──────────────────────────────────────────────────────

WELL_FORMED_ANSWER = json.dumps(
    {
        "assessment_score": 78,
        "recommended_visa_code": "190",
        "strengths": ["Young age bracket", "Master's degree", "Nine years in IT"],
        "improvement_areas": ["Sit PTE Academic", "Obtain ACS skills assessment"],
        "detailed_analysis": "A competitive profile for state nomination in Victoria.",
    }
)


class MockLLMAdapter:
    """Returns a canned answer and records every prompt it receives."""

    model_name = "mock-llm"

    def __init__(self, answer: str = WELL_FORMED_ANSWER) -> None:
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    def generate_json(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        return self.answer


class FailingLLMAdapter:
    """Raises RemoteScoringFailed of the given kind on every call."""

    model_name = "mock-llm-failing"

    def __init__(self, kind: RemoteFailureKind = RemoteFailureKind.TRANSPORT) -> None:
        self.kind = kind
        self.calls = 0

    def generate_json(self, system_prompt: str, user_message: str) -> str:
        self.calls += 1
        raise RemoteScoringFailed(f"simulated {self.kind.value} failure", self.kind)


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def store() -> InMemoryAssessmentStore:
    return InMemoryAssessmentStore()


@pytest.fixture
def mock_llm() -> MockLLMAdapter:
    return MockLLMAdapter()


@pytest.fixture
def make_engine(store, settings):
    """Factory: engine wired with ``llm`` (None → points model only)."""

    def _make(llm=None, clock=lambda: REFERENCE_INSTANT) -> AssessmentEngine:
        remote = RemoteScorer(llm=llm) if llm is not None else None
        return AssessmentEngine(
            store=store,
            remote_scorer=remote,
            settings=settings,
            clock=clock,
        )

    return _make


@pytest.fixture
def engine(make_engine) -> AssessmentEngine:
    """Engine with no remote credential: deterministic scoring only."""
    return make_engine()


@pytest.fixture
def mock_llm_factory():
    return MockLLMAdapter


@pytest.fixture
def failing_llm_factory():
    return FailingLLMAdapter


@pytest.fixture
def later_clock():
    """Clock that advances one minute per call, for history ordering tests."""
    ticks = {"n": 0}

    def _clock() -> datetime:
        ticks["n"] += 1
        return REFERENCE_INSTANT + timedelta(minutes=ticks["n"])

    return _clock
