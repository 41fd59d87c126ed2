"""
services/assessment_engine.py
──────────────────────────────────────────────────────────────────────────────
Pipeline orchestrator: assess(user_id) → AssessmentResponse.

Per-call state machine:

  Start → InputsLoaded → ExternalAttempt → Success
                                         → ParseFailureSynthesized
                                         → Fallback
        → CatalogMatched → Persisted → Done

  Any terminal error short-circuits to Failed(kind):
    ProfileUnavailable  — profile row missing or unreadable
    CatalogUnavailable  — visa_categories unreadable
    PersistFailed       — assessment insert failed

Exactly one branch produces the score.  Remote scoring is attempted only
when a RemoteScorer was injected; with remote_scorer=None the engine never
touches the network.  Every call inserts a NEW row (history is append-only).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from visapath.config.settings import Settings
from visapath.domain.exceptions import (
    CatalogUnavailable,
    DatabaseError,
    PersistFailed,
    ProfileUnavailable,
    RemoteScoringFailed,
    VisaPathError,
)
from visapath.domain.models import (
    AssessmentFailure,
    AssessmentRecord,
    AssessmentResponse,
    AssessmentResult,
    ExternalResult,
    FallbackReason,
    FallbackResult,
    NormalizedProfile,
    Profile,
    ScoringSource,
    SynthesizedResult,
    VisaCategoryRef,
)
from visapath.ports.database_port import AssessmentStorePort
from visapath.services.normalizer import normalize_profile
from visapath.services.points_model import score_profile
from visapath.services.remote_scorer import RemoteScorer

logger = logging.getLogger(__name__)

Outcome = ExternalResult | SynthesizedResult | FallbackResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssessmentEngine:
    """Visa eligibility assessment pipeline.

    Inject via services/container.py — do not instantiate directly in
    application code.

    Args:
        store:         AssessmentStorePort (profiles, catalog, assessments).
        remote_scorer: RemoteScorer, or None when no credential is configured.
        settings:      Shared application settings.
        clock:         Returns the reference instant (UTC) for age maths.
    """

    def __init__(
        self,
        store: AssessmentStorePort,
        remote_scorer: Optional[RemoteScorer],
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._remote = remote_scorer
        self._settings = settings
        self._clock = clock

    @property
    def remote_enabled(self) -> bool:
        return self._remote is not None

    # ── Public API ─────────────────────────────────────────────────────────

    def assess(self, user_id: str) -> AssessmentResponse:
        """Produce, persist and return a new assessment for ``user_id``.

        Raises:
            ProfileUnavailable: Profile missing or unreadable.
            CatalogUnavailable: Visa catalog unreadable.
            PersistFailed:      Assessment could not be stored.
        """
        logger.info("assess | user_id=%s remote=%s", user_id, self.remote_enabled)

        profile = self._load_profile(user_id)
        catalog = self._load_catalog()
        created_at = self._clock()
        normalized = normalize_profile(profile, created_at)

        outcome = self._score(normalized, catalog)
        recommended = match_visa_category(outcome.recommended_visa_code, catalog)
        if recommended is None:
            logger.info(
                "Recommended visa %r not in catalog; storing without visa id",
                outcome.recommended_visa_code,
            )

        result = AssessmentResult(
            user_id=user_id,
            assessment_score=outcome.assessment_score,
            recommended_visa_code=outcome.recommended_visa_code,
            recommended_visa_id=recommended.id if recommended else None,
            strengths=outcome.strengths,
            improvement_areas=outcome.improvement_areas,
            detailed_analysis=outcome.detailed_analysis,
            is_premium=False,
            source=ScoringSource(outcome.source),
            created_at=created_at,
        )
        record = self._persist(result)

        logger.info(
            "assess done | user_id=%s source=%s score=%d visa=%s",
            user_id,
            result.source.value,
            result.assessment_score,
            result.recommended_visa_code,
        )
        return AssessmentResponse(
            assessment=record,
            recommended_visa=recommended,
            scoring_source=result.source,
            fallback_reason=(
                outcome.fallback_reason if isinstance(outcome, FallbackResult) else None
            ),
        )

    def history(self, user_id: str, limit: Optional[int] = None) -> list[AssessmentRecord]:
        """Return a user's stored assessments, newest first."""
        if limit is None:
            limit = self._settings.history_limit
        try:
            rows = self._store.list_assessments(user_id, limit)
        except DatabaseError as exc:
            logger.error("history failed for user_id=%s: %s", user_id, exc)
            raise
        records = [AssessmentRecord(**row) for row in rows]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    # ── Pipeline steps ─────────────────────────────────────────────────────

    def _load_profile(self, user_id: str) -> Profile:
        try:
            row = self._store.fetch_profile(user_id)
        except DatabaseError as exc:
            logger.error("Profile fetch failed for user_id=%s: %s", user_id, exc)
            raise ProfileUnavailable("Failed to fetch user profile") from exc
        if row is None:
            raise ProfileUnavailable(f"No profile found for user {user_id}")
        try:
            return Profile(**row)
        except ValidationError as exc:
            raise ProfileUnavailable("Stored profile is malformed") from exc

    def _load_catalog(self) -> list[VisaCategoryRef]:
        try:
            rows = self._store.fetch_visa_catalog()
        except DatabaseError as exc:
            logger.error("Visa catalog fetch failed: %s", exc)
            raise CatalogUnavailable("Failed to fetch visa categories") from exc

        catalog: list[VisaCategoryRef] = []
        for row in rows:
            try:
                catalog.append(VisaCategoryRef(**row))
            except ValidationError as exc:
                logger.warning("Skipping malformed catalog row %s: %s", row.get("id"), exc)
        return catalog

    def _score(
        self,
        profile: NormalizedProfile,
        catalog: list[VisaCategoryRef],
    ) -> Outcome:
        if self._remote is None:
            return score_profile(profile, FallbackReason.NOT_CONFIGURED)

        try:
            return self._remote.score(profile, catalog)
        except RemoteScoringFailed as exc:
            reason = (
                FallbackReason.QUOTA_EXCEEDED if exc.is_quota else FallbackReason.REMOTE_FAILED
            )
            logger.warning(
                "Remote scoring failed (%s), using points model: %s",
                exc.failure_kind.value,
                exc,
            )
            return score_profile(profile, reason)

    def _persist(self, result: AssessmentResult) -> AssessmentRecord:
        try:
            row = self._store.insert_assessment(result.to_row())
        except DatabaseError as exc:
            logger.error("Assessment insert failed for user_id=%s: %s", result.user_id, exc)
            raise PersistFailed("Failed to save assessment") from exc
        try:
            return AssessmentRecord(**row)
        except ValidationError as exc:
            raise PersistFailed("Stored assessment row is malformed") from exc


# ── Helpers ────────────────────────────────────────────────────────────────────

def match_visa_category(
    visa_code: str,
    catalog: list[VisaCategoryRef],
) -> Optional[VisaCategoryRef]:
    """Exact visa_code lookup; None when the code is not in the catalog."""
    return next((visa for visa in catalog if visa.visa_code == visa_code), None)


def failure_envelope(exc: VisaPathError) -> AssessmentFailure:
    """Failure envelope for a terminal assessment error."""
    return AssessmentFailure(error=str(exc) or "Failed to generate assessment", kind=exc.kind)
