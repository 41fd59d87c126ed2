"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • adapters produce and consume them (rows in, rows out)
  • services orchestrate them
  • interfaces (CLI, future API) serialise them

Field names deliberately mirror the database columns (profiles,
visa_categories, visa_assessments) so rows validate with Model(**row).
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_FEEDBACK_ITEMS = 5


# ── Enums ──────────────────────────────────────────────────────────────────────

class ScoringSource(str, Enum):
    """Which branch of the pipeline produced the score."""
    EXTERNAL    = "external"     # remote model answered with valid JSON
    SYNTHESIZED = "synthesized"  # remote model answered, JSON unusable
    FALLBACK    = "fallback"     # deterministic points model


class FallbackReason(str, Enum):
    """Why the deterministic points model was used."""
    NOT_CONFIGURED = "not_configured"
    QUOTA_EXCEEDED = "quota_exceeded"
    REMOTE_FAILED  = "remote_failed"


def _optional_str(v: Any) -> Any:
    return None if v is None else str(v)


# ── Input ──────────────────────────────────────────────────────────────────────

class Profile(BaseModel):
    """A stored user profile row.

    Missing or malformed optional fields become None rather than failing
    validation; scoring treats them as zero contribution.
    """

    id: str
    date_of_birth:       Optional[date] = None
    nationality:         Optional[str]  = None
    education_level:     Optional[str]  = None
    current_occupation:  Optional[str]  = None
    years_of_experience: Optional[int]  = None
    preferred_state:     Optional[str]  = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return _optional_str(v)

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[date]:
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        try:
            return date.fromisoformat(str(v).strip()[:10])
        except ValueError:
            return None

    @field_validator("years_of_experience", mode="before")
    @classmethod
    def lenient_experience(cls, v: Any) -> Optional[int]:
        if v is None or isinstance(v, bool):
            return None
        try:
            years = int(float(v))
        except (TypeError, ValueError):
            return None
        return years if years >= 0 else None


class NormalizedProfile(BaseModel):
    """Canonical scoring inputs derived from a Profile."""

    age:                 int = 0
    nationality:         str = ""
    education_level:     str = ""
    current_occupation:  str = ""
    years_of_experience: int = 0
    preferred_state:     str = ""


class VisaCategoryRef(BaseModel):
    """Read-only catalog entry for one visa subclass."""

    id:              str
    visa_code:       str
    visa_name:       str
    points_required: Optional[int]   = None
    description:     Optional[str]   = None
    processing_time: Optional[str]   = None
    application_fee: Optional[float] = None

    @field_validator("id", "visa_code", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        return _optional_str(v)


# ── Scoring ────────────────────────────────────────────────────────────────────

class PointsBreakdown(BaseModel):
    """Per-component contributions of the deterministic points model."""

    age:        int = Field(0, ge=0)
    education:  int = Field(0, ge=0)
    experience: int = Field(0, ge=0)
    english:    int = Field(0, ge=0)
    additional: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.age + self.education + self.experience + self.english + self.additional


class DetailedAnalysis(BaseModel):
    """Structured narrative stored with deterministic assessments."""

    model_config = ConfigDict(populate_by_name=True)

    summary:        str
    breakdown:      PointsBreakdown
    recommendation: str
    next_steps:     str = Field(..., alias="nextSteps")


class _ScoredAssessment(BaseModel):
    """Fields shared by every scoring branch."""

    assessment_score:      int
    recommended_visa_code: str
    strengths:         list[str] = Field(default_factory=list, max_length=MAX_FEEDBACK_ITEMS)
    improvement_areas: list[str] = Field(default_factory=list, max_length=MAX_FEEDBACK_ITEMS)
    detailed_analysis: Union[DetailedAnalysis, dict[str, Any], str]

    @field_validator("recommended_visa_code", mode="before")
    @classmethod
    def stringify_code(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v.strip() if isinstance(v, str) else v

    @field_validator("assessment_score", mode="before")
    @classmethod
    def round_score(cls, v: Any) -> Any:
        if isinstance(v, float):
            return round(v)
        return v


class ExternalResult(_ScoredAssessment):
    """Remote model answered with a well-formed assessment."""

    source: Literal["external"] = "external"


class SynthesizedResult(_ScoredAssessment):
    """Remote model answered, but its text could not be parsed."""

    source: Literal["synthesized"] = "synthesized"


class FallbackResult(_ScoredAssessment):
    """Deterministic points-model assessment."""

    source: Literal["fallback"] = "fallback"
    breakdown:       PointsBreakdown
    fallback_reason: FallbackReason


ScoringOutcome = Annotated[
    Union[ExternalResult, SynthesizedResult, FallbackResult],
    Field(discriminator="source"),
]


# ── Engine output ──────────────────────────────────────────────────────────────

class AssessmentResult(BaseModel):
    """One assessment, built once per engine run and never mutated."""

    model_config = ConfigDict(frozen=True)

    user_id:               str
    assessment_score:      int
    recommended_visa_code: str
    recommended_visa_id:   Optional[str] = None
    strengths:             list[str] = Field(default_factory=list)
    improvement_areas:     list[str] = Field(default_factory=list)
    detailed_analysis:     Union[DetailedAnalysis, dict[str, Any], str]
    is_premium:            bool = False
    source:                ScoringSource
    created_at:            datetime = Field(
                               default_factory=lambda: datetime.now(timezone.utc)
                           )

    def to_row(self) -> dict[str, Any]:
        """Columns for a visa_assessments insert (JSON-safe values)."""
        analysis = self.detailed_analysis
        if isinstance(analysis, DetailedAnalysis):
            analysis = analysis.model_dump(mode="json", by_alias=True)
        return {
            "user_id": self.user_id,
            "assessment_score": self.assessment_score,
            "recommended_visa_id": self.recommended_visa_id,
            "strengths": list(self.strengths),
            "improvement_areas": list(self.improvement_areas),
            "detailed_analysis": analysis,
            "is_premium": self.is_premium,
            "created_at": self.created_at,
        }


class AssessmentRecord(BaseModel):
    """A persisted visa_assessments row."""

    id:                  str
    user_id:             str
    assessment_score:    Optional[int] = None
    recommended_visa_id: Optional[str] = None
    strengths:           list[str] = Field(default_factory=list)
    improvement_areas:   list[str] = Field(default_factory=list)
    detailed_analysis:   Any = None
    is_premium:          bool = False
    created_at:          datetime

    @field_validator("id", "user_id", "recommended_visa_id", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        return _optional_str(v)

    @field_validator("strengths", "improvement_areas", mode="before")
    @classmethod
    def null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("is_premium", mode="before")
    @classmethod
    def null_flag(cls, v: Any) -> Any:
        return False if v is None else v


# ── Envelopes ──────────────────────────────────────────────────────────────────

class AssessmentResponse(BaseModel):
    """Success envelope returned by AssessmentEngine.assess().

    A fallback assessment is still a success; ``fallback_reason`` tells the
    caller whether to show a "basic scoring used" notice and why.
    """

    success:          Literal[True] = True
    assessment:       AssessmentRecord
    recommended_visa: Optional[VisaCategoryRef] = None
    scoring_source:   ScoringSource
    fallback_reason:  Optional[FallbackReason] = None

    @property
    def basic_scoring_used(self) -> bool:
        return self.scoring_source == ScoringSource.FALLBACK

    def to_dict(self) -> dict:
        """Serialise to a plain dict (JSON-safe)."""
        return self.model_dump(mode="json")


class AssessmentFailure(BaseModel):
    """Failure envelope: no assessment could be produced."""

    success: Literal[False] = False
    error:   str
    kind:    str

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
