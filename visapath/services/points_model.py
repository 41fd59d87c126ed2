"""
services/points_model.py
──────────────────────────────────────────────────────────────────────────────
Deterministic fallback scoring, modelled on the Australian skilled-migration
points test.

Used whenever remote scoring is not configured or fails outright.  Every
function here is pure: the same NormalizedProfile always yields the same
FallbackResult, bit for bit.

Components (each >= 0, summed without an upper clamp):
  age         18-24 → 25 | 25-32 → 30 | 33-39 → 25 | 40-44 → 15 | else 0
  education   PhD/Doctorate 20 > Master 15 > Bachelor 15 > Diploma 10 >
              Certificate/Trade 10 > none 0
  experience  >= 8y → 15 | >= 5y → 10 | >= 3y → 5 | else 0
  english     fixed 10 (competent English assumed; no test score collected)
  additional  +5 preferred state given (not "Any"), +5 priority occupation

Recommended subclass by total: >= 85 → 189 | >= 70 → 190 | >= 55 → 491 | 482
"""
from __future__ import annotations

from visapath.domain.models import (
    MAX_FEEDBACK_ITEMS,
    DetailedAnalysis,
    FallbackReason,
    FallbackResult,
    NormalizedProfile,
    PointsBreakdown,
)

ENGLISH_POINTS = 10
STATE_NOMINATION_POINTS = 5
PRIORITY_OCCUPATION_POINTS = 5
PASS_MARK = 65
PROFESSIONAL_YEAR_CUTOFF = 80
ANY_STATE = "Any"

# (substrings, label, points); first match wins
EDUCATION_RULES: tuple[tuple[tuple[str, ...], str, int], ...] = (
    (("phd", "doctorate"),      "doctorate",   20),
    (("master",),               "master",      15),
    (("bachelor",),             "bachelor",    15),
    (("diploma",),              "diploma",     10),
    (("certificate", "trade"),  "certificate", 10),
)

PRIORITY_OCCUPATION_KEYWORDS = ("engineer", "accountant", "it", "computer")

# (minimum score, subclass), checked top down
VISA_BANDS: tuple[tuple[int, str], ...] = (
    (85, "189"),  # Skilled Independent
    (70, "190"),  # Skilled Nominated
    (55, "491"),  # Skilled Work Regional
)
DEFAULT_VISA_CODE = "482"  # Temporary Skill Shortage


# ── Free-text heuristics ───────────────────────────────────────────────────────

def classify_education(label: str | None) -> str | None:
    """Map a free-text education label to a qualification tier (or None)."""
    text = (label or "").lower()
    for needles, tier, _ in EDUCATION_RULES:
        if any(n in text for n in needles):
            return tier
    return None


def is_priority_occupation(occupation: str | None) -> bool:
    """Substring test against the priority occupation keywords.

    Plain substring matching: "it" also matches e.g. "Waiter".
    """
    text = (occupation or "").lower()
    return any(k in text for k in PRIORITY_OCCUPATION_KEYWORDS)


def has_preferred_state(state: str | None) -> bool:
    return bool(state) and state != ANY_STATE


# ── Component scores ───────────────────────────────────────────────────────────

def age_points(age: int) -> int:
    if 18 <= age <= 24:
        return 25
    if 25 <= age <= 32:
        return 30
    if 33 <= age <= 39:
        return 25
    if 40 <= age <= 44:
        return 15
    return 0


def education_points(label: str | None) -> int:
    tier = classify_education(label)
    for _, rule_tier, points in EDUCATION_RULES:
        if rule_tier == tier:
            return points
    return 0


def experience_points(years: int) -> int:
    if years >= 8:
        return 15
    if years >= 5:
        return 10
    if years >= 3:
        return 5
    return 0


def additional_points(preferred_state: str | None, occupation: str | None) -> int:
    points = 0
    if has_preferred_state(preferred_state):
        points += STATE_NOMINATION_POINTS
    if is_priority_occupation(occupation):
        points += PRIORITY_OCCUPATION_POINTS
    return points


def compute_breakdown(profile: NormalizedProfile) -> PointsBreakdown:
    """Score every component of the points model."""
    return PointsBreakdown(
        age=age_points(profile.age),
        education=education_points(profile.education_level),
        experience=experience_points(profile.years_of_experience),
        english=ENGLISH_POINTS,
        additional=additional_points(
            profile.preferred_state, profile.current_occupation
        ),
    )


def recommend_visa_code(score: int) -> str:
    """Visa subclass for a total score; bands are closed below."""
    for minimum, code in VISA_BANDS:
        if score >= minimum:
            return code
    return DEFAULT_VISA_CODE


def clamp_score(score: int) -> int:
    """Clamp to 0..100 for displays that assume a percentage scale."""
    return max(0, min(100, score))


# ── Narrative ──────────────────────────────────────────────────────────────────

def build_strengths(profile: NormalizedProfile, breakdown: PointsBreakdown) -> list[str]:
    strengths: list[str] = []
    if breakdown.age >= 25:
        strengths.append(
            f"Excellent age range ({profile.age} years) - {breakdown.age} points"
        )
    if breakdown.education >= 15:
        strengths.append(
            f"Strong educational qualifications - {breakdown.education} points"
        )
    if breakdown.experience >= 10:
        strengths.append(
            f"Substantial work experience ({profile.years_of_experience} years)"
            f" - {breakdown.experience} points"
        )
    if profile.current_occupation:
        strengths.append("Clear occupation pathway for skills assessment")
    if breakdown.total >= PASS_MARK:
        strengths.append("Meets minimum points threshold for skilled migration")
    return strengths[:MAX_FEEDBACK_ITEMS]


def build_improvements(profile: NormalizedProfile, breakdown: PointsBreakdown) -> list[str]:
    improvements: list[str] = []
    if breakdown.age < 15:
        improvements.append("Age affects points - consider applying sooner")
    if breakdown.education < 15:
        improvements.append(
            "Higher qualifications could improve your score significantly"
        )
    if breakdown.experience < 10:
        improvements.append("More work experience would boost your points")
    if not has_preferred_state(profile.preferred_state):
        improvements.append("Consider state nomination for additional 5-15 points")
    improvements.append("Achieve superior English (8.0+ IELTS) for maximum 20 points")
    improvements.append("Complete skills assessment from relevant assessing authority")
    if breakdown.total < PROFESSIONAL_YEAR_CUTOFF:
        improvements.append("Consider Professional Year program for additional points")
    return improvements[:MAX_FEEDBACK_ITEMS]


def build_detailed_analysis(
    score: int,
    breakdown: PointsBreakdown,
    visa_code: str,
) -> DetailedAnalysis:
    if score >= PASS_MARK:
        next_steps = (
            "You meet the minimum points requirement. Focus on skills "
            "assessment and English test preparation."
        )
    else:
        next_steps = (
            f"You're below the minimum {PASS_MARK} points threshold. Consider "
            "improving your qualifications or English proficiency."
        )
    return DetailedAnalysis(
        summary=(
            f"Based on your profile, you scored {score} points out of 100. "
            "This assessment follows the Australian immigration points system."
        ),
        breakdown=breakdown,
        recommendation=(
            f"With {score} points, visa subclass {visa_code} appears most "
            "suitable for your profile."
        ),
        next_steps=next_steps,
    )


# ── Entry point ────────────────────────────────────────────────────────────────

def score_profile(
    profile: NormalizedProfile,
    reason: FallbackReason = FallbackReason.NOT_CONFIGURED,
) -> FallbackResult:
    """Run the full deterministic assessment for one normalised profile."""
    breakdown = compute_breakdown(profile)
    score = breakdown.total
    code = recommend_visa_code(score)
    return FallbackResult(
        assessment_score=score,
        recommended_visa_code=code,
        strengths=build_strengths(profile, breakdown),
        improvement_areas=build_improvements(profile, breakdown),
        detailed_analysis=build_detailed_analysis(score, breakdown, code),
        breakdown=breakdown,
        fallback_reason=reason,
    )
