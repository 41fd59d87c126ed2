"""
config/prompts.py
──────────────────────────────────────────────────────────────────────────────
All LLM prompt strings in one place.

Why centralise prompts?
  • Easy to diff and review prompt changes in version control
  • Swap or tune a prompt without touching service logic

To change the consultant persona: edit ASSESSMENT_SYSTEM_PROMPT.
To change the output schema: edit ASSESSMENT_OUTPUT_SCHEMA and keep
services/remote_scorer.py's parser in step.
"""
from __future__ import annotations

# ── System prompt ──────────────────────────────────────────────────────────────
ASSESSMENT_SYSTEM_PROMPT = """\
You are an expert Australian immigration consultant. Provide accurate, \
helpful visa assessments based on current immigration requirements. \
Always answer with a single JSON object.\
"""

# ── Expected output schema (embedded in the user message) ─────────────────────
ASSESSMENT_OUTPUT_SCHEMA = """\
{
  "assessment_score": number,
  "recommended_visa_code": "string",
  "strengths": ["string"],
  "improvement_areas": ["string"],
  "detailed_analysis": "string"
}"""

# ── User message template ──────────────────────────────────────────────────────
ASSESSMENT_USER_TEMPLATE = """\
Analyze the following user profile for Australian visa eligibility and \
provide a detailed assessment:

User Profile:
- Age: {age} years
- Nationality: {nationality}
- Education: {education_level}
- Occupation: {current_occupation}
- Experience: {years_of_experience} years
- Preferred State: {preferred_state}

Available Visa Categories:
{catalog_block}

Please provide:
1. An overall assessment score out of 100
2. The most suitable visa category
3. User's strengths (3-5 points)
4. Areas for improvement (3-5 points)
5. Detailed analysis explaining the recommendation

Format your response as JSON with this structure:
{schema}\
"""

# ── Catalog line template ──────────────────────────────────────────────────────
CATALOG_LINE_TEMPLATE = "- {visa_code}: {visa_name} ({points_required} points required)"

_NOT_PROVIDED = "Not provided"


def build_catalog_block(catalog: list[dict]) -> str:
    """Renders one line per visa category for the user message.

    Args:
        catalog: List of catalog dicts (from VisaCategoryRef.model_dump()).

    Returns:
        Formatted multi-line string; a placeholder line when empty.
    """
    if not catalog:
        return "- (no visa categories available)"
    lines = []
    for visa in catalog:
        points = visa.get("points_required")
        lines.append(
            CATALOG_LINE_TEMPLATE.format(
                visa_code=visa.get("visa_code", ""),
                visa_name=visa.get("visa_name", ""),
                points_required="no" if points is None else points,
            )
        )
    return "\n".join(lines)


def build_user_message(profile: dict, catalog: list[dict]) -> str:
    """Assembles the user-turn message for the LLM.

    Args:
        profile: Normalised profile dict (NormalizedProfile.model_dump()).
        catalog: List of catalog dicts.

    Returns:
        Formatted user message string.
    """
    return ASSESSMENT_USER_TEMPLATE.format(
        age=profile.get("age", 0),
        nationality=profile.get("nationality") or _NOT_PROVIDED,
        education_level=profile.get("education_level") or _NOT_PROVIDED,
        current_occupation=profile.get("current_occupation") or _NOT_PROVIDED,
        years_of_experience=profile.get("years_of_experience", 0),
        preferred_state=profile.get("preferred_state") or _NOT_PROVIDED,
        catalog_block=build_catalog_block(catalog),
        schema=ASSESSMENT_OUTPUT_SCHEMA,
    )
