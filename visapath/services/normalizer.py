"""
services/normalizer.py
──────────────────────────────────────────────────────────────────────────────
Profile normalisation: stored profile row → canonical scoring inputs.

Age uses the average Gregorian year (365.25 days) rather than calendar
arithmetic so that scores match assessments already stored.  A date of birth
is taken as midnight UTC on that day.

Pure functions only — no I/O, never raises.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Union

from pydantic import ValidationError

from visapath.domain.models import NormalizedProfile, Profile

logger = logging.getLogger(__name__)

_AVERAGE_YEAR = timedelta(days=365.25)


def age_in_years(date_of_birth: date | None, reference_instant: datetime) -> int:
    """Whole years between ``date_of_birth`` and ``reference_instant``.

    Returns 0 when the date is absent or lies in the future.
    """
    if date_of_birth is None:
        return 0
    if reference_instant.tzinfo is None:
        reference_instant = reference_instant.replace(tzinfo=timezone.utc)
    born = datetime.combine(date_of_birth, time.min, tzinfo=timezone.utc)
    years = math.floor((reference_instant - born) / _AVERAGE_YEAR)
    return max(years, 0)


def normalize_profile(
    profile: Union[Profile, dict[str, Any], None],
    reference_instant: datetime,
) -> NormalizedProfile:
    """Derive the scoring inputs from a profile.

    Args:
        profile:           Profile model or raw row dict.  Missing fields
                           fall back to 0 / "".
        reference_instant: "Now" for the age calculation.

    Returns:
        NormalizedProfile.
    """
    if profile is None:
        return NormalizedProfile()
    if not isinstance(profile, Profile):
        try:
            profile = Profile(**profile)
        except (ValidationError, TypeError) as exc:
            logger.warning("Unusable profile record, using defaults: %s", exc)
            return NormalizedProfile()

    return NormalizedProfile(
        age=age_in_years(profile.date_of_birth, reference_instant),
        nationality=profile.nationality or "",
        education_level=profile.education_level or "",
        current_occupation=profile.current_occupation or "",
        years_of_experience=profile.years_of_experience or 0,
        preferred_state=profile.preferred_state or "",
    )
