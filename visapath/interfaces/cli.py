"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for the visa eligibility assessment.

Usage:
  # New assessment for one user
  python -m visapath.interfaces.cli --user-id 4f6c...e21

  # JSON output (success / failure envelope)
  python -m visapath.interfaces.cli --user-id 4f6c...e21 --json

  # Show stored assessments, newest first
  python -m visapath.interfaces.cli --user-id 4f6c...e21 --history --limit 5

  # Via installed entry-point (pyproject.toml [project.scripts])
  visapath-assess --user-id 4f6c...e21

Exit codes:
  0 — success (including assessments produced by basic scoring)
  1 — assessment could not be produced (profile, catalog, storage errors)
  2 — argument error
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from visapath.domain.exceptions import VisaPathError
from visapath.domain.models import (
    AssessmentRecord,
    AssessmentResponse,
    FallbackReason,
)
from visapath.services.assessment_engine import failure_envelope
from visapath.services.container import get_engine
from visapath.services.points_model import clamp_score

logger = logging.getLogger(__name__)

_BAR_WIDTH = 30

_FALLBACK_NOTICES = {
    FallbackReason.NOT_CONFIGURED: "Basic scoring used: remote assessment is not configured.",
    FallbackReason.QUOTA_EXCEEDED: (
        "Basic scoring used: the AI provider's quota or billing limit has been "
        "reached. Check the provider account's usage limits."
    ),
    FallbackReason.REMOTE_FAILED: "Basic scoring used: the AI assessment service was unavailable.",
}


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="visapath-assess",
        description="Assess a user's eligibility for Australian skilled visas.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--user-id", "-u",
        metavar="ID",
        dest="user_id",
        help="Profile id of the user to assess.",
    )
    p.add_argument(
        "--history",
        action="store_true",
        help="List stored assessments instead of creating a new one.",
    )
    p.add_argument(
        "--limit", "-n",
        type=int,
        default=None,
        help="Maximum number of history entries. (default: HISTORY_LIMIT)",
    )
    p.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON.",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


# ── Formatting helpers ─────────────────────────────────────────────────────

def _score_bar(score: int) -> str:
    filled = round(clamp_score(score) / 100 * _BAR_WIDTH)
    return "█" * filled + "░" * (_BAR_WIDTH - filled)


def _print_analysis(analysis) -> None:
    if isinstance(analysis, dict):
        for key in ("summary", "recommendation", "nextSteps"):
            if analysis.get(key):
                print(f"  {analysis[key]}")
        breakdown = analysis.get("breakdown")
        if isinstance(breakdown, dict):
            parts = ", ".join(f"{k}={v}" for k, v in breakdown.items())
            print(f"  Breakdown: {parts}")
    elif analysis:
        print(f"  {analysis}")


def _print_response_text(response: AssessmentResponse) -> None:
    """Pretty-print an AssessmentResponse to stdout."""
    a = response.assessment
    score = a.assessment_score or 0
    print(f"\n{'─' * 60}")
    print(f"User   : {a.user_id}")
    print(f"Score  : {score:>3}  {_score_bar(score)}")
    if response.recommended_visa:
        visa = response.recommended_visa
        print(f"Visa   : {visa.visa_code} {visa.visa_name}")
    print(f"Source : {response.scoring_source.value}")
    print(f"{'─' * 60}")
    if response.fallback_reason:
        print(f"NOTE: {_FALLBACK_NOTICES[response.fallback_reason]}\n")
    if a.strengths:
        print("Strengths:")
        for s in a.strengths:
            print(f"  + {s}")
    if a.improvement_areas:
        print("Areas for improvement:")
        for s in a.improvement_areas:
            print(f"  - {s}")
    print("Analysis:")
    _print_analysis(a.detailed_analysis)
    print()


def _print_history_text(records: list[AssessmentRecord]) -> None:
    if not records:
        print("No assessments found.")
        return
    for r in records:
        print(
            f"  {r.created_at:%Y-%m-%d %H:%M}  score={r.assessment_score}"
            f"  visa_id={r.recommended_visa_id or '—'}  id={r.id}"
        )


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


# ── Main logic ─────────────────────────────────────────────────────────────

def run(args: argparse.Namespace) -> int:
    """Execute the requested command.

    Returns:
        Exit code (0 = success, 1 = error, 2 = bad arguments).
    """
    if not args.user_id:
        print("ERROR: provide --user-id", file=sys.stderr)
        return 2

    try:
        engine = get_engine()
    except Exception as exc:
        logger.exception("Failed to initialise engine")
        print(f"ERROR: Engine initialisation failed: {exc}", file=sys.stderr)
        return 1

    if args.history:
        try:
            records = engine.history(args.user_id, args.limit)
        except VisaPathError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
        if args.json_output:
            _print_json({"assessments": [r.model_dump(mode="json") for r in records]})
        else:
            _print_history_text(records)
        return 0

    try:
        response = engine.assess(args.user_id)
    except VisaPathError as exc:
        logger.exception("Assessment failed for user_id %r", args.user_id)
        failure = failure_envelope(exc)
        if args.json_output:
            _print_json(failure.to_dict())
        else:
            print(f"ERROR [{failure.kind}]: {failure.error}", file=sys.stderr)
        return 1

    if args.json_output:
        _print_json(response.to_dict())
    else:
        _print_response_text(response)
    return 0


def main() -> None:
    """Entry point for the visapath-assess console script."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    if not args.user_id:
        parser.print_help()
        sys.exit(2)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
