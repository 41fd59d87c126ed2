"""
tests/unit/test_cli.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for the visapath-assess command-line interface.

get_engine() is patched to return the in-memory engine from conftest.py, so
no database or provider credentials are needed.
"""
from __future__ import annotations

import argparse
import json
from unittest.mock import patch

import pytest

from visapath.interfaces.cli import _build_parser, _score_bar, run

_GET_ENGINE = "visapath.interfaces.cli.get_engine"


def _args(*argv: str) -> argparse.Namespace:
    return _build_parser().parse_args(list(argv))


class TestParser:
    def test_defaults(self):
        args = _args("--user-id", "u1")
        assert args.user_id == "u1"
        assert args.history is False
        assert args.limit is None
        assert args.json_output is False

    def test_short_flags(self):
        args = _args("-u", "u1", "-n", "3", "--history")
        assert args.limit == 3
        assert args.history is True


class TestRun:
    def test_missing_user_id(self, capsys):
        assert run(_args()) == 2
        assert "--user-id" in capsys.readouterr().err

    def test_text_output(self, engine, capsys):
        with patch(_GET_ENGINE, return_value=engine):
            code = run(_args("--user-id", "user-strong"))
        out = capsys.readouterr().out
        assert code == 0
        assert "Score  :  80" in out
        assert "190 Skilled Nominated" in out
        assert "Basic scoring used" in out
        assert "Breakdown: age=30" in out

    def test_json_output(self, engine, capsys):
        with patch(_GET_ENGINE, return_value=engine):
            code = run(_args("--user-id", "user-strong", "--json"))
        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        assert payload["success"] is True
        assert payload["scoring_source"] == "fallback"
        assert payload["fallback_reason"] == "not_configured"
        assert payload["assessment"]["assessment_score"] == 80

    def test_failure_envelope_json(self, engine, capsys):
        with patch(_GET_ENGINE, return_value=engine):
            code = run(_args("--user-id", "nobody", "--json"))
        payload = json.loads(capsys.readouterr().out)
        assert code == 1
        assert payload == {
            "success": False,
            "error": "No profile found for user nobody",
            "kind": "profile_unavailable",
        }

    def test_failure_text(self, engine, store, capsys):
        store.fail_on.add("insert_assessment")
        with patch(_GET_ENGINE, return_value=engine):
            code = run(_args("--user-id", "user-strong"))
        assert code == 1
        assert "persist_failed" in capsys.readouterr().err

    def test_engine_init_failure(self, capsys):
        with patch(_GET_ENGINE, side_effect=RuntimeError("boom")):
            assert run(_args("--user-id", "u1")) == 1
        assert "boom" in capsys.readouterr().err

    def test_history_json(self, make_engine, later_clock, capsys):
        engine = make_engine(clock=later_clock)
        engine.assess("user-strong")
        engine.assess("user-strong")
        with patch(_GET_ENGINE, return_value=engine):
            code = run(_args("--user-id", "user-strong", "--history", "--json", "-n", "1"))
        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        assert [r["id"] for r in payload["assessments"]] == ["assessment-2"]

    def test_history_empty_text(self, engine, capsys):
        with patch(_GET_ENGINE, return_value=engine):
            assert run(_args("--user-id", "user-weak", "--history")) == 0
        assert "No assessments found." in capsys.readouterr().out


class TestScoreBar:
    @pytest.mark.parametrize("score,filled", [(0, 0), (50, 15), (100, 30), (140, 30)])
    def test_bar_width(self, score, filled):
        bar = _score_bar(score)
        assert len(bar) == 30
        assert bar.count("█") == filled
