from __future__ import annotations

import json
import logging

import pytest
import structlog
from typer.testing import CliRunner

from app.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _write_request(tmp_path, **overrides):
    payload = {
        "pair": "EURUSD",
        "selected_timeframes": ["DAILY", "H1"],
        "questions": [
            {"id": "q1", "timeframe": "DAILY", "text": "Daily trend", "answer_type": "CHOICE"},
            {"id": "q2", "timeframe": "H1", "text": "Retest held?", "answer_type": "FLAG"},
        ],
        "answers": [
            {"question_id": "q1", "value": {"kind": "choice", "option": "Bullish"}},
            {"question_id": "q2", "value": {"kind": "flag", "flag": False}},
        ],
    }
    payload.update(overrides)
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_analyze_prints_result(tmp_path) -> None:
    result = runner.invoke(app, ["analyze", str(_write_request(tmp_path)), "--local"])
    assert result.exit_code == 0, result.output
    body = json.loads(result.stdout)
    assert body["trade_recommendation"] == "LONG"
    assert body["overall_probability"] == pytest.approx(60.4)
    assert list(body["timeframe_breakdown"]) == ["DAILY", "H1"]
    assert body["analysis_source"] == "local"


def test_analyze_without_key_uses_local(tmp_path) -> None:
    result = runner.invoke(app, ["analyze", str(_write_request(tmp_path)), "--indent", "0"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["analysis_source"] == "local"


def test_analyze_with_market_flag_and_no_key(tmp_path) -> None:
    result = runner.invoke(app, ["analyze", str(_write_request(tmp_path)), "--local", "--market"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["risk_level"] == "MEDIUM"


def test_analyze_rejects_invalid_request(tmp_path) -> None:
    path = _write_request(tmp_path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    del payload["answers"]
    path.write_text(json.dumps(payload), encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(path), "--local"])
    assert result.exit_code == 2


def test_analyze_rejects_non_json(tmp_path) -> None:
    path = tmp_path / "request.json"
    path.write_text("not json", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(path)])
    assert result.exit_code != 0


def test_weights_lists_table() -> None:
    result = runner.invoke(app, ["weights"])
    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert lines[0].split() == ["DAILY", "0.40"]
    assert lines[-1].split() == ["other", "0.10"]
    assert len(lines) == 11


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip()


def test_analyze_rejects_json_array(tmp_path) -> None:
    path = tmp_path / "request.json"
    path.write_text(json.dumps([{"pair": "EURUSD"}]), encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(path), "--local"])
    assert result.exit_code == 2
    assert not isinstance(result.exception, AttributeError)
