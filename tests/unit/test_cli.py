"""CLI entrypoint tests."""

import json

from helpers import lisbon_request, unplannable_request

from tripweaver.application import plan_trip
from tripweaver.cli import build_parser, format_itinerary, main
from tripweaver.domain.enums import Severity
from tripweaver.domain.models import ValidationIssue


def _write(tmp_path, payload) -> str:
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_parser_requires_input():
    args = build_parser().parse_args(["--input", "trip.json", "--json"])
    assert args.input == "trip.json"
    assert args.json
    assert args.trace_id is None


def test_text_itinerary(tmp_path, capsys):
    code = main(["--input", _write(tmp_path, lisbon_request())])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Lisbon: 3-day itinerary")
    assert "Day 1 (2024-06-10, arrival)" in out
    assert "Total committed:" in out


def test_json_output_carries_trace_id(tmp_path, capsys):
    code = main(["--input", _write(tmp_path, lisbon_request()), "--json", "--trace-id", "cli-7"])

    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert data["trace_id"] == "cli-7"
    assert len(data["days"]) == 3


def test_unreadable_input(tmp_path, capsys):
    assert main(["--input", str(tmp_path / "missing.json")]) == 2
    assert "cannot read request" in capsys.readouterr().err


def test_planning_failure_exit_code(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("TRIPWEAVER_DAY_END", "13:30")
    assert main(["--input", _write(tmp_path, unplannable_request())]) == 1
    assert "planning failed" in capsys.readouterr().err


def test_format_itinerary_lists_issues():
    result = plan_trip(lisbon_request())
    result.issues.append(ValidationIssue(code="IDLE_GAP", severity=Severity.LOW, message="long pause"))

    text = format_itinerary(result)

    assert "[low] long pause" in text
    assert "flights 200" in text
