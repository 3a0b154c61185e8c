"""Structured logging and redaction tests."""

import io
import json

from tripweaver.infrastructure.logging import StructuredLogger
from tripweaver.security.redact import redact_sensitive


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_events_are_json_lines_with_trace_id():
    stream = io.StringIO()
    log = StructuredLogger(trace_id="abc", output=stream)

    log.stage_start("plan_trip", days=3)
    log.decision("gap_fill", "long", source="fallback")
    log.stage_end("plan_trip", items=12)

    events = _lines(stream)
    assert [e["event"] for e in events] == ["stage_start", "decision", "stage_end"]
    assert {e["trace_id"] for e in events} == {"abc"}
    assert events[2]["items"] == 12
    assert events[2]["duration_ms"] >= 0


def test_log_lines_are_redacted(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "plain-secret-value")
    stream = io.StringIO()
    StructuredLogger(trace_id="t", output=stream).error("advisor", "call failed with plain-secret-value")

    assert "plain-secret-value" not in stream.getvalue()
    assert "***REDACTED***" in stream.getvalue()


def test_redaction_patterns():
    assert "sk-abcdef123456" not in redact_sensitive("key sk-abcdef123456 leaked")
    assert redact_sensitive("Authorization: Bearer abc.def") == "Authorization: Bearer ***REDACTED***"
    assert redact_sensitive('{"api_key": "xyz"}') == '{"api_key": "***REDACTED***"}'
    assert redact_sensitive("") == ""
