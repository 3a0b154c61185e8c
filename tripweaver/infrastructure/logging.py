"""Structured logging: JSON lines on stderr with secret redaction."""

from __future__ import annotations

import json
import sys
import time
import uuid
from typing import Any, Optional

from tripweaver.security.redact import redact_sensitive


class StructuredLogger:
    """Emits one JSON object per event, tagged with the trip's trace id."""

    def __init__(self, trace_id: Optional[str] = None, output=None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output
        self._timers: dict[str, float] = {}

    def _emit(self, data: dict[str, Any]) -> None:
        record = {"trace_id": self.trace_id, "ts": round(time.time(), 3), **data}
        try:
            line = redact_sensitive(json.dumps(record, ensure_ascii=False, default=str))
        except (TypeError, ValueError) as exc:
            line = json.dumps({
                "event": "logger_encode_error",
                "trace_id": self.trace_id,
                "error": str(exc),
            })
        out = self._output if self._output is not None else sys.stderr
        out.write(line + "\n")
        out.flush()

    def stage_start(self, stage: str, **extra: Any) -> None:
        self._timers[stage] = time.time()
        self._emit({"event": "stage_start", "stage": stage, **extra})

    def stage_end(self, stage: str, *, items: int = 0, **extra: Any) -> None:
        start = self._timers.pop(stage, time.time())
        duration_ms = round((time.time() - start) * 1000, 1)
        self._emit({
            "event": "stage_end",
            "stage": stage,
            "duration_ms": duration_ms,
            "items": items,
            **extra,
        })

    def decision(self, question: str, chosen_id: str, *, source: str, **extra: Any) -> None:
        self._emit({
            "event": "decision",
            "question": question,
            "chosen_id": chosen_id,
            "source": source,
            **extra,
        })

    def lookup(self, collaborator: str, **extra: Any) -> None:
        self._emit({"event": "lookup", "collaborator": collaborator, **extra})

    def error(self, stage: str, error: str, **extra: Any) -> None:
        self._emit({"event": "error", "stage": stage, "error": error, **extra})

    def warning(self, stage: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "stage": stage, "message": message, **extra})

    def summary(self, **extra: Any) -> None:
        self._emit({"event": "summary", **extra})


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    global _logger
    if _logger is None or (trace_id and _logger.trace_id != trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger
