"""Redaction of oracle credentials before anything reaches a log line."""

from __future__ import annotations

import os
import re

_REDACTED = "***REDACTED***"

_KEY_VALUE_RE = re.compile(
    r"(?i)(?P<prefix>[\"']?(?:api[_-]?key|token|secret|password)[\"']?\s*[:=]\s*[\"']?)(?P<value>[^\"',\s}&]+)"
)
_BEARER_RE = re.compile(r"(?i)(?P<prefix>\bbearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)")
_SK_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9_-]{8,}\b")

_ENV_SECRETS = ("OPENAI_API_KEY", "LLM_API_KEY")


def redact_sensitive(text: str) -> str:
    """Mask key-like values and any configured oracle key appearing verbatim."""
    if not text:
        return text

    redacted = str(text)
    for pattern in (_KEY_VALUE_RE, _BEARER_RE):
        redacted = pattern.sub(lambda m: f"{m.group('prefix')}{_REDACTED}", redacted)
    redacted = _SK_KEY_RE.sub(_REDACTED, redacted)

    for name in _ENV_SECRETS:
        secret = os.getenv(name)
        if secret and len(secret) >= 8:
            redacted = redacted.replace(secret, _REDACTED)
    return redacted


__all__ = ["redact_sensitive"]
