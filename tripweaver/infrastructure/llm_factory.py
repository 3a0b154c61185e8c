"""Reasoning-oracle factory driven by environment variables.

Supported variables (in priority order):
  OPENAI_API_KEY  -> OpenAI
  LLM_API_KEY     -> any OpenAI-compatible endpoint (pair with LLM_BASE_URL)

Optional:
  LLM_MODEL            model name, defaults to gpt-4o-mini
  LLM_BASE_URL         custom base url
  LLM_TIMEOUT_SECONDS  per-request timeout on the HTTP client
"""

from __future__ import annotations

import os
from typing import Optional

from openai import OpenAI

_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_MODEL = "gpt-4o-mini"


def _resolve_config() -> tuple[str, str, str] | None:
    """Return (api_key, base_url, model) or None when no key is configured."""
    for env_name in ("OPENAI_API_KEY", "LLM_API_KEY"):
        key = os.getenv(env_name)
        if key and key.strip():
            return (
                key.strip(),
                os.getenv("LLM_BASE_URL", _DEFAULT_BASE_URL),
                os.getenv("LLM_MODEL", _DEFAULT_MODEL),
            )
    return None


class OracleMessage:
    def __init__(self, text: str):
        self.content = text


class ChatOracle:
    """Thin chat-completions wrapper exposing ``.invoke(prompt) -> .content``."""

    def __init__(self, api_key: str, base_url: str, model: str, timeout: float):
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=1)
        self.model = model

    def invoke(self, prompt: str) -> OracleMessage:
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            max_tokens=300,
        )
        return OracleMessage(resp.choices[0].message.content or "")


_llm_instance: Optional[ChatOracle] = None
_llm_resolved: bool = False  # distinguishes "no key" from "not yet built"


def get_llm() -> Optional[ChatOracle]:
    """Build the oracle client once; None means deterministic fallback only."""
    global _llm_instance, _llm_resolved
    if _llm_resolved:
        return _llm_instance

    cfg = _resolve_config()
    if cfg is not None:
        api_key, base_url, model = cfg
        timeout = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
        _llm_instance = ChatOracle(api_key, base_url, model, timeout)
    _llm_resolved = True
    return _llm_instance


def reset_llm() -> None:
    """Drop the cached client (tests)."""
    global _llm_instance, _llm_resolved
    _llm_instance = None
    _llm_resolved = False


def is_llm_available() -> bool:
    return _resolve_config() is not None
