"""pytest global fixtures: test environment isolation."""

import os

import pytest

from tripweaver.infrastructure.llm_factory import reset_llm


@pytest.fixture(autouse=True)
def no_real_apis(monkeypatch):
    """Disable the reasoning oracle so every decision comes from the fallback rules."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    for name in list(os.environ):
        if name.startswith("TRIPWEAVER_"):
            monkeypatch.delenv(name, raising=False)
    reset_llm()
    yield
    reset_llm()
