"""Settings loading from the environment."""

import pytest
from pydantic import ValidationError

from tripweaver.config.settings import PlannerSettings, load_settings


def test_defaults_without_env():
    settings = load_settings()
    assert settings == PlannerSettings()
    assert settings.day_start == "08:00"
    assert settings.advisor_max_calls == 5


def test_env_overrides_are_typed(monkeypatch):
    monkeypatch.setenv("TRIPWEAVER_DAY_START", "09:30")
    monkeypatch.setenv("TRIPWEAVER_ADVISOR_MAX_CALLS", "2")
    monkeypatch.setenv("TRIPWEAVER_ROAD_FACTOR", "1.5")
    monkeypatch.setenv("TRIPWEAVER_ADVISOR_ENABLED", "off")
    monkeypatch.setenv("TRIPWEAVER_LUNCH_WINDOWS", "12:00, 13:00,")

    settings = load_settings()

    assert settings.day_start == "09:30"
    assert settings.advisor_max_calls == 2
    assert settings.road_factor == 1.5
    assert settings.advisor_enabled is False
    assert settings.lunch_windows == ("12:00", "13:00")


def test_blank_env_values_are_ignored(monkeypatch):
    monkeypatch.setenv("TRIPWEAVER_DAY_END", "   ")
    assert load_settings().day_end == "23:00"


def test_explicit_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("TRIPWEAVER_PREFETCH_WORKERS", "3")
    assert load_settings(prefetch_workers=1).prefetch_workers == 1


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("TRIPWEAVER_PREFETCH_WORKERS", "0")
    with pytest.raises(ValidationError):
        load_settings()
