"""Planner settings: every empirically chosen scheduling constant, overridable by env."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

_ENV_PREFIX = "TRIPWEAVER_"
_TRUTHY = {"1", "true", "yes", "on"}


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


class PlannerSettings(BaseModel):
    # day window
    day_start: str = "08:00"
    day_end: str = "23:00"
    nightlife_day_end: str = "23:59"
    local_travel_mode: str = "public_transit"

    # meals
    breakfast_cutoff_hour: int = 10
    breakfast_minutes: int = 45
    hotel_breakfast_minutes: int = 30
    breakfast_travel_minutes: int = 10
    lunch_windows: tuple[str, ...] = ("12:30", "12:00", "13:00", "13:30")
    lunch_minutes: int = 75
    lunch_travel_minutes: int = 10
    lunch_window_start: str = "12:00"
    lunch_window_end: str = "14:00"
    lunch_latest_start: str = "14:30"
    lunch_min_end_hour: int = 14
    dinner_min_start: str = "19:00"
    dinner_minutes: int = 90
    dinner_travel_minutes: int = 15
    dinner_min_end_hour: int = 20
    self_catered_minutes: int = 45
    picnic_minutes: int = 30
    long_activity_minutes: int = 180
    grocery_minutes: int = 40

    # activities
    lunch_deadline: str = "12:30"
    dinner_deadline: str = "19:00"
    afternoon_deadline: str = "19:30"
    gap_fill_threshold_minutes: int = 45
    gap_fill_slack_minutes: int = 15
    closing_buffer_minutes: int = 30
    advisor_gap_minutes: int = 120
    energy_check_minutes: int = 360

    # logistics
    airport_arrival_buffer_minutes: int = 120
    station_arrival_buffer_minutes: int = 30
    checkin_close_minutes: int = 30
    deplane_minutes: int = 30
    parking_base_minutes: int = 15
    parking_minutes_per_500m: int = 5
    hotel_checkin_minutes: int = 20
    checkout_minutes: int = 30
    early_checkin_threshold_minutes: int = 120
    luggage_drop_minutes: int = 15
    luggage_pickup_lead_minutes: int = 30
    lodging_return_buffer_minutes: int = 30
    ground_departure_time: str = "08:00"
    ground_return_time: str = "14:00"
    late_arrival_hour: int = 22
    early_morning_hour: int = 5

    # transfers
    local_speed_kmh: float = 30.0
    intercity_speed_kmh: float = 100.0
    road_factor: float = 1.3
    transfer_min_minutes: int = 15
    transfer_overhead_minutes: int = 10
    taxi_base_fare: float = 5.0
    taxi_per_km: float = 1.8
    taxi_capacity: int = 4

    # advisor
    advisor_max_calls: int = Field(default=5, ge=0)
    advisor_timeout_seconds: float = 8.0
    advisor_enabled: bool = True

    # prefetch
    lookup_timeout_seconds: float = 10.0
    prefetch_workers: int = Field(default=8, ge=1)

    # validation
    operating_radius_km: float = 40.0
    replacement_radius_km: float = 15.0
    idle_gap_warning_minutes: int = 180


def _coerce(raw: str, current: Any) -> Any:
    if isinstance(current, bool):
        return _is_enabled(raw)
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    if isinstance(current, tuple):
        return tuple(part.strip() for part in raw.split(",") if part.strip())
    return raw


def load_settings(**overrides: Any) -> PlannerSettings:
    """Build settings from defaults, ``TRIPWEAVER_*`` env vars, then explicit overrides."""
    defaults = PlannerSettings()
    values: dict[str, Any] = {}
    for name in PlannerSettings.model_fields:
        raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if raw is None or not raw.strip():
            continue
        values[name] = _coerce(raw.strip(), getattr(defaults, name))
    values.update(overrides)
    return PlannerSettings(**values)
