"""Advisor capability interface and request helpers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tripweaver.domain.enums import EnergyLevel
from tripweaver.domain.models import AdvisorRequest, AdvisorResponse


@runtime_checkable
class Advisor(Protocol):
    def advise(self, request: AdvisorRequest) -> AdvisorResponse: ...


def energy_for_activity_minutes(minutes: float) -> EnergyLevel:
    """Coarse fatigue level from time already spent sightseeing today."""
    if minutes < 240:
        return EnergyLevel.FRESH
    if minutes < 360:
        return EnergyLevel.MODERATE
    if minutes < 480:
        return EnergyLevel.TIRED
    return EnergyLevel.EXHAUSTED


def describe_meals(breakfast: bool, lunch: bool, dinner: bool) -> str:
    marks = {True: "done", False: "pending"}
    return f"breakfast {marks[breakfast]}, lunch {marks[lunch]}, dinner {marks[dinner]}"
