"""Idle-gap warnings between consecutive items."""

from __future__ import annotations

from tripweaver.domain.enums import Severity
from tripweaver.domain.models import Day, ValidationIssue
from tripweaver.planner.clock import minutes_between


def validate_idle_gaps(days: list[Day], *, max_idle_minutes: int) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for day in days:
        ordered = sorted(day.items, key=lambda i: i.slot.start)
        for prev, cur in zip(ordered, ordered[1:]):
            idle = minutes_between(prev.slot.end, cur.slot.start)
            if idle > max_idle_minutes:
                issues.append(
                    ValidationIssue(
                        code="IDLE_GAP",
                        severity=Severity.LOW,
                        message=(
                            f"Day {day.day_number} has {idle:.0f} free minutes between "
                            f"'{prev.title}' and '{cur.title}'"
                        ),
                        day=day.day_number,
                        suggestions=["Add a nearby activity", "Rest at the accommodation"],
                    )
                )
    return issues
