"""Cross-day duplicate activities."""

from __future__ import annotations

from typing import Optional

from tripweaver.domain.enums import Severity, TripItemType
from tripweaver.domain.models import Day, RepairAction, TripItem, ValidationIssue
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.normalize import fold_text
from tripweaver.validators.common import refund


def _key(item: TripItem) -> str:
    return item.attraction_id or fold_text(item.title)


def _detail_score(item: TripItem) -> tuple[int, int]:
    return item.duration_minutes, len(item.description)


def dedupe_activities(
    days: list[Day],
    *,
    budget: Optional[BudgetTracker] = None,
) -> tuple[list[ValidationIssue], list[RepairAction]]:
    """Keep one instance of each activity, the longer / more detailed one."""
    keeper: dict[str, tuple[Day, TripItem]] = {}
    losers: list[tuple[Day, TripItem]] = []
    for day in days:
        for item in day.items:
            if item.type != TripItemType.ACTIVITY:
                continue
            key = _key(item)
            current = keeper.get(key)
            if current is None:
                keeper[key] = (day, item)
            elif _detail_score(item) > _detail_score(current[1]):
                losers.append(current)
                keeper[key] = (day, item)
            else:
                losers.append((day, item))

    issues: list[ValidationIssue] = []
    actions: list[RepairAction] = []
    for day, item in losers:
        day.items = [i for i in day.items if i.id != item.id]
        refund(budget, item)
        kept_day = keeper[_key(item)][0].day_number
        issues.append(
            ValidationIssue(
                code="DUPLICATE_ACTIVITY",
                severity=Severity.MEDIUM,
                message=f"'{item.title}' appeared on day {day.day_number} and day {kept_day}",
                day=day.day_number,
                suggestions=["Kept the more detailed instance"],
            )
        )
        actions.append(
            RepairAction(code="DUPLICATE_REMOVED", day=day.day_number, item_id=item.id, detail=item.title)
        )
    return issues, actions
