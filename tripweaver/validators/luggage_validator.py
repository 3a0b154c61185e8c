"""Luggage drop / pickup pairing check."""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

from tripweaver.domain.enums import Severity
from tripweaver.domain.models import Day, RepairAction, TripItem, ValidationIssue
from tripweaver.planner.budget import BudgetTracker
from tripweaver.validators.common import refund


def check_luggage_pairs(
    days: list[Day],
    *,
    budget: Optional[BudgetTracker] = None,
) -> tuple[list[ValidationIssue], list[RepairAction]]:
    """A drop must end before its pickup starts; broken pairs are removed whole."""
    issues: list[ValidationIssue] = []
    actions: list[RepairAction] = []
    for day in days:
        pairs: dict[str, list[TripItem]] = defaultdict(list)
        for item in day.items:
            if item.pair_id:
                pairs[item.pair_id].append(item)

        broken: set[str] = set()
        for pair_id, members in pairs.items():
            members.sort(key=lambda i: i.slot.start)
            if len(members) != 2 or members[0].slot.end > members[1].slot.start:
                broken.add(pair_id)

        for pair_id in sorted(broken):
            for item in pairs[pair_id]:
                refund(budget, item)
                actions.append(
                    RepairAction(code="LUGGAGE_PAIR_REMOVED", day=day.day_number, item_id=item.id, detail=item.title)
                )
            issues.append(
                ValidationIssue(
                    code="LUGGAGE_PAIR_BROKEN",
                    severity=Severity.MEDIUM,
                    message=f"luggage pair '{pair_id}' is incomplete or out of order",
                    day=day.day_number,
                    suggestions=["Leave bags at the accommodation instead"],
                )
            )
        if broken:
            day.items = [i for i in day.items if i.pair_id not in broken]
    return issues, actions
