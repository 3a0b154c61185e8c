"""Residual time-overlap repair."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from tripweaver.domain.constants import ITEM_PRIORITY
from tripweaver.domain.enums import Severity
from tripweaver.domain.models import Day, RepairAction, ScheduleSlot, TripItem, ValidationIssue
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.clock import add_minutes, fmt_clock
from tripweaver.validators.common import is_fixed, refund

DayEndFn = Callable[[Day], dt.datetime]


def _paired(a: TripItem, b: TripItem) -> bool:
    return a.pair_id is not None and a.pair_id == b.pair_id


def _resolve_fixed(
    day: Day,
    fixed: list[TripItem],
    issues: list[ValidationIssue],
    actions: list[RepairAction],
    budget: Optional[BudgetTracker],
) -> list[TripItem]:
    """Two pinned items colliding: the lower-priority one goes, main legs always stay."""
    fixed = sorted(fixed, key=lambda i: i.slot.start)
    kept: list[TripItem] = []
    for item in fixed:
        clash = next((k for k in kept if k.slot.overlaps(item.slot) and not _paired(k, item)), None)
        if clash is None:
            kept.append(item)
            continue
        loser = item
        if ITEM_PRIORITY[item.type.value] > ITEM_PRIORITY[clash.type.value] and clash.leg is None:
            loser = clash
        if loser.leg is not None:
            # both are main legs: report, never drop a booked leg
            kept.append(item)
            issues.append(
                ValidationIssue(
                    code="FIXED_OVERLAP",
                    severity=Severity.HIGH,
                    message=f"'{clash.title}' overlaps '{item.title}'",
                    day=day.day_number,
                )
            )
            continue
        if loser is clash:
            kept.remove(clash)
            kept.append(item)
        refund(budget, loser)
        actions.append(
            RepairAction(code="FIXED_OVERLAP_REMOVED", day=day.day_number, item_id=loser.id, detail=loser.title)
        )
    return kept


def repair_overlaps(
    days: list[Day],
    *,
    day_end: DayEndFn,
    budget: Optional[BudgetTracker] = None,
) -> tuple[list[ValidationIssue], list[RepairAction]]:
    """Nudge overlapping items forward; logistics stay where they are.

    A nudged item that would run past the day's end is removed instead.
    """
    issues: list[ValidationIssue] = []
    actions: list[RepairAction] = []
    for day in days:
        fixed = _resolve_fixed(day, [i for i in day.items if is_fixed(i)], issues, actions, budget)
        movable = sorted((i for i in day.items if not is_fixed(i)), key=lambda i: (i.slot.start, i.slot.end))
        bound = max([day_end(day)] + [i.slot.end for i in fixed])

        placed: list[TripItem] = []
        for item in movable:
            start = item.slot.start
            if placed and placed[-1].slot.end > start:
                start = placed[-1].slot.end
            duration = item.slot.duration_minutes
            while True:
                end = add_minutes(start, duration)
                clashes = [f for f in fixed if f.slot.start < end and start < f.slot.end]
                if not clashes:
                    break
                start = max(f.slot.end for f in clashes)
            if end > bound:
                refund(budget, item)
                issues.append(
                    ValidationIssue(
                        code="TIME_OVERLAP",
                        severity=Severity.MEDIUM,
                        message=f"'{item.title}' no longer fits after overlap repair",
                        day=day.day_number,
                    )
                )
                actions.append(
                    RepairAction(code="OVERLAP_REMOVED", day=day.day_number, item_id=item.id, detail=item.title)
                )
                continue
            if start != item.slot.start:
                actions.append(
                    RepairAction(
                        code="OVERLAP_NUDGED",
                        day=day.day_number,
                        item_id=item.id,
                        detail=f"{item.start_time} -> {fmt_clock(start)}",
                    )
                )
                item = item.model_copy(update={"slot": ScheduleSlot(start=start, end=end)})
            placed.append(item)
        day.items = fixed + placed
    return issues, actions
