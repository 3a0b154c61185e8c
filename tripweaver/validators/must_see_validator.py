"""Must-see enforcement: every requested item appears somewhere."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from tripweaver.domain.enums import BudgetCategory, DayType, Severity, TripItemType
from tripweaver.domain.models import (
    CandidateAttraction,
    Coordinates,
    Day,
    DayTripPlan,
    RepairAction,
    ScheduleSlot,
    TripItem,
    ValidationIssue,
)
from tripweaver.planner.activities import opening_window
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.clock import add_minutes, minutes_between
from tripweaver.planner.normalize import fold_text, names_match
from tripweaver.validators.common import is_fixed, refund
from tripweaver.validators.geo_validator import in_area

DayBoundsFn = Callable[[Day], tuple[dt.datetime, dt.datetime]]


def _present(candidate: CandidateAttraction, days: list[Day]) -> bool:
    folded = fold_text(candidate.name)
    for day in days:
        for item in day.activities():
            if item.attraction_id == candidate.id or names_match(item.title, folded):
                return True
    return False


def _overnight_leg(item: TripItem) -> bool:
    return item.leg is not None and item.slot.end.date() > item.slot.start.date()


def days_by_load(days: list[Day]) -> list[Day]:
    """Eligible days, fewest activities first; arrival and departure days are penalised."""
    eligible = [
        d for d in days
        if d.day_type != DayType.OVERNIGHT_ARRIVAL and not any(_overnight_leg(i) for i in d.items)
    ]
    if not eligible:
        return []
    first, last = eligible[0].day_number, eligible[-1].day_number

    def load(day: Day) -> int:
        penalty = 2 if day.day_number in (first, last) and len(eligible) > 2 else 0
        return len(day.activities()) + penalty

    return sorted(eligible, key=load)


def _free_start(items: list[TripItem], minutes: int, start: dt.datetime, end: dt.datetime) -> Optional[dt.datetime]:
    cursor = start
    for item in sorted(items, key=lambda i: i.slot.start):
        if item.slot.end <= cursor:
            continue
        if item.slot.start >= end:
            break
        if minutes_between(cursor, item.slot.start) >= minutes:
            return cursor
        cursor = max(cursor, item.slot.end)
    if minutes_between(cursor, end) >= minutes:
        return cursor
    return None


def enforce_must_see(
    days: list[Day],
    pool: list[CandidateAttraction],
    *,
    bounds: DayBoundsFn,
    party_size: int = 1,
    budget: Optional[BudgetTracker] = None,
    closing_buffer_minutes: int = 30,
    city_center: Optional[Coordinates] = None,
    radius_km: Optional[float] = None,
    day_trips: Optional[dict[int, DayTripPlan]] = None,
) -> tuple[list[ValidationIssue], list[RepairAction]]:
    """Insert missing must-see items, never outside opening hours or the operating area.

    Free time on the least-loaded day is tried first, then on the other days;
    only when no day has room is an ordinary activity swapped out.
    """
    day_trips = day_trips or {}
    issues: list[ValidationIssue] = []
    actions: list[RepairAction] = []

    def window(day: Day, candidate: CandidateAttraction) -> tuple[dt.datetime, dt.datetime]:
        start, end = bounds(day)
        opens, closes = opening_window(candidate, day.date)
        return max(start, opens), min(end, add_minutes(closes, -closing_buffer_minutes))

    def reachable(day: Day, candidate: CandidateAttraction) -> bool:
        if city_center is None or radius_km is None or candidate.coordinates is None:
            return True
        return in_area(candidate.coordinates, city_center, radius_km, day_trips.get(day.day_number))

    for candidate in pool:
        if not candidate.must_see or _present(candidate, days):
            continue
        ranked = days_by_load(days)
        if not ranked:
            break
        reachable_days = [d for d in ranked if reachable(d, candidate)]
        if not reachable_days:
            issues.append(
                ValidationIssue(
                    code="MUST_SEE_OUT_OF_AREA",
                    severity=Severity.HIGH,
                    message=f"must-see '{candidate.name}' is outside the destination area",
                    suggestions=["Plan a day trip", "Check the attraction's location"],
                )
            )
            continue

        placed: Optional[tuple[Day, dt.datetime]] = None
        for day in reachable_days:
            start = _free_start(day.items, candidate.duration_minutes, *window(day, candidate))
            if start is not None:
                placed = day, start
                break

        if placed is None:
            # no free window anywhere: an ordinary activity makes room
            for day in reachable_days:
                bumpable = [i for i in day.activities() if not i.is_must_see and not is_fixed(i)]
                for bumped in sorted(bumpable, key=lambda i: i.slot.start, reverse=True):
                    rest = [i for i in day.items if i.id != bumped.id]
                    start = _free_start(rest, candidate.duration_minutes, *window(day, candidate))
                    if start is None:
                        continue
                    day.items = rest
                    refund(budget, bumped)
                    actions.append(
                        RepairAction(
                            code="MUST_SEE_SWAPPED", day=day.day_number, item_id=bumped.id, detail=bumped.title
                        )
                    )
                    placed = day, start
                    break
                if placed is not None:
                    break

        if placed is None:
            issues.append(
                ValidationIssue(
                    code="MUST_SEE_MISSING",
                    severity=Severity.HIGH,
                    message=f"must-see '{candidate.name}' could not be placed",
                    day=reachable_days[0].day_number,
                    suggestions=["Extend the trip", "Drop a lower-priority activity"],
                )
            )
            continue

        day, start = placed
        cost = candidate.estimated_cost * party_size
        if budget is not None and cost > 0:
            budget.spend(BudgetCategory.ACTIVITIES, cost)
        item = TripItem(
            id=f"d{day.day_number}-activity-{candidate.id}",
            day_number=day.day_number,
            slot=ScheduleSlot(start=start, end=add_minutes(start, candidate.duration_minutes)),
            type=TripItemType.ACTIVITY,
            title=candidate.name,
            description=candidate.description,
            location_name=candidate.name,
            coordinates=candidate.coordinates,
            estimated_cost=round(cost, 2),
            attraction_id=candidate.id,
            is_must_see=True,
            data_reliability=candidate.data_reliability,
        )
        day.items.append(item)
        actions.append(
            RepairAction(code="MUST_SEE_INSERTED", day=day.day_number, item_id=item.id, detail=candidate.name)
        )
    return issues, actions
