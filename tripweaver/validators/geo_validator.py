"""Geographic sanity filter: items far outside the day's operating area."""

from __future__ import annotations

from typing import Optional

from tripweaver.domain.enums import Severity
from tripweaver.domain.models import Coordinates, Day, DayTripPlan, RepairAction, TripItem, ValidationIssue
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.distance import distance_km
from tripweaver.validators.common import is_fixed, refund


def in_area(
    coords: Coordinates,
    city_center: Coordinates,
    radius_km: float,
    day_trip: Optional[DayTripPlan],
) -> bool:
    if distance_km(coords, city_center) <= radius_km:
        return True
    return day_trip is not None and distance_km(coords, day_trip.coordinates) <= day_trip.radius_km


def filter_out_of_area(
    days: list[Day],
    *,
    city_center: Coordinates,
    radius_km: float,
    day_trips: Optional[dict[int, DayTripPlan]] = None,
    budget: Optional[BudgetTracker] = None,
) -> tuple[list[ValidationIssue], list[RepairAction]]:
    """Drop non-logistics items outside the destination (or that day's day-trip) radius."""
    day_trips = day_trips or {}
    issues: list[ValidationIssue] = []
    actions: list[RepairAction] = []
    for day in days:
        trip = day_trips.get(day.day_number)
        kept: list[TripItem] = []
        for item in day.items:
            if is_fixed(item) or item.coordinates is None:
                kept.append(item)
                continue
            if in_area(item.coordinates, city_center, radius_km, trip):
                kept.append(item)
                continue
            km = distance_km(item.coordinates, city_center)
            refund(budget, item)
            issues.append(
                ValidationIssue(
                    code="OUT_OF_AREA",
                    severity=Severity.MEDIUM,
                    message=f"'{item.title}' is {km:.0f} km from the destination centre",
                    day=day.day_number,
                    suggestions=["Replace with a nearby option"],
                )
            )
            actions.append(
                RepairAction(code="OUT_OF_AREA_REMOVED", day=day.day_number, item_id=item.id, detail=item.title)
            )
        day.items = kept
    return issues, actions
