"""Post-generation validation and repair."""

from __future__ import annotations

import datetime as dt

from tripweaver.domain.enums import LegDirection, TripItemType
from tripweaver.domain.models import Day, RepairAction, ValidationIssue
from tripweaver.planner.clock import add_minutes
from tripweaver.planner.context import PlannerContext
from tripweaver.validators.dedup_validator import dedupe_activities
from tripweaver.validators.gap_validator import validate_idle_gaps
from tripweaver.validators.geo_validator import filter_out_of_area
from tripweaver.validators.luggage_validator import check_luggage_pairs
from tripweaver.validators.must_see_validator import enforce_must_see
from tripweaver.validators.overlap_validator import repair_overlaps


def _activity_bounds(ctx: PlannerContext):
    def bounds(day: Day) -> tuple[dt.datetime, dt.datetime]:
        start, end = ctx.day_start(day.date), ctx.day_end(day.date)
        for item in day.items:
            if item.leg == LegDirection.OUTBOUND or item.type == TripItemType.CHECKIN:
                start = max(start, item.slot.end)
            if item.leg == LegDirection.RETURN or item.type == TripItemType.CHECKOUT:
                end = min(end, add_minutes(item.slot.start, -ctx.settings.lodging_return_buffer_minutes))
        return start, max(start, end)

    return bounds


def run_post_generation(
    days: list[Day],
    ctx: PlannerContext,
) -> tuple[list[ValidationIssue], list[RepairAction]]:
    """One pass over the assembled trip; mutates ``days`` in place."""
    settings = ctx.settings
    issues: list[ValidationIssue] = []
    actions: list[RepairAction] = []

    for found, repaired in (
        filter_out_of_area(
            days,
            city_center=ctx.city_center,
            radius_km=settings.operating_radius_km,
            day_trips=ctx.day_trips,
            budget=ctx.budget,
        ),
        dedupe_activities(days, budget=ctx.budget),
        enforce_must_see(
            days,
            ctx.attraction_pool,
            bounds=_activity_bounds(ctx),
            party_size=ctx.party_size,
            budget=ctx.budget,
            closing_buffer_minutes=settings.closing_buffer_minutes,
            city_center=ctx.city_center,
            radius_km=settings.operating_radius_km,
            day_trips=ctx.day_trips,
        ),
        check_luggage_pairs(days, budget=ctx.budget),
        repair_overlaps(days, day_end=lambda day: ctx.day_end(day.date), budget=ctx.budget),
    ):
        issues.extend(found)
        actions.extend(repaired)

    for day in days:
        day.reindex()
    issues.extend(validate_idle_gaps(days, max_idle_minutes=settings.idle_gap_warning_minutes))

    for action in actions:
        ctx.logger.warning("validator", f"{action.code}: {action.detail}", day=action.day, item_id=action.item_id)
    return issues, actions


__all__ = [
    "check_luggage_pairs",
    "dedupe_activities",
    "enforce_must_see",
    "filter_out_of_area",
    "repair_overlaps",
    "run_post_generation",
    "validate_idle_gaps",
]
