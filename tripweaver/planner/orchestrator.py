"""Sequential day-by-day generation."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from tripweaver.domain.enums import DayType, LegDirection
from tripweaver.domain.models import (
    CandidateAttraction,
    Coordinates,
    Day,
    OvernightCarryover,
    TripItem,
)
from tripweaver.planner.activities import ActivityPlanner
from tripweaver.planner.context import PlannerContext
from tripweaver.planner.logistics import LogisticsHandler
from tripweaver.planner.meals import MealScheduler
from tripweaver.planner.slot_allocator import SlotAllocator


def classify_day(day_number: int, total_days: int, carryover: Optional[OvernightCarryover] = None) -> DayType:
    if carryover is not None:
        return DayType.OVERNIGHT_ARRIVAL
    if total_days == 1:
        return DayType.SINGLE_DAY
    if day_number == 1:
        return DayType.ARRIVAL
    if day_number == total_days:
        return DayType.DEPARTURE
    return DayType.FULL_DAY


@dataclass
class DayOutcome:
    day: Day
    carryover: Optional[OvernightCarryover] = None


def _last_coords(items: list[TripItem]) -> Optional[Coordinates]:
    for item in sorted(items, key=lambda i: i.slot.end, reverse=True):
        if item.coordinates is not None:
            return item.coordinates
    return None


class TripOrchestrator:
    """Runs logistics, meals and activities for each day in order.

    Cross-day state is passed explicitly: the used-attraction set goes into
    every ``generate_day`` call and the carryover returned by one day is the
    input of the next.
    """

    def __init__(self, ctx: PlannerContext, candidates_by_day: dict[int, list[CandidateAttraction]]):
        self.ctx = ctx
        self.candidates_by_day = candidates_by_day
        self.logistics = LogisticsHandler(ctx)
        self.groceries_done = False

    def _theme(self, day_number: int, day_type: DayType) -> str:
        destination = self.ctx.preferences.destination
        trip = self.ctx.day_trips.get(day_number)
        if trip is not None:
            return f"Day trip to {trip.destination}"
        return {
            DayType.ARRIVAL: f"Arrival in {destination}",
            DayType.DEPARTURE: f"Last day in {destination}",
            DayType.SINGLE_DAY: f"A day in {destination}",
            DayType.OVERNIGHT_ARRIVAL: f"Arrival in {destination}",
        }.get(day_type, f"Exploring {destination}")

    def _make_day(self, day_number: int, date: dt.date, day_type: DayType, items: list[TripItem]) -> Day:
        trip = self.ctx.day_trips.get(day_number)
        day = Day(
            day_number=day_number,
            date=date,
            day_type=day_type,
            items=items,
            theme=self._theme(day_number, day_type),
            day_trip_destination=trip.destination if trip else None,
        )
        day.reindex()
        return day

    def generate_day(
        self,
        day_number: int,
        *,
        used_ids: set[str],
        carryover: Optional[OvernightCarryover] = None,
    ) -> DayOutcome:
        ctx = self.ctx
        total = ctx.total_days
        date = ctx.preferences.date_for_day(day_number)
        day_type = classify_day(day_number, total, carryover)
        is_first = day_number == 1
        is_last = day_number == total

        start, end = self.logistics.window_for_day(
            date, day_type, is_first_day=is_first, is_last_day=is_last, carryover=carryover
        )
        allocator = SlotAllocator(start, end)
        allocator.advance_to(ctx.day_start(date))
        items: list[TripItem] = []
        usable_end = ctx.day_end(date)

        ctx.logger.stage_start(f"day_{day_number}", day_type=day_type.value)
        if carryover is not None:
            arrival = self.logistics.handle_overnight_arrival(allocator, date, day_number, carryover, day_type)
            items.extend(arrival.items)
            if carryover.leg == LegDirection.RETURN:
                ctx.logger.stage_end(f"day_{day_number}", items=len(items))
                return DayOutcome(day=self._make_day(day_number, date, day_type, items))
        elif is_first:
            departure = self.logistics.handle_departure(allocator, date, day_number, day_type)
            items.extend(departure.items)
            if departure.carryover is not None or not departure.arrived:
                next_carryover = departure.carryover
                if is_last:
                    # last day: the return leg is still required
                    if next_carryover is not None:
                        ctx.logger.error(
                            "orchestrator",
                            "outbound leg lands after the last day; arrival dropped",
                            day=day_number,
                        )
                    departure_items, next_carryover = self._place_return(allocator, date, day_number, day_type)
                    items.extend(departure_items)
                ctx.logger.stage_end(f"day_{day_number}", items=len(items), overnight=departure.carryover is not None)
                return DayOutcome(
                    day=self._make_day(day_number, date, day_type, items),
                    carryover=next_carryover,
                )
            if departure.activities_end is not None:
                usable_end = min(usable_end, departure.activities_end)

        if is_last:
            constraints = self.logistics.get_return_constraints(date, day_type)
            usable_end = min(usable_end, constraints.latest_activity_end)

        start_coords = _last_coords(items)
        if start_coords is None:
            start_coords = ctx.lodging_coords if ctx.accommodation else ctx.center_for_day(day_number)
        meals = MealScheduler(
            ctx,
            allocator,
            day=date,
            day_number=day_number,
            day_type=day_type,
            usable_end=usable_end,
            is_last_day=is_last,
            groceries_done=self.groceries_done,
        )
        planner = ActivityPlanner(
            ctx,
            allocator,
            meals,
            day=date,
            day_number=day_number,
            day_type=day_type,
            candidates=self.candidates_by_day.get(day_number, []),
            used_ids=used_ids,
            start_coords=start_coords,
            usable_end=usable_end,
        )
        items.extend(planner.plan_day())
        self.groceries_done = meals.groceries_done

        next_carryover = None
        if is_last:
            departure_items, next_carryover = self._place_return(allocator, date, day_number, day_type)
            items.extend(departure_items)

        ctx.logger.stage_end(f"day_{day_number}", items=len(items))
        return DayOutcome(day=self._make_day(day_number, date, day_type, items), carryover=next_carryover)

    def _has_return_booking(self) -> bool:
        return self.ctx.return_flight is not None or self.ctx.ground_transport is not None

    def _place_return(
        self,
        allocator: SlotAllocator,
        date: dt.date,
        day_number: int,
        day_type: DayType,
    ) -> tuple[list[TripItem], Optional[OvernightCarryover]]:
        ctx = self.ctx
        result = self.logistics.handle_return(allocator, date, day_number, day_type)
        items = list(result.items)
        carryover = result.carryover
        has_leg = any(item.leg == LegDirection.RETURN for item in items)
        if self._has_return_booking() and (result.missing_leg or not has_leg):
            forced = self.logistics.synthesize_return_leg(date, day_number, day_type)
            if forced is not None:
                ctx.logger.error(
                    "orchestrator",
                    f"return leg missing on day {day_number}; force-inserted '{forced.title}'",
                    day=day_number,
                )
                items.append(forced)
                if forced.slot.end.date() > forced.slot.start.date() and carryover is None:
                    carryover = OvernightCarryover(
                        leg=LegDirection.RETURN,
                        arrival_time=forced.slot.end,
                        flight=ctx.return_flight,
                        transport=ctx.ground_transport if ctx.return_flight is None else None,
                        dest_airport=ctx.origin_airport,
                    )
        return items, carryover

    def generate_trip(self) -> tuple[list[Day], Optional[OvernightCarryover]]:
        """All days in order; returns the days plus any carryover nothing consumed."""
        used_ids: set[str] = set()
        self.groceries_done = False
        days: list[Day] = []
        carryover: Optional[OvernightCarryover] = None
        for day_number in range(1, self.ctx.total_days + 1):
            outcome = self.generate_day(day_number, used_ids=used_ids, carryover=carryover)
            days.append(outcome.day)
            carryover = outcome.carryover

        if carryover is not None and carryover.leg == LegDirection.RETURN:
            # homeward overnight leg: one trailing day for the arrival back home
            outcome = self.generate_day(self.ctx.total_days + 1, used_ids=used_ids, carryover=carryover)
            days.append(outcome.day)
            carryover = outcome.carryover
        return days, carryover
