"""Per-day attraction placement around the meals, with gap filling."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from tripweaver.advisor.interfaces import describe_meals, energy_for_activity_minutes
from tripweaver.domain.enums import AdvisorQuestion, BudgetCategory, DayType, MealType, TripItemType
from tripweaver.domain.models import (
    AdvisorOption,
    AdvisorRequest,
    CandidateAttraction,
    Coordinates,
    TravelerStateSummary,
    TripItem,
)
from tripweaver.planner.clock import add_minutes, fmt_clock, hour_of, minutes_between, parse_clock
from tripweaver.planner.context import PlannerContext
from tripweaver.planner.distance import estimate_travel_minutes
from tripweaver.planner.meals import MealScheduler
from tripweaver.planner.slot_allocator import SlotAllocator

_ORDER_OPTIONS = 4
_GAP_OPTIONS = 5


def opening_window(candidate: CandidateAttraction, day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    """Opening hours anchored to ``day``; a close before the open means past midnight."""
    hours = candidate.opening_hours
    if hours is None:
        return parse_clock(day, "00:00"), parse_clock(day, "24:00")
    opens = parse_clock(day, hours.open)
    closes = parse_clock(day, hours.close)
    if closes <= opens:
        closes += dt.timedelta(days=1)
    return opens, closes


class ActivityPlanner:
    """Runs one day: breakfast, morning, lunch, afternoon, dinner, with gap fills in between.

    ``used_ids`` is the trip-wide set of placed attraction ids; it is mutated
    in place and must be the same object for every day of a trip.
    """

    def __init__(
        self,
        ctx: PlannerContext,
        allocator: SlotAllocator,
        meals: MealScheduler,
        *,
        day: dt.date,
        day_number: int,
        day_type: DayType,
        candidates: list[CandidateAttraction],
        used_ids: set[str],
        start_coords: Optional[Coordinates],
        usable_end: dt.datetime,
    ):
        self.ctx = ctx
        self.settings = ctx.settings
        self.allocator = allocator
        self.meals = meals
        self.day = day
        self.day_number = day_number
        self.day_type = day_type
        self.candidates = list(candidates)
        self.used_ids = used_ids
        self.last_coords = start_coords
        self.usable_end = usable_end
        self.items: list[TripItem] = []
        self.activity_minutes = 0
        self.activity_spend = 0.0
        self._energy_checked = False
        self._day_over = False

    @property
    def skips_morning(self) -> bool:
        return self.day_type in (DayType.ARRIVAL, DayType.SINGLE_DAY, DayType.OVERNIGHT_ARRIVAL)

    def _deadline(self, clock: str) -> dt.datetime:
        return min(parse_clock(self.day, clock), self.usable_end)

    def plan_day(self) -> list[TripItem]:
        s = self.settings
        self._add_meal(self.meals.schedule_breakfast(self.last_coords))

        morning_count = len(self.candidates) // 2
        if self.skips_morning:
            afternoon = self.candidates
        else:
            morning = self._ordered(self.candidates[:morning_count])
            afternoon = self.candidates[morning_count:]
            lunch_deadline = self._deadline(s.lunch_deadline)
            if hour_of(self.allocator.cursor, self.day) < 12:
                for candidate in morning:
                    self._try_place(candidate, lunch_deadline)
                self._fill_gap(lunch_deadline)

        lunch_state = self._state(minutes_between(self.allocator.cursor, self.usable_end))
        self._add_meal(self.meals.schedule_lunch(self.last_coords, lunch_state))

        if self.meals.usable_end_hour >= 20:
            afternoon_deadline = self._deadline(s.afternoon_deadline)
        else:
            afternoon_deadline = self.usable_end
        for candidate in afternoon:
            if self._day_over:
                break
            if self._try_place(candidate, afternoon_deadline):
                self._check_energy()

        dinner_deadline = self._deadline(s.dinner_deadline)
        grocery = self.meals.schedule_grocery_run(self.last_coords, dinner_deadline)
        if grocery is not None:
            self.items.append(grocery)
            self.last_coords = grocery.coordinates or self.last_coords
        if not self._day_over:
            self._fill_gap(dinner_deadline)

        self._add_meal(self.meals.schedule_dinner(self.last_coords))
        return self.items

    # ── placement ───────────────────────────────────────────

    def _add_meal(self, item: Optional[TripItem]) -> None:
        if item is None:
            return
        self.items.append(item)
        if item.coordinates is not None:
            self.last_coords = item.coordinates

    def _travel_to(self, candidate: CandidateAttraction) -> int:
        return estimate_travel_minutes(self.last_coords, candidate.coordinates, self.settings.local_travel_mode)

    def _fits_hours(self, candidate: CandidateAttraction, travel: int, deadline: Optional[dt.datetime]) -> bool:
        opens, closes = opening_window(candidate, self.day)
        start = max(add_minutes(self.allocator.cursor, travel), opens)
        end = add_minutes(start, candidate.duration_minutes)
        if end > add_minutes(closes, -self.settings.closing_buffer_minutes):
            return False
        return deadline is None or end <= deadline

    def _affordable(self, candidate: CandidateAttraction) -> bool:
        strategy = self.ctx.budget_strategy
        cap = strategy.max_price_per_activity if strategy is not None else None
        if cap is not None and candidate.estimated_cost > cap:
            return False
        cost = candidate.estimated_cost * self.ctx.party_size
        daily = strategy.daily_activity_budget if strategy is not None else None
        if daily is not None and cost > 0 and self.activity_spend + cost > daily * self.ctx.party_size:
            return False
        return self.ctx.budget.can_afford(BudgetCategory.ACTIVITIES, cost)

    def _try_place(self, candidate: CandidateAttraction, deadline: dt.datetime) -> bool:
        if candidate.id in self.used_ids or candidate.coordinates is None:
            return False
        travel = self._travel_to(candidate)
        if add_minutes(self.allocator.cursor, travel + candidate.duration_minutes) > deadline:
            return False
        if not self._fits_hours(candidate, travel, deadline):
            return False
        if not self._affordable(candidate):
            return False

        opens, closes = opening_window(candidate, self.day)
        probe = self.allocator.probe(candidate.duration_minutes, travel, opens)
        if probe is None or probe.end > deadline:
            return False
        if probe.end > add_minutes(closes, -self.settings.closing_buffer_minutes):
            return False
        slot = self.allocator.add_item(
            candidate.duration_minutes, travel, opens, kind="activity", label=candidate.name
        )

        cost = candidate.estimated_cost * self.ctx.party_size
        self.ctx.budget.spend(BudgetCategory.ACTIVITIES, cost)
        self.activity_spend += cost
        self.used_ids.add(candidate.id)
        self.activity_minutes += candidate.duration_minutes
        self.last_coords = candidate.coordinates
        self.items.append(self.ctx.make_item(
            self.day_number,
            slot,
            TripItemType.ACTIVITY,
            candidate.name,
            description=candidate.description,
            location_name=f"{candidate.name}, {self.ctx.preferences.destination}",
            coordinates=candidate.coordinates,
            estimated_cost=round(cost, 2),
            travel_minutes=travel,
            attraction_id=candidate.id,
            is_must_see=candidate.must_see,
            data_reliability=candidate.data_reliability,
        ))
        return True

    # ── gap filling ─────────────────────────────────────────

    def _fitting(self, deadline: dt.datetime) -> list[CandidateAttraction]:
        slack = self.settings.gap_fill_slack_minutes
        fitting = []
        for candidate in self.ctx.attraction_pool:
            if candidate.id in self.used_ids or candidate.coordinates is None:
                continue
            travel = self._travel_to(candidate)
            if add_minutes(self.allocator.cursor, travel + candidate.duration_minutes + slack) > deadline:
                continue
            if self._fits_hours(candidate, travel, deadline):
                fitting.append(candidate)
        return fitting

    def _fill_gap(self, deadline: dt.datetime) -> int:
        """Fill the time left before ``deadline`` from the whole pool; returns how many were placed."""
        s = self.settings
        placed = 0
        while minutes_between(self.allocator.cursor, deadline) > s.gap_fill_threshold_minutes:
            fitting = self._fitting(deadline)
            if not fitting:
                break
            gap = minutes_between(self.allocator.cursor, deadline)
            if gap > s.advisor_gap_minutes and len(fitting) > 1:
                fitting = self._ask_gap_fill(fitting, gap)
            if not any(self._try_place(candidate, deadline) for candidate in fitting):
                break
            placed += 1
        return placed

    def _state(self, available_minutes: float) -> TravelerStateSummary:
        eaten = self.meals.eaten
        return TravelerStateSummary(
            time=fmt_clock(self.allocator.cursor),
            location=self.ctx.preferences.destination,
            available_hours=round(max(available_minutes, 0) / 60, 2),
            energy=energy_for_activity_minutes(self.activity_minutes),
            meals=describe_meals(eaten[MealType.BREAKFAST], eaten[MealType.LUNCH], eaten[MealType.DINNER]),
            day_type=self.day_type,
            pending_count=sum(1 for c in self.candidates if c.id not in self.used_ids),
        )

    def _ask_gap_fill(self, fitting: list[CandidateAttraction], gap: float) -> list[CandidateAttraction]:
        offered = fitting[:_GAP_OPTIONS]
        request = AdvisorRequest(
            question=AdvisorQuestion.GAP_FILL,
            state=self._state(gap),
            options=[
                AdvisorOption(id=c.id, label=c.name, duration_minutes=c.duration_minutes, description=c.description)
                for c in offered
            ],
        )
        return _promote(fitting, self.ctx.advisor.advise(request).chosen_id)

    def _ordered(self, morning: list[CandidateAttraction]) -> list[CandidateAttraction]:
        open_candidates = [c for c in morning if c.id not in self.used_ids]
        if len(open_candidates) < 2:
            return morning
        available = minutes_between(self.allocator.cursor, self._deadline(self.settings.lunch_deadline))
        request = AdvisorRequest(
            question=AdvisorQuestion.ACTIVITY_ORDER,
            state=self._state(available),
            options=[
                AdvisorOption(id=c.id, label=c.name, duration_minutes=c.duration_minutes)
                for c in open_candidates[:_ORDER_OPTIONS]
            ],
            constraints=["lunch around 12:30"],
        )
        return _promote(morning, self.ctx.advisor.advise(request).chosen_id)

    def _check_energy(self) -> None:
        if self._energy_checked or self.activity_minutes < self.settings.energy_check_minutes:
            return
        self._energy_checked = True
        request = AdvisorRequest(
            question=AdvisorQuestion.ENERGY_CHECK,
            state=self._state(minutes_between(self.allocator.cursor, self.usable_end)),
            options=[
                AdvisorOption(id="continue", label="Continue sightseeing"),
                AdvisorOption(id="end", label="End the day and rest"),
            ],
        )
        if self.ctx.advisor.advise(request).chosen_id == "end":
            self._day_over = True


def _promote(candidates: list[CandidateAttraction], chosen_id: str) -> list[CandidateAttraction]:
    chosen = [c for c in candidates if c.id == chosen_id]
    return chosen + [c for c in candidates if c.id != chosen_id]
