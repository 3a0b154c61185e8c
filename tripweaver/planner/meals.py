"""Breakfast / lunch / dinner insertion and the self-catering policy."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from tripweaver.domain.constants import (
    MEAL_PRICE_TABLE,
    PICNIC_PRICE_PER_PERSON,
    PRICE_TIER_BY_BUDGET,
    SELF_CATERED_PRICE,
)
from tripweaver.domain.enums import (
    AccommodationKind,
    AdvisorQuestion,
    BudgetCategory,
    DayType,
    MealMode,
    MealStrategy,
    MealType,
    TripItemType,
)
from tripweaver.domain.models import (
    AdvisorOption,
    AdvisorRequest,
    BudgetStrategy,
    CandidateRestaurant,
    Coordinates,
    ScheduleSlot,
    TravelerStateSummary,
    TripItem,
)
from tripweaver.planner.clock import add_minutes, hour_of, parse_clock
from tripweaver.planner.context import PlannerContext
from tripweaver.planner.distance import estimate_travel_minutes
from tripweaver.planner.slot_allocator import SlotAllocator
from tripweaver.shared.exceptions import ToolError, guarded_call

_MEAL_LABELS = {
    MealType.BREAKFAST: "Breakfast",
    MealType.LUNCH: "Lunch",
    MealType.DINNER: "Dinner",
}


def meal_cost(meal_type: MealType, price_tier: int, party_size: int) -> float:
    tier = min(max(int(price_tier), 1), 4)
    return MEAL_PRICE_TABLE[meal_type][tier - 1] * max(party_size, 1)


def grocery_day(total_days: int) -> int:
    return 2 if total_days > 2 else 1


def should_self_cater(
    meal_type: MealType,
    day_number: int,
    total_days: int,
    strategy: Optional[BudgetStrategy],
    *,
    hotel_breakfast: bool = False,
    is_day_trip: bool = False,
    groceries_done: bool = False,
    has_kitchen: bool = True,
) -> bool:
    """Deterministic kitchen-or-restaurant decision for one meal."""
    if strategy is None:
        return False
    if meal_type == MealType.BREAKFAST and hotel_breakfast:
        return False
    if is_day_trip or not groceries_done:
        return False
    if meal_type != MealType.LUNCH and not has_kitchen:
        return False

    choice = strategy.meals.for_meal(meal_type)
    if choice == MealStrategy.SELF_CATERED:
        return True
    if choice == MealStrategy.RESTAURANT:
        return False
    # mixed: alternate so not every meal is home-cooked
    if day_number == 1:
        return False
    if meal_type == MealType.DINNER and day_number == total_days - 1:
        return False
    return day_number % 2 == 1


@dataclass(frozen=True)
class _MealPlan:
    mode: MealMode
    minutes: int
    travel: int
    cost: float
    title: str
    location_name: str
    coordinates: Optional[Coordinates]
    restaurant: Optional[CandidateRestaurant] = None


class MealScheduler:
    """Places the day's meals; one instance per day, sharing that day's allocator."""

    def __init__(
        self,
        ctx: PlannerContext,
        allocator: SlotAllocator,
        *,
        day: dt.date,
        day_number: int,
        day_type: DayType,
        usable_end: dt.datetime,
        is_last_day: bool,
        groceries_done: bool = False,
    ):
        self.ctx = ctx
        self.settings = ctx.settings
        self.allocator = allocator
        self.day = day
        self.day_number = day_number
        self.day_type = day_type
        self.usable_end = usable_end
        self.is_last_day = is_last_day
        self.groceries_done = groceries_done
        self.eaten: dict[MealType, bool] = {meal: False for meal in MealType}

    @property
    def usable_end_hour(self) -> float:
        return hour_of(self.usable_end, self.day)

    @property
    def is_day_trip(self) -> bool:
        return self.day_number in self.ctx.day_trips

    @property
    def has_kitchen(self) -> bool:
        lodging = self.ctx.accommodation
        strategy = self.ctx.budget_strategy
        if lodging is not None and (lodging.has_kitchen or lodging.kind == AccommodationKind.APARTMENT):
            return True
        return strategy is not None and strategy.accommodation_kind == AccommodationKind.APARTMENT

    def _self_cater(self, meal_type: MealType) -> bool:
        lodging = self.ctx.accommodation
        return should_self_cater(
            meal_type,
            self.day_number,
            self.ctx.total_days,
            self.ctx.budget_strategy,
            hotel_breakfast=bool(lodging and lodging.breakfast_included),
            is_day_trip=self.is_day_trip,
            groceries_done=self.groceries_done,
            has_kitchen=self.has_kitchen,
        )

    # ── resolution ──────────────────────────────────────────

    def _find_restaurant(self, meal_type: MealType, last_coords: Optional[Coordinates]) -> Optional[CandidateRestaurant]:
        key = (self.day_number, meal_type)
        if key in self.ctx.prefetched_restaurants:
            return self.ctx.prefetched_restaurants[key]
        resolver = self.ctx.restaurant_resolver
        if resolver is None:
            return None
        center = self.ctx.center_for_day(self.day_number)
        try:
            return guarded_call(
                "restaurant",
                lambda: resolver(meal_type, center, self.ctx.preferences, self.day_number, last_coords),
            )
        except ToolError as exc:
            self.ctx.logger.warning("meals", str(exc), day=self.day_number, collaborator=exc.collaborator)
            return None

    def _restaurant_plan(
        self,
        meal_type: MealType,
        minutes: int,
        default_travel: int,
        last_coords: Optional[Coordinates],
    ) -> _MealPlan:
        ctx = self.ctx
        label = _MEAL_LABELS[meal_type]
        restaurant = self._find_restaurant(meal_type, last_coords)
        if restaurant is not None and restaurant.coordinates is not None:
            tier = restaurant.price_level
            travel = estimate_travel_minutes(last_coords, restaurant.coordinates, self.settings.local_travel_mode)
            return _MealPlan(
                mode=MealMode.RESTAURANT,
                minutes=minutes,
                travel=travel or default_travel,
                cost=meal_cost(meal_type, tier, ctx.party_size),
                title=f"{label}: {restaurant.name}",
                location_name=restaurant.name,
                coordinates=restaurant.coordinates,
                restaurant=restaurant,
            )
        # nothing resolved: eat near where the traveller already is
        tier = PRICE_TIER_BY_BUDGET[ctx.preferences.budget_tier]
        near = last_coords or ctx.lodging_coords
        return _MealPlan(
            mode=MealMode.RESTAURANT,
            minutes=minutes,
            travel=default_travel,
            cost=meal_cost(meal_type, tier, ctx.party_size),
            title=f"{label} nearby",
            location_name=f"Near {ctx.preferences.destination}",
            coordinates=near,
        )

    def _home_plan(self, meal_type: MealType, minutes: int, last_coords: Optional[Coordinates]) -> _MealPlan:
        ctx = self.ctx
        return _MealPlan(
            mode=MealMode.SELF_CATERED,
            minutes=minutes,
            travel=estimate_travel_minutes(last_coords, ctx.lodging_coords, self.settings.local_travel_mode),
            cost=SELF_CATERED_PRICE[meal_type] * ctx.party_size,
            title=f"{_MEAL_LABELS[meal_type]} at the accommodation",
            location_name=ctx.lodging_name,
            coordinates=ctx.lodging_coords,
        )

    def _picnic_plan(self, meal_type: MealType, last_coords: Optional[Coordinates]) -> _MealPlan:
        return _MealPlan(
            mode=MealMode.PICNIC,
            minutes=self.settings.picnic_minutes,
            travel=0,
            cost=PICNIC_PRICE_PER_PERSON * self.ctx.party_size,
            title=f"Picnic {_MEAL_LABELS[meal_type].lower()}",
            location_name="Picnic spot",
            coordinates=last_coords or self.ctx.lodging_coords,
        )

    def _affordable(self, plan: _MealPlan, meal_type: MealType, last_coords: Optional[Coordinates]) -> Optional[_MealPlan]:
        """Downgrade to a picnic when the food ceiling declines; None when even that fails."""
        budget = self.ctx.budget
        if budget.can_afford(BudgetCategory.FOOD, plan.cost):
            return plan
        picnic = self._picnic_plan(meal_type, last_coords)
        if plan.mode != MealMode.PICNIC and budget.can_afford(BudgetCategory.FOOD, picnic.cost):
            return picnic
        self.ctx.logger.warning(
            "meals",
            f"food budget exhausted, skipping {meal_type.value}",
            day=self.day_number,
        )
        return None

    def _commit(self, slot: ScheduleSlot, plan: _MealPlan, meal_type: MealType) -> TripItem:
        self.ctx.budget.spend(BudgetCategory.FOOD, plan.cost)
        self.eaten[meal_type] = True
        return self.ctx.make_item(
            self.day_number,
            slot,
            TripItemType.RESTAURANT,
            plan.title,
            location_name=plan.location_name,
            coordinates=plan.coordinates,
            estimated_cost=round(plan.cost, 2),
            travel_minutes=plan.travel,
            restaurant_id=plan.restaurant.id if plan.restaurant else None,
            meal_type=meal_type,
            meal_mode=plan.mode,
        )

    # ── meals ───────────────────────────────────────────────

    def schedule_breakfast(self, last_coords: Optional[Coordinates]) -> Optional[TripItem]:
        s = self.settings
        if self.day_type in (DayType.ARRIVAL, DayType.SINGLE_DAY):
            return None
        if hour_of(self.allocator.cursor, self.day) >= s.breakfast_cutoff_hour:
            return None

        lodging = self.ctx.accommodation
        if lodging is not None and lodging.breakfast_included:
            plan = _MealPlan(
                mode=MealMode.HOTEL,
                minutes=s.hotel_breakfast_minutes,
                travel=0,
                cost=0.0,
                title=f"Breakfast at {lodging.name}",
                location_name=lodging.name,
                coordinates=self.ctx.lodging_coords,
            )
        elif self._self_cater(MealType.BREAKFAST):
            plan = self._home_plan(MealType.BREAKFAST, s.hotel_breakfast_minutes, last_coords)
        else:
            plan = self._restaurant_plan(MealType.BREAKFAST, s.breakfast_minutes, s.breakfast_travel_minutes, last_coords)

        plan = self._affordable(plan, MealType.BREAKFAST, last_coords)
        if plan is None:
            return None
        probe = self.allocator.probe(plan.minutes, plan.travel)
        if probe is None or probe.end > self.usable_end:
            return None
        slot = self.allocator.add_item(plan.minutes, plan.travel, kind="restaurant", label="breakfast")
        return self._commit(slot, plan, MealType.BREAKFAST)

    def _long_block_over_lunch(self):
        s = self.settings
        window_start = parse_clock(self.day, s.lunch_window_start)
        window_end = parse_clock(self.day, s.lunch_window_end)
        for entry in self.allocator.blocks_of("activity"):
            if entry.slot.duration_minutes > s.long_activity_minutes and entry.slot.overlaps(
                ScheduleSlot(start=window_start, end=window_end)
            ):
                return entry
        return None

    def _lunch_windows(self, earliest: dt.datetime, state: Optional[TravelerStateSummary]) -> list[str]:
        """Configured window order, or earliest first when the traveller would rather eat now."""
        windows = list(self.settings.lunch_windows)
        chronological = sorted(windows, key=lambda clock: parse_clock(self.day, clock))
        if state is None or state.pending_count == 0 or earliest > parse_clock(self.day, chronological[0]):
            return windows
        request = AdvisorRequest(
            question=AdvisorQuestion.MEAL_DECISION,
            state=state,
            options=[
                AdvisorOption(id="lunch", label="Eat lunch now", duration_minutes=self.settings.lunch_minutes),
                AdvisorOption(id="wait", label="Keep sightseeing and eat later"),
            ],
            constraints=[f"lunch between {self.settings.lunch_window_start} and {self.settings.lunch_window_end}"],
        )
        if self.ctx.advisor.advise(request).chosen_id == "lunch":
            return chronological
        return windows

    def schedule_lunch(
        self,
        last_coords: Optional[Coordinates],
        state: Optional[TravelerStateSummary] = None,
    ) -> Optional[TripItem]:
        """Lunch at the first free window; ``state`` lets the advisor pick eat-now over the preferred time."""
        s = self.settings
        if self.usable_end_hour < s.lunch_min_end_hour:
            return None

        long_block = self._long_block_over_lunch()
        if long_block is not None or self._self_cater(MealType.LUNCH):
            plan = self._picnic_plan(MealType.LUNCH, last_coords)
        else:
            plan = self._restaurant_plan(MealType.LUNCH, s.lunch_minutes, s.lunch_travel_minutes, last_coords)
        plan = self._affordable(plan, MealType.LUNCH, last_coords)
        if plan is None:
            return None

        earliest = add_minutes(self.allocator.cursor, plan.travel)
        for clock in self._lunch_windows(earliest, state):
            start = parse_clock(self.day, clock)
            if start < earliest:
                continue
            end = add_minutes(start, plan.minutes)
            if end > self.usable_end:
                continue
            slot = self.allocator.insert_fixed_item(start, end, kind="restaurant", label="lunch")
            if slot is not None:
                self.allocator.advance_to(slot.end)
                return self._commit(slot, plan, MealType.LUNCH)

        slot = self._after_straddling_block(plan, long_block)
        if slot is None:
            return None
        self.allocator.advance_to(slot.end)
        return self._commit(slot, plan, MealType.LUNCH)

    def _after_straddling_block(self, plan: _MealPlan, long_block) -> Optional[ScheduleSlot]:
        """Last resort: right after the activity that sits across the lunch window."""
        s = self.settings
        window = ScheduleSlot(
            start=parse_clock(self.day, s.lunch_window_start),
            end=parse_clock(self.day, s.lunch_window_end),
        )
        latest_start = parse_clock(self.day, s.lunch_latest_start)
        blocks = [e for e in self.allocator.blocks_of("activity") if e.slot.overlaps(window)]
        for entry in blocks:
            start = add_minutes(entry.slot.end, plan.travel)
            end = add_minutes(start, plan.minutes)
            if start <= latest_start and end <= self.usable_end:
                slot = self.allocator.insert_fixed_item(start, end, kind="restaurant", label="lunch")
                if slot is not None:
                    return slot
        if long_block is not None and plan.mode == MealMode.PICNIC:
            # long visit runs past lunch: eat just before it instead
            start = add_minutes(long_block.slot.start, -plan.minutes)
            if start >= self.allocator.day_start:
                return self.allocator.insert_fixed_item(start, long_block.slot.start, kind="restaurant", label="lunch")
        return None

    def schedule_dinner(self, last_coords: Optional[Coordinates]) -> Optional[TripItem]:
        s = self.settings
        if self.is_last_day or self.usable_end_hour < s.dinner_min_end_hour:
            return None

        if self._self_cater(MealType.DINNER):
            plan = self._home_plan(MealType.DINNER, s.self_catered_minutes, last_coords)
        else:
            plan = self._restaurant_plan(MealType.DINNER, s.dinner_minutes, s.dinner_travel_minutes, last_coords)
        if not self.allocator.can_fit(plan.minutes, plan.travel):
            return None
        plan = self._affordable(plan, MealType.DINNER, last_coords)
        if plan is None:
            return None

        min_start = parse_clock(self.day, s.dinner_min_start)
        probe = self.allocator.probe(plan.minutes, plan.travel, min_start)
        if probe is None or probe.end > self.usable_end:
            return None
        slot = self.allocator.add_item(plan.minutes, plan.travel, min_start, kind="restaurant", label="dinner")
        return self._commit(slot, plan, MealType.DINNER)

    def schedule_grocery_run(
        self,
        last_coords: Optional[Coordinates],
        deadline: dt.datetime,
    ) -> Optional[TripItem]:
        """Grocery stop on the trip's grocery day; unlocks self-catered meals."""
        ctx, s = self.ctx, self.settings
        strategy = ctx.budget_strategy
        store = ctx.grocery_store
        if self.groceries_done or strategy is None or not strategy.grocery_shopping_needed:
            return None
        if store is None or store.coordinates is None:
            return None
        if self.day_number < grocery_day(ctx.total_days) or self.is_day_trip:
            return None

        travel = estimate_travel_minutes(last_coords, store.coordinates, s.local_travel_mode)
        probe = self.allocator.probe(s.grocery_minutes, travel)
        if probe is None or probe.end > deadline:
            return None
        slot = self.allocator.add_item(s.grocery_minutes, travel, kind="grocery", label=store.name)
        self.groceries_done = True
        return ctx.make_item(
            self.day_number,
            slot,
            TripItemType.GROCERY,
            f"Groceries: {store.name}",
            location_name=store.name,
            coordinates=store.coordinates,
            travel_minutes=travel,
        )
