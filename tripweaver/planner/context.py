"""Immutable-per-trip planning context shared by the day planners."""

from __future__ import annotations

import datetime as dt
import itertools
from dataclasses import dataclass, field
from typing import Callable, Optional

from tripweaver.advisor.interfaces import Advisor
from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import MealType, TripItemType
from tripweaver.domain.models import (
    Accommodation,
    AirportInfo,
    BudgetStrategy,
    CandidateAttraction,
    CandidateRestaurant,
    Coordinates,
    DayTripPlan,
    Flight,
    GroceryStore,
    LuggageStorage,
    ParkingOption,
    ScheduleSlot,
    TransportOption,
    TripItem,
    TripPreferences,
)
from tripweaver.infrastructure.logging import StructuredLogger, get_logger
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.clock import parse_clock

RestaurantResolver = Callable[
    [MealType, Coordinates, TripPreferences, int, Optional[Coordinates]],
    Optional[CandidateRestaurant],
]


@dataclass
class PlannerContext:
    preferences: TripPreferences
    settings: PlannerSettings
    budget: BudgetTracker
    advisor: Advisor
    city_center: Coordinates
    origin_coords: Optional[Coordinates] = None
    outbound_flight: Optional[Flight] = None
    return_flight: Optional[Flight] = None
    ground_transport: Optional[TransportOption] = None
    origin_airport: Optional[AirportInfo] = None
    dest_airport: Optional[AirportInfo] = None
    accommodation: Optional[Accommodation] = None
    parking: Optional[ParkingOption] = None
    luggage_storage: Optional[LuggageStorage] = None
    grocery_store: Optional[GroceryStore] = None
    budget_strategy: Optional[BudgetStrategy] = None
    attraction_pool: list[CandidateAttraction] = field(default_factory=list)
    day_trips: dict[int, DayTripPlan] = field(default_factory=dict)
    prefetched_restaurants: dict[tuple[int, MealType], Optional[CandidateRestaurant]] = field(
        default_factory=dict
    )
    restaurant_resolver: Optional[RestaurantResolver] = None
    logger: StructuredLogger = field(default_factory=get_logger)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    @property
    def total_days(self) -> int:
        return self.preferences.duration_days

    @property
    def party_size(self) -> int:
        return self.preferences.party_size

    @property
    def lodging_coords(self) -> Coordinates:
        if self.accommodation is not None and self.accommodation.coordinates is not None:
            return self.accommodation.coordinates
        return self.city_center

    @property
    def lodging_name(self) -> str:
        if self.accommodation is not None:
            return self.accommodation.name
        return f"Accommodation, {self.preferences.destination}"

    def day_start(self, day: dt.date) -> dt.datetime:
        return parse_clock(day, self.settings.day_start)

    def day_end(self, day: dt.date) -> dt.datetime:
        clock = self.settings.nightlife_day_end if self.preferences.has_nightlife else self.settings.day_end
        return parse_clock(day, clock)

    def center_for_day(self, day_number: int) -> Coordinates:
        trip = self.day_trips.get(day_number)
        return trip.coordinates if trip is not None else self.city_center

    def make_item(
        self,
        day_number: int,
        slot: ScheduleSlot,
        item_type: TripItemType,
        title: str,
        **fields,
    ) -> TripItem:
        item_id = f"d{day_number}-{item_type.value}-{next(self._ids)}"
        return TripItem(id=item_id, day_number=day_number, slot=slot, type=item_type, title=title, **fields)
