"""Concurrent collaborator lookups ahead of the sequential scheduling pass.

Every lookup only reads; results are written into per-key maps after the
futures resolve, so the scheduling pass sees plain dictionaries. A lookup
that raises or times out degrades to "not found".
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from typing import Callable, Hashable, Optional

from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import MealType
from tripweaver.domain.models import (
    CandidateAttraction,
    CandidateRestaurant,
    Coordinates,
    GroceryStore,
    LuggageStorage,
    TripPreferences,
)
from tripweaver.infrastructure.logging import StructuredLogger, get_logger
from tripweaver.planner.context import RestaurantResolver
from tripweaver.planner.distance import distance_km
from tripweaver.shared.exceptions import ToolError, guarded_call

Geocoder = Callable[[str, str], Optional[Coordinates]]
LuggageFinder = Callable[[Coordinates], Optional[LuggageStorage]]
GroceryFinder = Callable[[Coordinates], Optional[GroceryStore]]

_MEAL_ORDER = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)


class ListRestaurantResolver:
    """Resolver over a ranked restaurant list.

    Stateless per call: eligible restaurants are ranked by dietary match,
    distance and rating, then each (day, meal) slot takes a different rank so
    consecutive meals do not repeat a venue while the list lasts.
    """

    def __init__(self, restaurants: list[CandidateRestaurant]):
        self.restaurants = [r for r in restaurants if r.coordinates is not None]

    def __call__(
        self,
        meal_type: MealType,
        city_center: Coordinates,
        preferences: TripPreferences,
        day_number: int,
        last_coords: Optional[Coordinates],
    ) -> Optional[CandidateRestaurant]:
        eligible = [r for r in self.restaurants if meal_type in r.meal_types]
        if not eligible:
            return None
        anchor = last_coords or city_center
        wanted = {d.strip().lower() for d in preferences.dietary if d.strip()}

        def rank(restaurant: CandidateRestaurant):
            offered = {d.lower() for d in restaurant.dietary_options}
            misses = len(wanted - offered)
            return misses, round(distance_km(anchor, restaurant.coordinates), 1), -(restaurant.rating or 0.0)

        eligible.sort(key=rank)
        slot = (day_number - 1) * len(_MEAL_ORDER) + _MEAL_ORDER.index(meal_type)
        return eligible[slot % len(eligible)]


def _nearest(options: list, anchor: Coordinates):
    located = [o for o in options if o.coordinates is not None]
    if not located:
        return None
    return min(located, key=lambda o: distance_km(anchor, o.coordinates))


@dataclass
class Collaborators:
    """External lookups the engine consumes; each may be swapped for a real service."""

    restaurant_resolver: Optional[RestaurantResolver] = None
    geocoder: Optional[Geocoder] = None
    luggage_finder: Optional[LuggageFinder] = None
    grocery_finder: Optional[GroceryFinder] = None

    @classmethod
    def from_lists(
        cls,
        *,
        restaurants: list[CandidateRestaurant],
        luggage_storages: list[LuggageStorage],
        grocery_stores: list[GroceryStore],
        geocoded: dict[str, Coordinates],
    ) -> "Collaborators":
        return cls(
            restaurant_resolver=ListRestaurantResolver(restaurants),
            geocoder=lambda name, _city: geocoded.get(name),
            luggage_finder=lambda anchor: _nearest(luggage_storages, anchor),
            grocery_finder=lambda anchor: _nearest(grocery_stores, anchor),
        )


@dataclass
class PrefetchResult:
    restaurants: dict[tuple[int, MealType], Optional[CandidateRestaurant]] = field(default_factory=dict)
    geocoded: dict[str, Coordinates] = field(default_factory=dict)
    luggage_storage: Optional[LuggageStorage] = None
    grocery_store: Optional[GroceryStore] = None
    failures: int = 0


def meal_slots(total_days: int, *, hotel_breakfast: bool) -> list[tuple[int, MealType]]:
    """The (day, meal) pairs the meal scheduler can ask for."""
    slots: list[tuple[int, MealType]] = []
    for day in range(1, total_days + 1):
        if day > 1 and not hotel_breakfast:
            slots.append((day, MealType.BREAKFAST))
        slots.append((day, MealType.LUNCH))
        if day < total_days:
            slots.append((day, MealType.DINNER))
    return slots


def prefetch(
    preferences: TripPreferences,
    collaborators: Collaborators,
    *,
    city_center: Coordinates,
    lodging_coords: Coordinates,
    attractions: list[CandidateAttraction],
    hotel_breakfast: bool = False,
    day_centers: Optional[dict[int, Coordinates]] = None,
    settings: Optional[PlannerSettings] = None,
    logger: Optional[StructuredLogger] = None,
) -> PrefetchResult:
    settings = settings or PlannerSettings()
    log = logger or get_logger()
    day_centers = day_centers or {}
    result = PrefetchResult()

    jobs: dict[Hashable, Callable[[], object]] = {}
    resolver = collaborators.restaurant_resolver
    if resolver is not None:
        for day, meal in meal_slots(preferences.duration_days, hotel_breakfast=hotel_breakfast):
            center = day_centers.get(day, city_center)
            jobs[("restaurant", day, meal)] = (
                lambda m=meal, c=center, d=day: resolver(m, c, preferences, d, None)
            )
    if collaborators.geocoder is not None:
        for candidate in attractions:
            if candidate.coordinates is None or candidate.coordinates.is_null_island():
                jobs[("geocode", candidate.name)] = (
                    lambda name=candidate.name: collaborators.geocoder(name, preferences.destination)
                )
    if collaborators.luggage_finder is not None:
        jobs[("luggage",)] = lambda: collaborators.luggage_finder(lodging_coords)
    if collaborators.grocery_finder is not None:
        jobs[("grocery",)] = lambda: collaborators.grocery_finder(lodging_coords)

    if not jobs:
        return result

    log.stage_start("prefetch", lookups=len(jobs))
    answers: dict[Hashable, object] = {}
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=settings.prefetch_workers)
    try:
        futures = {key: pool.submit(guarded_call, key[0], job) for key, job in jobs.items()}
        for key, future in futures.items():
            try:
                answers[key] = future.result(timeout=settings.lookup_timeout_seconds)
            except concurrent.futures.TimeoutError:
                answers[key] = None
                result.failures += 1
                log.warning("prefetch", f"lookup timed out: {key[0]}", key=str(key))
            except ToolError as exc:
                answers[key] = None
                result.failures += 1
                log.warning("prefetch", str(exc), key=str(key), collaborator=exc.collaborator)
    finally:
        # a stuck lookup must not hold up scheduling
        pool.shutdown(wait=False, cancel_futures=True)

    for key, value in answers.items():
        kind = key[0]
        if kind == "restaurant":
            result.restaurants[(key[1], key[2])] = value
        elif kind == "geocode" and value is not None:
            result.geocoded[key[1]] = value
        elif kind == "luggage":
            result.luggage_storage = value
        elif kind == "grocery":
            result.grocery_store = value
    log.stage_end("prefetch", items=len(answers), failures=result.failures)
    return result
