"""Single entrypoint for trip planning."""

from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from tripweaver.advisor.interfaces import Advisor
from tripweaver.advisor.selector import build_decision_advisor
from tripweaver.application.contracts import PlanRequest
from tripweaver.application.prefetch import Collaborators, prefetch
from tripweaver.config.settings import PlannerSettings, load_settings
from tripweaver.domain.enums import BudgetCategory, LegDirection
from tripweaver.domain.exceptions import InvalidTripRequest, NoFeasibleItinerary
from tripweaver.domain.models import CandidateAttraction, TripResult
from tripweaver.infrastructure.logging import StructuredLogger, get_logger
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.context import PlannerContext
from tripweaver.planner.normalize import normalize_candidates, preallocate
from tripweaver.planner.orchestrator import TripOrchestrator
from tripweaver.validators import run_post_generation


def _coerce_request(request: Union[PlanRequest, Mapping[str, Any]]) -> PlanRequest:
    if isinstance(request, PlanRequest):
        return request
    try:
        return PlanRequest.model_validate(request)
    except ValidationError as exc:
        raise InvalidTripRequest(f"invalid trip request: {exc.errors()[0].get('msg', exc)}") from exc


def _build_budget(request: PlanRequest) -> BudgetTracker:
    prefs = request.preferences
    budget = BudgetTracker.for_preferences(prefs)
    flights = sum(f.price for f in (request.flight_for(LegDirection.OUTBOUND), request.flight_for(LegDirection.RETURN)) if f)
    accommodation = request.accommodation.cost_for(prefs.duration_days - 1) if request.accommodation else 0.0
    parking = 0.0
    if prefs.needs_parking and request.parking is not None:
        parking = request.parking.cost_for(prefs.duration_days)
    budget.commit_fixed_costs(flights=flights, accommodation=accommodation, parking=parking)
    budget.rebalance()
    if request.transport is not None and not request.flights:
        # booked ground leg: charged whatever the ceiling says
        budget.spend(BudgetCategory.TRANSPORT, request.transport.total_price)
    return budget


def _candidates_by_day(
    request: PlanRequest,
    pool: list[CandidateAttraction],
) -> dict[int, list[CandidateAttraction]]:
    total = request.preferences.duration_days
    if request.attractions_by_day is None:
        return preallocate(pool, total)
    by_id = {c.id: c for c in pool}
    return {
        day: [by_id[c.id] for c in request.attractions_by_day.get(day, []) if c.id in by_id]
        for day in range(1, total + 1)
    }


def _merged_pool(request: PlanRequest) -> list[CandidateAttraction]:
    merged: dict[str, CandidateAttraction] = {}
    for candidate in request.attractions:
        merged.setdefault(candidate.id, candidate)
    for day in sorted(request.attractions_by_day or {}):
        for candidate in request.attractions_by_day[day]:
            merged.setdefault(candidate.id, candidate)
    return list(merged.values())


def plan_trip(
    request: Union[PlanRequest, Mapping[str, Any]],
    *,
    settings: Optional[PlannerSettings] = None,
    collaborators: Optional[Collaborators] = None,
    advisor: Optional[Advisor] = None,
    logger: Optional[StructuredLogger] = None,
) -> TripResult:
    """Plan a whole trip.

    Raises ``InvalidTripRequest`` for unusable input and ``NoFeasibleItinerary``
    when not a single item could be scheduled.
    """
    req = _coerce_request(request)
    prefs = req.preferences
    settings = settings or load_settings()
    trace_id = req.trace_id or uuid.uuid4().hex[:12]
    log = logger or get_logger(trace_id)

    city_center = req.resolved_center()
    if city_center is None:
        raise InvalidTripRequest("destination coordinates are required (city_center or destination_coords)")
    if req.accommodation is not None and req.accommodation.coordinates is None:
        log.warning("plan_trip", "accommodation has no coordinates; using the city centre for transfers")

    log.stage_start("plan_trip", destination=prefs.destination, days=prefs.duration_days)
    advisor = advisor or build_decision_advisor(settings, log)
    budget = _build_budget(req)

    collaborators = collaborators or Collaborators.from_lists(
        restaurants=req.restaurants,
        luggage_storages=req.luggage_storages,
        grocery_stores=req.grocery_stores,
        geocoded=req.geocoded,
    )
    lodging_coords = (
        req.accommodation.coordinates
        if req.accommodation is not None and req.accommodation.coordinates is not None
        else city_center
    )
    day_trips = {trip.day_number: trip for trip in req.day_trips}
    raw_pool = _merged_pool(req)
    fetched = prefetch(
        prefs,
        collaborators,
        city_center=city_center,
        lodging_coords=lodging_coords,
        attractions=raw_pool,
        hotel_breakfast=bool(req.accommodation and req.accommodation.breakfast_included),
        day_centers={day: trip.coordinates for day, trip in day_trips.items()},
        settings=settings,
        logger=log,
    )

    pool = normalize_candidates(
        raw_pool,
        city_center=city_center,
        must_include=prefs.must_include,
        geocoded={**req.geocoded, **fetched.geocoded},
        replacement_radius_km=settings.replacement_radius_km,
        logger=log,
    )

    ctx = PlannerContext(
        preferences=prefs,
        settings=settings,
        budget=budget,
        advisor=advisor,
        city_center=city_center,
        origin_coords=prefs.origin_coords,
        outbound_flight=req.flight_for(LegDirection.OUTBOUND),
        return_flight=req.flight_for(LegDirection.RETURN),
        ground_transport=req.transport if not req.flights else None,
        origin_airport=req.origin_airport,
        dest_airport=req.dest_airport,
        accommodation=req.accommodation,
        parking=req.parking if prefs.needs_parking else None,
        luggage_storage=fetched.luggage_storage,
        grocery_store=fetched.grocery_store,
        budget_strategy=req.budget_strategy,
        attraction_pool=pool,
        day_trips=day_trips,
        prefetched_restaurants=fetched.restaurants,
        restaurant_resolver=collaborators.restaurant_resolver,
        logger=log,
    )

    days, carryover = TripOrchestrator(ctx, _candidates_by_day(req, pool)).generate_trip()
    issues, repairs = run_post_generation(days, ctx)

    placed = sum(len(day.items) for day in days)
    if placed == 0:
        log.error("plan_trip", "no item could be scheduled on any day")
        raise NoFeasibleItinerary("no feasible itinerary for the requested trip", days=len(days))

    result = TripResult(
        trace_id=log.trace_id,
        destination=prefs.destination,
        days=days,
        cost_breakdown=budget.breakdown(),
        total_cost=budget.total_committed,
        advisor_calls=getattr(advisor, "calls", 0),
        issues=issues,
        repair_actions=repairs,
        carryover=carryover,
    )
    log.stage_end("plan_trip", items=placed)
    log.summary(
        days=len(days),
        items=placed,
        total_cost=result.total_cost,
        advisor_calls=result.advisor_calls,
        issues=len(issues),
        repairs=len(repairs),
    )
    return result
