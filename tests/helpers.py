"""Shared builders for planner tests."""

import datetime as dt
import io

from tripweaver.advisor.selector import DecisionAdvisor
from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.models import CandidateAttraction, Coordinates, TripPreferences
from tripweaver.infrastructure.logging import StructuredLogger
from tripweaver.planner.budget import BudgetTracker
from tripweaver.planner.context import PlannerContext

CITY_CENTER = Coordinates(lat=38.7223, lng=-9.1393)
START_DATE = dt.date(2024, 6, 10)


def quiet_logger() -> StructuredLogger:
    return StructuredLogger(trace_id="test", output=io.StringIO())


def near(lat_offset: float = 0.0, lng_offset: float = 0.0) -> Coordinates:
    return Coordinates(lat=CITY_CENTER.lat + lat_offset, lng=CITY_CENTER.lng + lng_offset)


def at(day: dt.date, clock: str) -> dt.datetime:
    hours, minutes = clock.split(":")
    return dt.datetime.combine(day, dt.time(int(hours), int(minutes)))


def attraction(ident: str, minutes: int = 90, cost: float = 0.0, **kw) -> CandidateAttraction:
    kw.setdefault("coordinates", near(0.001, 0.001))
    kw.setdefault("name", f"Place {ident}")
    return CandidateAttraction(id=ident, duration_minutes=minutes, estimated_cost=cost, **kw)


def preferences(days: int = 3, **kw) -> TripPreferences:
    kw.setdefault("origin", "Porto")
    kw.setdefault("destination", "Lisbon")
    kw.setdefault("start_date", START_DATE)
    kw.setdefault("budget_total", 10000.0)
    return TripPreferences(duration_days=days, **kw)


def make_context(days: int = 3, *, prefs=None, settings=None, budget=None, advisor=None, **fields) -> PlannerContext:
    """PlannerContext around Lisbon with a generous, already rebalanced budget."""
    prefs = prefs or preferences(days)
    if budget is None:
        budget = BudgetTracker.for_preferences(prefs)
        budget.rebalance()
    log = fields.pop("logger", None) or quiet_logger()
    return PlannerContext(
        preferences=prefs,
        settings=settings or PlannerSettings(),
        budget=budget,
        advisor=advisor or DecisionAdvisor(logger=log),
        city_center=CITY_CENTER,
        logger=log,
        **fields,
    )


def _lisbon_point(dlat: float, dlng: float = 0.0) -> dict:
    return {"lat": CITY_CENTER.lat + dlat, "lng": CITY_CENTER.lng + dlng}


def lisbon_request(**overrides) -> dict:
    """JSON-shaped three-day Lisbon request with flights, a hotel and six sights."""
    request = {
        "trace_id": "trip-1",
        "preferences": {
            "origin": "Porto",
            "destination": "Lisbon",
            "start_date": START_DATE.isoformat(),
            "duration_days": 3,
            "party_size": 2,
            "budget_total": 5000,
            "must_include": "Jerónimos",
        },
        "city_center": {"lat": CITY_CENTER.lat, "lng": CITY_CENTER.lng},
        "attractions": [
            {"id": "alfama", "name": "Alfama Walk", "coordinates": _lisbon_point(0.002, 0.006),
             "duration_minutes": 120},
            {"id": "castle", "name": "Castelo de São Jorge", "coordinates": _lisbon_point(0.004, 0.004),
             "estimated_cost": 15},
            {"id": "lx", "name": "LX Factory", "coordinates": _lisbon_point(-0.018, -0.04), "duration_minutes": 75},
            {"id": "jeronimos", "name": "Mosteiro dos Jeronimos", "coordinates": _lisbon_point(-0.025, -0.07),
             "estimated_cost": 10},
            {"id": "tram", "name": "Tram 28", "coordinates": _lisbon_point(0.001, 0.002), "duration_minutes": 60},
            {"id": "oceanario", "name": "Oceanario", "coordinates": _lisbon_point(0.04, 0.04), "estimated_cost": 25},
        ],
        "restaurants": [
            {"id": "r1", "name": "Tasca do Chico", "coordinates": _lisbon_point(0.003)},
            {"id": "r2", "name": "Time Out Market", "coordinates": _lisbon_point(-0.004), "price_level": 3},
        ],
        "accommodation": {"id": "h1", "name": "Hotel Tejo", "coordinates": _lisbon_point(0.001, 0.001),
                          "price_per_night": 100},
        "dest_airport": {"code": "LIS", "name": "Lisbon Airport", "coordinates": _lisbon_point(0.05, 0.02)},
        "flights": [
            {"id": "out", "direction": "outbound", "departure_time": "2024-06-10T11:00:00",
             "arrival_time": "2024-06-10T12:00:00", "price": 100},
            {"id": "back", "direction": "return", "departure_time": "2024-06-12T18:00:00",
             "arrival_time": "2024-06-12T19:00:00", "price": 100},
        ],
    }
    request.update(overrides)
    return request


def unplannable_request() -> dict:
    """A one-day request with nothing to place; pair with a day ending at 13:30."""
    request = lisbon_request(attractions=[], restaurants=[], accommodation=None, flights=[], dest_airport=None)
    request["preferences"]["duration_days"] = 1
    return request
