"""End-to-end planning through the application entrypoint."""

import pytest
from helpers import lisbon_request, quiet_logger, unplannable_request

from tripweaver.application import PlanRequest, plan_trip
from tripweaver.application.prefetch import Collaborators
from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import LegDirection, TripItemType
from tripweaver.domain.exceptions import InvalidTripRequest, NoFeasibleItinerary


def test_plans_a_three_day_trip():
    result = plan_trip(lisbon_request(), settings=PlannerSettings(), logger=quiet_logger())

    assert result.destination == "Lisbon"
    assert len(result.days) == 3
    assert result.advisor_calls == 0
    assert result.carryover is None
    assert result.cost_breakdown["flights"] == 200
    assert result.cost_breakdown["accommodation"] == 200
    assert result.total_cost >= 400

    items = [i for d in result.days for i in d.items]
    assert len({i.id for i in items}) == len(items)
    activities = [i.attraction_id for d in result.days for i in d.activities()]
    assert len(activities) == len(set(activities))
    assert "jeronimos" in activities
    assert next(i for i in items if i.attraction_id == "jeronimos").is_must_see
    legs = [i.leg for i in items if i.type == TripItemType.FLIGHT]
    assert legs == [LegDirection.OUTBOUND, LegDirection.RETURN]
    for day in result.days:
        assert [i.order_index for i in day.items] == list(range(len(day.items)))


def test_trace_id_is_generated_when_absent():
    request = lisbon_request()
    del request["trace_id"]
    result = plan_trip(request, settings=PlannerSettings())
    assert len(result.trace_id) == 12


def test_accepts_model_and_per_day_candidates():
    raw = lisbon_request()
    by_day = {"1": raw["attractions"][:2], "2": raw["attractions"][2:4], "3": raw["attractions"][4:]}
    request = PlanRequest.model_validate(lisbon_request(attractions=[], attractions_by_day=by_day))

    result = plan_trip(request, settings=PlannerSettings(), logger=quiet_logger())

    placed = [i.attraction_id for d in result.days for i in d.activities()]
    assert "jeronimos" in placed
    assert set(placed) <= {a["id"] for a in raw["attractions"]}


def test_missing_destination_coordinates_is_rejected():
    with pytest.raises(InvalidTripRequest):
        plan_trip(lisbon_request(city_center=None), settings=PlannerSettings(), logger=quiet_logger())


def test_inverted_date_range_is_rejected():
    request = lisbon_request()
    request["preferences"]["end_date"] = "2024-06-01"
    with pytest.raises(InvalidTripRequest):
        plan_trip(request, settings=PlannerSettings(), logger=quiet_logger())


def test_nothing_schedulable_raises():
    request = unplannable_request()
    with pytest.raises(NoFeasibleItinerary):
        plan_trip(request, settings=PlannerSettings(day_end="13:30"), logger=quiet_logger())


def test_restaurant_outage_does_not_abort_planning():
    def down(meal_type, center, prefs, day, last):
        raise ConnectionError("restaurant API down")

    result = plan_trip(lisbon_request(), collaborators=Collaborators(restaurant_resolver=down), logger=quiet_logger())

    assert len(result.days) == 3
    assert not any(i.restaurant_id for day in result.days for i in day.items)
