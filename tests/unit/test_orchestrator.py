"""Trip orchestration tests: day typing, carryover threading, cross-day invariants."""

import datetime as dt
import io

import pytest
from helpers import START_DATE, at, attraction, make_context, near

from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import DayType, LegDirection, MealType, TripItemType
from tripweaver.domain.models import Accommodation, AirportInfo, Flight
from tripweaver.infrastructure.logging import StructuredLogger
from tripweaver.planner.orchestrator import TripOrchestrator, classify_day

HOTEL = Accommodation(id="h1", name="Hotel Tejo", coordinates=near(0.01, 0.01))
AIRPORT = AirportInfo(code="LIS", name="Lisbon Airport", city="Lisbon", coordinates=near(0.05, 0.02))


def _day(offset: int) -> dt.date:
    return START_DATE + dt.timedelta(days=offset)


def _flight(direction, dep, arr) -> Flight:
    return Flight(id=f"f-{direction.value}", direction=direction, departure_time=dep, arrival_time=arr, price=120)


def _pool(n=8, minutes=90):
    return [attraction(f"a{i}", minutes, coordinates=near(0.002 * i, 0.001)) for i in range(n)]


@pytest.mark.parametrize(
    "day,total,expected",
    [
        (1, 1, DayType.SINGLE_DAY),
        (1, 3, DayType.ARRIVAL),
        (2, 3, DayType.FULL_DAY),
        (3, 3, DayType.DEPARTURE),
    ],
)
def test_classify_day(day, total, expected):
    assert classify_day(day, total) == expected


def test_single_day_has_lunch_but_no_lodging_or_dinner():
    ctx = make_context(1, accommodation=HOTEL)
    days, carryover = TripOrchestrator(ctx, {1: _pool(3)}).generate_trip()

    assert carryover is None
    (day,) = days
    assert day.day_type == DayType.SINGLE_DAY
    types = {i.type for i in day.items}
    assert TripItemType.CHECKIN not in types
    assert TripItemType.CHECKOUT not in types
    meals = [i.meal_type for i in day.items if i.type == TripItemType.RESTAURANT]
    assert meals == [MealType.LUNCH]


def test_single_day_ending_before_two_has_no_lunch():
    ctx = make_context(1, settings=PlannerSettings(day_end="13:30"))
    days, _ = TripOrchestrator(ctx, {1: _pool(3)}).generate_trip()
    assert not any(i.type == TripItemType.RESTAURANT for i in days[0].items)


def test_overnight_outbound_flight_scenario():
    outbound = _flight(LegDirection.OUTBOUND, at(_day(0), "23:00"), at(_day(1), "02:00"))
    ctx = make_context(3, outbound_flight=outbound, dest_airport=AIRPORT, accommodation=HOTEL)
    pool = _pool(6)
    days, leftover = TripOrchestrator(ctx, {1: pool[:2], 2: pool[2:4], 3: pool[4:]}).generate_trip()

    first, second = days[0], days[1]
    assert [i.type for i in first.items] == [TripItemType.CHECKIN, TripItemType.FLIGHT]
    assert second.day_type == DayType.OVERNIGHT_ARRIVAL
    assert [i.type for i in second.items[:2]] == [TripItemType.TRANSPORT, TripItemType.CHECKIN]
    checkin_end = second.items[1].slot.end
    assert all(a.slot.start >= checkin_end for a in second.activities())
    assert second.activities()
    assert leftover is None
    assert len(days) == 3


def test_attractions_are_never_repeated_across_days():
    pool = _pool(5)
    ctx = make_context(3, attraction_pool=pool)
    days, _ = TripOrchestrator(ctx, {1: pool, 2: pool, 3: pool}).generate_trip()

    ids = [i.attraction_id for d in days for i in d.activities()]
    assert ids
    assert len(ids) == len(set(ids))


def test_items_sorted_with_dense_indices_and_no_overlap():
    pool = _pool(9)
    ctx = make_context(3, accommodation=HOTEL, attraction_pool=pool)
    days, _ = TripOrchestrator(ctx, {1: pool[:3], 2: pool[3:6], 3: pool[6:]}).generate_trip()

    for day in days:
        assert [i.order_index for i in day.items] == list(range(len(day.items)))
        starts = [i.slot.start for i in day.items]
        assert starts == sorted(starts)
        for prev, cur in zip(day.items, day.items[1:]):
            assert prev.slot.end <= cur.slot.start


def test_dinner_only_before_the_last_day():
    ctx = make_context(3)
    days, _ = TripOrchestrator(ctx, {2: _pool(2)}).generate_trip()

    dinners = [d.day_number for d in days for i in d.items if i.meal_type == MealType.DINNER]
    assert 3 not in dinners
    assert 2 in dinners


def test_return_flight_bounds_last_day():
    back = _flight(LegDirection.RETURN, at(_day(2), "18:00"), at(_day(2), "20:00"))
    ctx = make_context(3, return_flight=back, dest_airport=AIRPORT, accommodation=HOTEL)
    days, leftover = TripOrchestrator(ctx, {3: _pool(4)}).generate_trip()

    last = days[-1]
    assert leftover is None
    flights = [i for i in last.items if i.leg == LegDirection.RETURN]
    assert len(flights) == 1
    checkout = next(i for i in last.items if i.type == TripItemType.CHECKOUT)
    for item in last.items:
        if item.type in (TripItemType.ACTIVITY, TripItemType.RESTAURANT):
            assert item.slot.end <= checkout.slot.start


def test_overnight_return_adds_homeward_day():
    back = _flight(LegDirection.RETURN, at(_day(2), "22:00"), at(_day(3), "06:00"))
    ctx = make_context(3, return_flight=back, accommodation=HOTEL)
    days, leftover = TripOrchestrator(ctx, {}).generate_trip()

    assert len(days) == 4
    assert not days[2].activities()
    home = days[3]
    assert home.day_type == DayType.OVERNIGHT_ARRIVAL
    assert [i.type for i in home.items] == [TripItemType.TRANSPORT]
    assert leftover is None


def test_clashing_return_leg_is_force_inserted():
    outbound = _flight(LegDirection.OUTBOUND, at(_day(0), "08:00"), at(_day(0), "10:00"))
    back = _flight(LegDirection.RETURN, at(_day(0), "09:00"), at(_day(0), "11:00"))
    ctx = make_context(1, outbound_flight=outbound, return_flight=back)
    days, _ = TripOrchestrator(ctx, {}).generate_trip()

    returns = [i for i in days[0].items if i.leg == LegDirection.RETURN]
    assert len(returns) == 1
    assert returns[0].type == TripItemType.FLIGHT


def test_single_day_with_overnight_outbound_still_gets_return_leg():
    outbound = _flight(LegDirection.OUTBOUND, at(_day(0), "23:00"), at(_day(1), "02:00"))
    back = _flight(LegDirection.RETURN, at(_day(0), "19:00"), at(_day(0), "20:00"))
    stream = io.StringIO()
    ctx = make_context(
        1,
        outbound_flight=outbound,
        return_flight=back,
        dest_airport=AIRPORT,
        logger=StructuredLogger(trace_id="t", output=stream),
    )
    days, leftover = TripOrchestrator(ctx, {1: _pool(2)}).generate_trip()

    assert len(days) == 1
    assert leftover is None
    returns = [i for i in days[0].items if i.leg == LegDirection.RETURN]
    assert len(returns) == 1
    assert "arrival dropped" in stream.getvalue()
