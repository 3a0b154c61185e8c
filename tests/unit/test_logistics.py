"""Arrival, departure and transfer logistics tests."""

import datetime as dt

import pytest
from helpers import START_DATE, at, make_context, near

from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import DayType, GroundMode, LegDirection, TripItemType
from tripweaver.domain.models import (
    Accommodation,
    AirportInfo,
    Flight,
    LuggageStorage,
    ParkingOption,
    TransportOption,
)
from tripweaver.planner.logistics import LogisticsHandler, local_transfer, parking_minutes
from tripweaver.planner.slot_allocator import SlotAllocator

HOTEL = Accommodation(id="h1", name="Hotel Tejo", coordinates=near(0.01, 0.01))
AIRPORT = AirportInfo(code="LIS", name="Lisbon Airport", city="Lisbon", coordinates=near(0.05, 0.02))


def _flight(dep: dt.datetime, arr: dt.datetime, direction=LegDirection.OUTBOUND) -> Flight:
    return Flight(id=f"f-{direction.value}", direction=direction, departure_time=dep, arrival_time=arr, price=150)


def _departure(ctx, day_type=DayType.ARRIVAL):
    handler = LogisticsHandler(ctx)
    start, end = handler.window_for_day(START_DATE, day_type, is_first_day=True, is_last_day=False)
    allocator = SlotAllocator(start, end)
    allocator.advance_to(ctx.day_start(START_DATE))
    return handler.handle_departure(allocator, START_DATE, 1, day_type), allocator


def test_parking_time_grows_per_500m():
    settings = PlannerSettings()
    assert parking_minutes(0, settings) == 15
    assert parking_minutes(400, settings) == 20
    assert parking_minutes(1200, settings) == 30


def test_local_transfer_has_floor_and_scales_with_party():
    settings = PlannerSettings()
    short = local_transfer(near(), near(0.001), settings)
    assert short.minutes == settings.transfer_min_minutes
    solo = local_transfer(near(), near(0.1, 0.1), settings, party_size=1)
    group = local_transfer(near(), near(0.1, 0.1), settings, party_size=5)
    assert group.cost == pytest.approx(solo.cost * 2, abs=0.02)


def test_overnight_outbound_defers_arrival():
    flight = _flight(at(START_DATE, "23:00"), at(START_DATE + dt.timedelta(days=1), "02:00"))
    ctx = make_context(3, outbound_flight=flight, dest_airport=AIRPORT, accommodation=HOTEL)

    result, _ = _departure(ctx)

    assert [i.type for i in result.items] == [TripItemType.CHECKIN, TripItemType.FLIGHT]
    assert result.carryover is not None
    assert result.carryover.leg == LegDirection.OUTBOUND
    assert result.carryover.arrival_time == flight.arrival_time
    assert not result.arrived


def test_overnight_arrival_day_starts_with_transfer_and_check_in():
    flight = _flight(at(START_DATE, "23:00"), at(START_DATE + dt.timedelta(days=1), "02:00"))
    ctx = make_context(3, outbound_flight=flight, dest_airport=AIRPORT, accommodation=HOTEL)
    first, _ = _departure(ctx)
    day2 = START_DATE + dt.timedelta(days=1)

    handler = LogisticsHandler(ctx)
    start, end = handler.window_for_day(
        day2, DayType.OVERNIGHT_ARRIVAL, is_first_day=False, is_last_day=False, carryover=first.carryover
    )
    allocator = SlotAllocator(start, end)
    result = handler.handle_overnight_arrival(allocator, day2, 2, first.carryover, DayType.OVERNIGHT_ARRIVAL)

    assert [i.type for i in result.items] == [TripItemType.TRANSPORT, TripItemType.CHECKIN]
    assert result.items[0].start_time == "02:30"
    assert result.activities_start == at(day2, "08:00")


def test_late_arrival_goes_straight_to_the_hotel():
    flight = _flight(at(START_DATE, "20:00"), at(START_DATE, "23:00"))
    ctx = make_context(3, outbound_flight=flight, dest_airport=AIRPORT, accommodation=HOTEL)

    result, allocator = _departure(ctx)

    assert result.items[-1].type == TripItemType.CHECKIN
    assert allocator.cursor == allocator.day_end
    assert ctx.advisor.calls == 0


def test_early_train_uses_luggage_storage_pair():
    train = TransportOption(
        id="t1",
        mode=GroundMode.TRAIN,
        total_duration_minutes=60,
        departure_time="08:00",
        terminal_name="Santa Apolonia",
        terminal_coords=near(0.005, 0.01),
    )
    storage = LuggageStorage(id="l1", name="Bag Depot", coordinates=near(0.006, 0.01), price_per_bag=5)
    ctx = make_context(3, ground_transport=train, accommodation=HOTEL, luggage_storage=storage)

    result, _ = _departure(ctx)

    luggage = [i for i in result.items if i.type == TripItemType.LUGGAGE]
    assert len(luggage) == 2
    drop, pickup = luggage
    assert drop.pair_id == pickup.pair_id
    assert drop.slot.end <= pickup.slot.start
    checkin = next(i for i in result.items if i.type == TripItemType.CHECKIN)
    assert checkin.start_time == "15:00"
    assert result.activities_start == drop.slot.end


def test_without_storage_bags_stay_at_reception():
    train = TransportOption(id="t1", total_duration_minutes=60, departure_time="08:00", terminal_coords=near(0.005))
    ctx = make_context(3, ground_transport=train, accommodation=HOTEL)

    result, _ = _departure(ctx)

    types = [i.type for i in result.items]
    assert TripItemType.HOTEL in types
    assert TripItemType.LUGGAGE not in types


def test_parking_before_flight_when_driving_to_airport():
    flight = _flight(at(START_DATE, "12:00"), at(START_DATE, "14:00"))
    parking = ParkingOption(id="p1", name="P3", distance_to_terminal_m=900, price_per_day=12)
    prefs_ctx = make_context(3)
    prefs = prefs_ctx.preferences.model_copy(update={"needs_parking": True})
    ctx = make_context(3, prefs=prefs, outbound_flight=flight, parking=parking, origin_airport=AIRPORT)

    result, _ = _departure(ctx)

    parking_item = next(i for i in result.items if i.type == TripItemType.PARKING)
    assert parking_item.duration_minutes == 25
    assert parking_item.end_time == "10:00"
    assert parking_item.estimated_cost == 36


def test_return_constraints_leave_buffer_before_checkout():
    flight = _flight(at(START_DATE, "18:00"), at(START_DATE, "20:00"), LegDirection.RETURN)
    ctx = make_context(3, return_flight=flight, dest_airport=AIRPORT, accommodation=HOTEL)
    handler = LogisticsHandler(ctx)

    constraints = handler.get_return_constraints(START_DATE, DayType.DEPARTURE)

    assert constraints.leg_departure == flight.departure_time
    assert not constraints.overnight
    assert constraints.latest_activity_end < at(START_DATE, "16:00")


def test_overnight_return_leaves_no_activity_time():
    flight = _flight(at(START_DATE, "22:00"), at(START_DATE + dt.timedelta(days=1), "06:00"), LegDirection.RETURN)
    ctx = make_context(3, return_flight=flight, accommodation=HOTEL)
    constraints = LogisticsHandler(ctx).get_return_constraints(START_DATE, DayType.DEPARTURE)
    assert constraints.overnight
    assert constraints.latest_activity_end == ctx.day_start(START_DATE)
