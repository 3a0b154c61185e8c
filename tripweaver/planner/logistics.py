"""Arrival / departure / overnight-carryover logistics.

The handler plans each leg as a pure timeline first (``PlannedLeg``), which
lets ``window_for_day`` and ``get_return_constraints`` answer questions
without touching an allocator. The ``handle_*`` methods then pin the legs
with fixed-time insertion.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from typing import Optional

from tripweaver.advisor.interfaces import describe_meals
from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import (
    AdvisorQuestion,
    BudgetCategory,
    DayType,
    GroundMode,
    LegDirection,
    TripItemType,
)
from tripweaver.domain.models import (
    AdvisorOption,
    AdvisorRequest,
    Coordinates,
    OvernightCarryover,
    ScheduleSlot,
    TravelerStateSummary,
    TripItem,
)
from tripweaver.planner.clock import add_minutes, fmt_clock, minutes_between, parse_clock
from tripweaver.planner.context import PlannerContext
from tripweaver.planner.distance import distance_km
from tripweaver.planner.slot_allocator import SlotAllocator

# beyond this the origin->terminal leg is an intercity drive
_INTERCITY_KM = 50.0


@dataclass(frozen=True)
class Transfer:
    minutes: int
    cost: float
    distance_km: float


@dataclass(frozen=True)
class PlannedLeg:
    item_type: TripItemType
    start: dt.datetime
    end: dt.datetime
    title: str
    description: str = ""
    location_name: str = ""
    coordinates: Optional[Coordinates] = None
    cost: float = 0.0
    # category to debit when placed; None for costs committed upfront
    debit: Optional[BudgetCategory] = None
    leg: Optional[LegDirection] = None
    pair_id: Optional[str] = None
    mandatory: bool = False


@dataclass
class LogisticsResult:
    items: list[TripItem] = field(default_factory=list)
    activities_start: Optional[dt.datetime] = None
    activities_end: Optional[dt.datetime] = None
    arrived: bool = True
    carryover: Optional[OvernightCarryover] = None
    missing_leg: bool = False


@dataclass(frozen=True)
class ReturnConstraints:
    latest_activity_end: dt.datetime
    leg_departure: Optional[dt.datetime] = None
    overnight: bool = False


def parking_minutes(distance_to_terminal_m: float, settings: PlannerSettings) -> int:
    """Park, walk or shuttle to the terminal."""
    steps = math.ceil(max(distance_to_terminal_m, 0.0) / 500.0)
    return settings.parking_base_minutes + steps * settings.parking_minutes_per_500m


def local_transfer(
    origin: Coordinates,
    target: Coordinates,
    settings: PlannerSettings,
    party_size: int = 1,
) -> Transfer:
    """Taxi-style transfer sized from the great-circle distance."""
    km = distance_km(origin, target) * settings.road_factor
    minutes = max(
        settings.transfer_min_minutes,
        math.ceil(km / settings.local_speed_kmh * 60) + settings.transfer_overhead_minutes,
    )
    vehicles = math.ceil(max(party_size, 1) / settings.taxi_capacity)
    cost = (settings.taxi_base_fare + settings.taxi_per_km * km) * vehicles
    return Transfer(minutes=minutes, cost=round(cost, 2), distance_km=round(km, 1))


def intercity_transfer(origin: Coordinates, target: Coordinates, settings: PlannerSettings) -> Transfer:
    km = distance_km(origin, target) * settings.road_factor
    minutes = max(60, math.ceil(km / settings.intercity_speed_kmh * 60) + 2 * settings.transfer_overhead_minutes)
    return Transfer(minutes=minutes, cost=round(km * 0.15, 2), distance_km=round(km, 1))


class LogisticsHandler:
    def __init__(self, context: PlannerContext):
        self.ctx = context
        self.settings = context.settings

    # ── timelines ────────────────────────────────────────────

    def _outbound_legs(self, day: dt.date) -> list[PlannedLeg]:
        ctx, s = self.ctx, self.settings
        legs: list[PlannedLeg] = []
        flight = ctx.outbound_flight
        if flight is not None:
            dep = flight.departure_time
            at_terminal = add_minutes(dep, -s.airport_arrival_buffer_minutes)
            cursor = at_terminal
            airport = ctx.origin_airport
            if ctx.parking is not None and ctx.preferences.needs_parking:
                park = parking_minutes(ctx.parking.distance_to_terminal_m, s)
                cursor = add_minutes(at_terminal, -park)
                legs.append(PlannedLeg(
                    item_type=TripItemType.PARKING,
                    start=cursor,
                    end=at_terminal,
                    title=f"Park at {ctx.parking.name}",
                    description=f"{park} min including the walk or shuttle to the terminal",
                    location_name=ctx.parking.name,
                    coordinates=ctx.parking.coordinates or (airport.coordinates if airport else None),
                    cost=ctx.parking.cost_for(ctx.total_days),
                ))
            if ctx.origin_coords is not None and airport is not None:
                transfer = self._origin_transfer(ctx.origin_coords, airport.coordinates, airport.city)
                legs.insert(0, PlannedLeg(
                    item_type=TripItemType.TRANSPORT,
                    start=add_minutes(cursor, -transfer.minutes),
                    end=cursor,
                    title=f"{ctx.preferences.origin} → {airport.name or airport.code}",
                    description=f"{transfer.distance_km} km",
                    location_name=airport.name or airport.code,
                    coordinates=airport.coordinates,
                    cost=transfer.cost,
                    debit=BudgetCategory.TRANSPORT,
                ))
            legs.append(PlannedLeg(
                item_type=TripItemType.CHECKIN,
                start=at_terminal,
                end=add_minutes(dep, -s.checkin_close_minutes),
                title="Airport check-in and security",
                location_name=airport.name if airport else flight.departure_airport_code,
                coordinates=airport.coordinates if airport else None,
            ))
            legs.append(self._flight_leg(flight, LegDirection.OUTBOUND))
            return legs

        transport = ctx.ground_transport
        if transport is not None:
            dep = parse_clock(day, transport.departure_time or s.ground_departure_time)
            if transport.mode != GroundMode.CAR:
                at_terminal = add_minutes(dep, -s.station_arrival_buffer_minutes)
                if ctx.parking is not None and ctx.preferences.needs_parking:
                    park = parking_minutes(ctx.parking.distance_to_terminal_m, s)
                    legs.append(PlannedLeg(
                        item_type=TripItemType.PARKING,
                        start=add_minutes(at_terminal, -park),
                        end=at_terminal,
                        title=f"Park at {ctx.parking.name}",
                        location_name=ctx.parking.name,
                        coordinates=ctx.parking.coordinates,
                        cost=ctx.parking.cost_for(ctx.total_days),
                    ))
            legs.append(self._ground_leg(transport, dep, LegDirection.OUTBOUND))
        return legs

    def _return_legs(self, day: dt.date, include_lodging: bool) -> list[PlannedLeg]:
        ctx, s = self.ctx, self.settings
        legs: list[PlannedLeg] = []
        flight = ctx.return_flight
        transport = ctx.ground_transport if flight is None else None
        if flight is None and transport is None:
            return legs

        if flight is not None:
            dep = flight.departure_time
            at_terminal = add_minutes(dep, -s.airport_arrival_buffer_minutes)
            terminal = ctx.dest_airport.coordinates if ctx.dest_airport else None
            terminal_name = ctx.dest_airport.name if ctx.dest_airport else flight.departure_airport_code
            main = self._flight_leg(flight, LegDirection.RETURN)
            arrival = flight.arrival_time
            overnight = flight.is_overnight
        else:
            dep = parse_clock(day, transport.return_departure_time or s.ground_return_time)
            at_terminal = add_minutes(dep, -s.station_arrival_buffer_minutes)
            terminal = transport.terminal_coords
            terminal_name = transport.terminal_name or f"{ctx.preferences.destination} station"
            main = self._ground_leg(transport, dep, LegDirection.RETURN)
            arrival = main.end
            overnight = arrival.date() > dep.date()
            if transport.mode == GroundMode.CAR:
                # the car leaves from the lodging itself
                at_terminal = dep
                terminal = None

        leave_at = at_terminal
        if terminal is not None:
            transfer = local_transfer(ctx.lodging_coords, terminal, s, ctx.party_size)
            leave_at = add_minutes(at_terminal, -transfer.minutes)
            legs.append(PlannedLeg(
                item_type=TripItemType.TRANSPORT,
                start=leave_at,
                end=at_terminal,
                title=f"Transfer to {terminal_name}",
                description=f"{transfer.distance_km} km",
                location_name=terminal_name,
                coordinates=terminal,
                cost=transfer.cost,
                debit=BudgetCategory.TRANSPORT,
            ))
        if include_lodging and ctx.accommodation is not None:
            legs.insert(0, PlannedLeg(
                item_type=TripItemType.CHECKOUT,
                start=add_minutes(leave_at, -s.checkout_minutes),
                end=leave_at,
                title=f"Check-out: {ctx.accommodation.name}",
                location_name=ctx.accommodation.name,
                coordinates=ctx.lodging_coords,
            ))
        if flight is not None:
            legs.append(PlannedLeg(
                item_type=TripItemType.CHECKIN,
                start=at_terminal,
                end=add_minutes(dep, -s.checkin_close_minutes),
                title="Airport check-in and security",
                location_name=terminal_name,
                coordinates=terminal,
            ))
        legs.append(main)

        uses_parking = ctx.parking is not None and ctx.preferences.needs_parking
        if transport is not None and transport.mode == GroundMode.CAR:
            uses_parking = False
        if uses_parking and not overnight:
            pickup_start = add_minutes(arrival, s.deplane_minutes)
            legs.append(PlannedLeg(
                item_type=TripItemType.PARKING,
                start=pickup_start,
                end=add_minutes(pickup_start, 30),
                title=f"Collect car: {ctx.parking.name}",
                location_name=ctx.parking.name,
                coordinates=ctx.parking.coordinates,
            ))
        return legs

    def _flight_leg(self, flight, direction: LegDirection) -> PlannedLeg:
        return PlannedLeg(
            item_type=TripItemType.FLIGHT,
            start=flight.departure_time,
            end=flight.arrival_time,
            title=f"Flight {flight.flight_number} {flight.departure_city} → {flight.arrival_city}".strip(),
            description=f"{flight.departure_airport_code} → {flight.arrival_airport_code}",
            location_name=flight.departure_airport_code,
            coordinates=self._flight_origin_coords(direction),
            cost=flight.price,
            leg=direction,
            mandatory=True,
        )

    def _ground_leg(self, transport, dep: dt.datetime, direction: LegDirection) -> PlannedLeg:
        ctx = self.ctx
        if direction == LegDirection.OUTBOUND:
            title = f"{transport.mode.value.title()} {ctx.preferences.origin} → {ctx.preferences.destination}"
            coords = ctx.origin_coords
        else:
            title = f"{transport.mode.value.title()} {ctx.preferences.destination} → {ctx.preferences.origin}"
            coords = transport.terminal_coords or ctx.lodging_coords
        return PlannedLeg(
            item_type=TripItemType.TRANSPORT,
            start=dep,
            end=add_minutes(dep, transport.total_duration_minutes),
            title=title,
            description=transport.operator,
            location_name=transport.terminal_name,
            coordinates=coords,
            cost=transport.total_price,
            leg=direction,
            mandatory=True,
        )

    def _flight_origin_coords(self, direction: LegDirection) -> Optional[Coordinates]:
        airport = self.ctx.origin_airport if direction == LegDirection.OUTBOUND else self.ctx.dest_airport
        return airport.coordinates if airport else None

    def _origin_transfer(self, origin: Coordinates, terminal: Coordinates, terminal_city: str) -> Transfer:
        same_city = terminal_city and terminal_city.strip().lower() == self.ctx.preferences.origin.strip().lower()
        if not same_city and distance_km(origin, terminal) > _INTERCITY_KM:
            return intercity_transfer(origin, terminal, self.settings)
        return local_transfer(origin, terminal, self.settings, self.ctx.party_size)

    # ── windows and constraints ───────────────────────────────

    def window_for_day(
        self,
        day: dt.date,
        day_type: DayType,
        *,
        is_first_day: bool,
        is_last_day: bool,
        carryover: Optional[OvernightCarryover] = None,
    ) -> tuple[dt.datetime, dt.datetime]:
        """Day bounds widened to cover every logistics leg that day."""
        start = self.ctx.day_start(day)
        end = self.ctx.day_end(day)
        legs: list[PlannedLeg] = []
        if is_first_day:
            legs.extend(self._outbound_legs(day))
        if is_last_day:
            legs.extend(self._return_legs(day, day_type != DayType.SINGLE_DAY))
        if legs:
            start = min(start, min(leg.start for leg in legs))
            latest = max(leg.end for leg in legs)
            # room for the arrival transfer and check-in after a late leg
            end = max(end, add_minutes(latest, 180))
        if carryover is not None:
            start = min(start, carryover.arrival_time)
        return start, end

    def get_return_constraints(self, day: dt.date, day_type: DayType) -> ReturnConstraints:
        legs = self._return_legs(day, day_type != DayType.SINGLE_DAY)
        if not legs:
            return ReturnConstraints(latest_activity_end=self.ctx.day_end(day))
        main = next(leg for leg in legs if leg.mandatory)
        overnight = main.end.date() > main.start.date()
        latest = add_minutes(legs[0].start, -self.settings.lodging_return_buffer_minutes)
        if overnight:
            latest = self.ctx.day_start(day)
        return ReturnConstraints(latest_activity_end=latest, leg_departure=main.start, overnight=overnight)

    # ── placement ─────────────────────────────────────────────

    def _place(self, allocator: SlotAllocator, day_number: int, leg: PlannedLeg) -> Optional[TripItem]:
        slot = allocator.insert_fixed_item(leg.start, leg.end, kind=leg.item_type.value, label=leg.title)
        if slot is None:
            self.ctx.logger.warning(
                "logistics",
                f"could not place {leg.item_type.value} '{leg.title}' at {fmt_clock(leg.start)}",
                day=day_number,
            )
            return None
        if leg.debit is not None and leg.cost > 0:
            # mandatory legs are booked whatever the ceiling says
            self.ctx.budget.spend(leg.debit, leg.cost)
        return self._to_item(day_number, slot, leg)

    def _to_item(self, day_number: int, slot: ScheduleSlot, leg: PlannedLeg) -> TripItem:
        return self.ctx.make_item(
            day_number,
            slot,
            leg.item_type,
            leg.title,
            description=leg.description,
            location_name=leg.location_name,
            coordinates=leg.coordinates,
            estimated_cost=round(leg.cost, 2),
            leg=leg.leg,
            pair_id=leg.pair_id,
        )

    def handle_departure(
        self,
        allocator: SlotAllocator,
        day: dt.date,
        day_number: int,
        day_type: DayType,
    ) -> LogisticsResult:
        """Outbound leg of day 1 and, when not overnight, the arrival at the lodging."""
        ctx = self.ctx
        include_lodging = day_type != DayType.SINGLE_DAY
        legs = self._outbound_legs(day)
        if not legs:
            result = LogisticsResult(activities_start=allocator.day_start, activities_end=allocator.day_end)
            if include_lodging and ctx.accommodation is not None:
                check_in = parse_clock(day, ctx.accommodation.check_in_time)
                item = self._place(allocator, day_number, PlannedLeg(
                    item_type=TripItemType.CHECKIN,
                    start=check_in,
                    end=add_minutes(check_in, self.settings.hotel_checkin_minutes),
                    title=f"Check-in: {ctx.accommodation.name}",
                    location_name=ctx.accommodation.name,
                    coordinates=ctx.lodging_coords,
                ))
                if item is not None:
                    result.items.append(item)
            return result

        result = LogisticsResult()
        main_leg: Optional[PlannedLeg] = None
        for leg in legs:
            item = self._place(allocator, day_number, leg)
            if leg.mandatory:
                main_leg = leg
                if item is None:
                    # infeasible outbound: no activity window at all
                    result.activities_start = result.activities_end = allocator.day_end
                    result.arrived = False
                    return result
            if item is not None:
                result.items.append(item)

        arrival = main_leg.end
        if arrival.date() > main_leg.start.date():
            result.carryover = OvernightCarryover(
                leg=LegDirection.OUTBOUND,
                arrival_time=arrival,
                flight=ctx.outbound_flight,
                transport=ctx.ground_transport if ctx.outbound_flight is None else None,
                dest_airport=ctx.dest_airport,
                accommodation=ctx.accommodation,
            )
            result.arrived = False
            result.activities_start = result.activities_end = allocator.day_end
            return result

        items, activities_start = self._place_arrival(
            allocator, day, day_number, arrival, day_type, include_lodging=include_lodging
        )
        result.items.extend(items)
        allocator.advance_to(activities_start)
        result.activities_start = activities_start
        result.activities_end = allocator.day_end
        return result

    def handle_overnight_arrival(
        self,
        allocator: SlotAllocator,
        day: dt.date,
        day_number: int,
        carryover: OvernightCarryover,
        day_type: DayType,
    ) -> LogisticsResult:
        """Consume the previous day's carryover before anything else is planned."""
        if carryover.leg == LegDirection.RETURN:
            return self._place_home_arrival(allocator, day_number, carryover)

        items, ready = self._place_arrival(
            allocator,
            day,
            day_number,
            carryover.arrival_time,
            day_type,
            include_lodging=day_type != DayType.SINGLE_DAY,
            overnight=True,
        )
        # the night was spent travelling: nothing before the normal day start
        activities_start = max(ready, self.ctx.day_start(day))
        allocator.advance_to(activities_start)
        return LogisticsResult(items=items, activities_start=activities_start, activities_end=allocator.day_end)

    def _place_home_arrival(
        self,
        allocator: SlotAllocator,
        day_number: int,
        carryover: OvernightCarryover,
    ) -> LogisticsResult:
        ctx, s = self.ctx, self.settings
        result = LogisticsResult(arrived=True)
        start = add_minutes(carryover.arrival_time, s.deplane_minutes)
        if ctx.parking is not None and ctx.preferences.needs_parking:
            leg = PlannedLeg(
                item_type=TripItemType.PARKING,
                start=start,
                end=add_minutes(start, 30),
                title=f"Collect car: {ctx.parking.name}",
                location_name=ctx.parking.name,
                coordinates=ctx.parking.coordinates,
            )
        else:
            airport = ctx.origin_airport
            minutes, cost = 45, 0.0
            if airport is not None and ctx.origin_coords is not None:
                transfer = self._origin_transfer(airport.coordinates, ctx.origin_coords, airport.city)
                minutes, cost = transfer.minutes, transfer.cost
            leg = PlannedLeg(
                item_type=TripItemType.TRANSPORT,
                start=start,
                end=add_minutes(start, minutes),
                title=f"Transfer home to {ctx.preferences.origin}",
                location_name=ctx.preferences.origin,
                coordinates=ctx.origin_coords,
                cost=cost,
                debit=BudgetCategory.TRANSPORT,
            )
        item = self._place(allocator, day_number, leg)
        if item is not None:
            result.items.append(item)
        result.activities_start = result.activities_end = allocator.day_end
        return result

    def _place_arrival(
        self,
        allocator: SlotAllocator,
        day: dt.date,
        day_number: int,
        arrival: dt.datetime,
        day_type: DayType,
        *,
        include_lodging: bool,
        overnight: bool = False,
    ) -> tuple[list[TripItem], dt.datetime]:
        """Terminal → lodging transfer plus the check-in variant; returns (items, ready time)."""
        ctx, s = self.ctx, self.settings
        items: list[TripItem] = []
        drives_to_lodging = (
            ctx.outbound_flight is None
            and ctx.ground_transport is not None
            and ctx.ground_transport.mode == GroundMode.CAR
        )
        if ctx.outbound_flight is not None:
            arrival_point = ctx.dest_airport.coordinates if ctx.dest_airport else None
            point_name = ctx.dest_airport.name if ctx.dest_airport else "airport"
            ready = add_minutes(arrival, s.deplane_minutes)
        else:
            transport = ctx.ground_transport
            arrival_point = transport.terminal_coords if transport else None
            point_name = (transport.terminal_name if transport else "") or f"{ctx.preferences.destination} station"
            ready = add_minutes(arrival, 10)

        lodging = ctx.accommodation if include_lodging else None
        check_in_at = parse_clock(day, lodging.check_in_time) if lodging is not None else None
        target = ctx.lodging_coords if include_lodging else ctx.center_for_day(day_number)
        target_name = ctx.lodging_name if include_lodging else ctx.preferences.destination

        transfer = None
        if arrival_point is not None and not drives_to_lodging:
            transfer = local_transfer(arrival_point, target, s, ctx.party_size)

        use_storage = False
        if lodging is not None and check_in_at is not None and not overnight:
            estimated_ready = add_minutes(ready, transfer.minutes if transfer else 0)
            early_by = minutes_between(estimated_ready, check_in_at)
            use_storage = (
                early_by > s.early_checkin_threshold_minutes
                and ctx.luggage_storage is not None
                and ctx.luggage_storage.coordinates is not None
            )
            if use_storage and arrival_point is not None and not drives_to_lodging:
                target = ctx.luggage_storage.coordinates
                target_name = ctx.luggage_storage.name
                transfer = local_transfer(arrival_point, target, s, ctx.party_size)

        cursor = ready
        if transfer is not None:
            item = self._place(allocator, day_number, PlannedLeg(
                item_type=TripItemType.TRANSPORT,
                start=ready,
                end=add_minutes(ready, transfer.minutes),
                title=f"{point_name} → {target_name}",
                description=f"{transfer.distance_km} km",
                location_name=target_name,
                coordinates=target,
                cost=transfer.cost,
                debit=BudgetCategory.TRANSPORT,
            ))
            if item is not None:
                items.append(item)
                cursor = item.slot.end

        if lodging is None:
            return items, cursor

        if not overnight and self._ask_late_arrival(day_type, arrival, cursor):
            items.extend(self._place_checkin(allocator, day_number, cursor, "Check-in", s.hotel_checkin_minutes))
            return items, allocator.day_end

        if overnight or cursor >= check_in_at:
            placed = self._place_checkin(allocator, day_number, cursor, "Check-in", s.hotel_checkin_minutes)
            items.extend(placed)
            return items, placed[-1].slot.end if placed else cursor

        early_by = minutes_between(cursor, check_in_at)
        if early_by <= s.early_checkin_threshold_minutes:
            placed = self._place_checkin(allocator, day_number, cursor, "Early check-in", s.hotel_checkin_minutes)
            items.extend(placed)
            return items, placed[-1].slot.end if placed else cursor

        return self._place_luggage_drop(allocator, day_number, cursor, check_in_at, use_storage, items)

    def _place_checkin(
        self,
        allocator: SlotAllocator,
        day_number: int,
        start: dt.datetime,
        label: str,
        minutes: int,
    ) -> list[TripItem]:
        lodging = self.ctx.accommodation
        item = self._place(allocator, day_number, PlannedLeg(
            item_type=TripItemType.CHECKIN,
            start=start,
            end=add_minutes(start, minutes),
            title=f"{label}: {lodging.name}",
            location_name=lodging.name,
            coordinates=self.ctx.lodging_coords,
        ))
        return [item] if item is not None else []

    def _place_luggage_drop(
        self,
        allocator: SlotAllocator,
        day_number: int,
        ready: dt.datetime,
        check_in_at: dt.datetime,
        use_storage: bool,
        items: list[TripItem],
    ) -> tuple[list[TripItem], dt.datetime]:
        """More than the early-check-in threshold ahead: drop bags, check in later."""
        ctx, s = self.ctx, self.settings
        drop_end = add_minutes(ready, s.luggage_drop_minutes)
        if use_storage:
            storage = ctx.luggage_storage
            pair_id = f"luggage-{day_number}"
            fee = storage.price_per_bag * ctx.party_size
            drop = self._place(allocator, day_number, PlannedLeg(
                item_type=TripItemType.LUGGAGE,
                start=ready,
                end=drop_end,
                title=f"Drop luggage: {storage.name}",
                location_name=storage.name,
                coordinates=storage.coordinates,
                cost=fee,
                debit=BudgetCategory.OTHER,
                pair_id=pair_id,
            ))
            pickup = None
            if drop is not None:
                pickup_start = add_minutes(check_in_at, -s.luggage_pickup_lead_minutes)
                pickup = self._place(allocator, day_number, PlannedLeg(
                    item_type=TripItemType.LUGGAGE,
                    start=pickup_start,
                    end=add_minutes(pickup_start, s.luggage_drop_minutes),
                    title=f"Collect luggage: {storage.name}",
                    location_name=storage.name,
                    coordinates=storage.coordinates,
                    pair_id=pair_id,
                ))
            if drop is not None and pickup is not None:
                items.extend([drop, pickup])
                items.extend(self._place_checkin(
                    allocator, day_number, check_in_at, "Check-in", s.hotel_checkin_minutes
                ))
                return items, drop_end
            if drop is not None:
                # a drop without its pickup is worse than leaving bags at reception
                allocator.release(drop.slot)
                ctx.budget.spend(BudgetCategory.OTHER, -fee)
                ctx.logger.warning("logistics", "luggage pickup could not be placed", day=day_number)

        drop = self._place(allocator, day_number, PlannedLeg(
            item_type=TripItemType.HOTEL,
            start=ready,
            end=drop_end,
            title=f"Leave luggage at reception: {ctx.accommodation.name}",
            location_name=ctx.accommodation.name,
            coordinates=ctx.lodging_coords,
        ))
        if drop is not None:
            items.append(drop)

        items.extend(self._place_checkin(allocator, day_number, check_in_at, "Check-in", s.hotel_checkin_minutes))
        return items, drop_end

    def _ask_late_arrival(
        self,
        day_type: DayType,
        arrival: dt.datetime,
        ready: dt.datetime,
    ) -> bool:
        """True when the advisor sends the traveller straight to bed."""
        if self.settings.early_morning_hour <= arrival.hour < self.settings.late_arrival_hour:
            return False
        available_hours = max(0.0, minutes_between(ready, self.ctx.day_end(arrival.date()))) / 60
        request = AdvisorRequest(
            question=AdvisorQuestion.LATE_ARRIVAL,
            state=TravelerStateSummary(
                time=fmt_clock(ready),
                location=self.ctx.preferences.destination,
                available_hours=round(available_hours, 2),
                meals=describe_meals(False, False, False),
                day_type=day_type,
            ),
            options=[
                AdvisorOption(id="hotel", label="Go straight to the hotel", duration_minutes=20),
                AdvisorOption(id="dinner", label="Late dinner near the hotel", duration_minutes=60),
                AdvisorOption(id="walk", label="Short evening walk", duration_minutes=45),
            ],
            constraints=["luggage is still with the traveller"],
        )
        return self.ctx.advisor.advise(request).chosen_id == "hotel"

    def handle_return(
        self,
        allocator: SlotAllocator,
        day: dt.date,
        day_number: int,
        day_type: DayType,
    ) -> LogisticsResult:
        """Checkout, transfer, return leg and same-day parking pickup."""
        legs = self._return_legs(day, day_type != DayType.SINGLE_DAY)
        result = LogisticsResult(activities_start=allocator.cursor, activities_end=allocator.day_end)
        if not legs:
            return result
        for leg in legs:
            item = self._place(allocator, day_number, leg)
            if item is None:
                if leg.mandatory:
                    result.missing_leg = True
                continue
            result.items.append(item)
            if leg.mandatory and leg.end.date() > leg.start.date():
                flight = self.ctx.return_flight
                result.carryover = OvernightCarryover(
                    leg=LegDirection.RETURN,
                    arrival_time=leg.end,
                    flight=flight,
                    transport=self.ctx.ground_transport if flight is None else None,
                    dest_airport=self.ctx.origin_airport,
                    accommodation=None,
                )
        constraints = self.get_return_constraints(day, day_type)
        result.activities_end = constraints.latest_activity_end
        return result

    def synthesize_return_leg(self, day: dt.date, day_number: int, day_type: DayType) -> Optional[TripItem]:
        """Build the return-leg item straight from the booking, bypassing the allocator."""
        legs = self._return_legs(day, day_type != DayType.SINGLE_DAY)
        main = next((leg for leg in legs if leg.mandatory), None)
        if main is None:
            return None
        return self._to_item(day_number, ScheduleSlot(start=main.start, end=main.end), main)
