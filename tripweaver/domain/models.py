"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from tripweaver.domain.enums import (
    AccommodationKind,
    AdvisorQuestion,
    BudgetCategory,
    BudgetTier,
    Confidence,
    DataReliability,
    DayType,
    EnergyLevel,
    GroundMode,
    LegDirection,
    MealMode,
    MealStrategy,
    MealType,
    Severity,
    TripItemType,
)


class Coordinates(BaseModel):
    lat: float
    lng: float

    @model_validator(mode="after")
    def _check_range(self) -> "Coordinates":
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")
        return self

    def is_null_island(self) -> bool:
        return abs(self.lat) < 1e-6 and abs(self.lng) < 1e-6


class OpeningHours(BaseModel):
    open: str = "00:00"
    close: str = "23:59"


class TripPreferences(BaseModel):
    origin: str
    destination: str
    origin_coords: Optional[Coordinates] = None
    destination_coords: Optional[Coordinates] = None
    start_date: dt.date
    end_date: Optional[dt.date] = None
    duration_days: int = Field(default=1, ge=1)
    party_size: int = Field(default=1, ge=1)
    budget_tier: BudgetTier = BudgetTier.MODERATE
    budget_total: Optional[float] = Field(default=None, ge=0)
    interests: list[str] = Field(default_factory=list)
    must_include: str = ""
    dietary: list[str] = Field(default_factory=list)
    needs_parking: bool = False

    @model_validator(mode="after")
    def _sync_date_range(self) -> "TripPreferences":
        if self.end_date is not None:
            if self.end_date < self.start_date:
                raise ValueError("end_date must not precede start_date")
            self.duration_days = (self.end_date - self.start_date).days + 1
        else:
            self.end_date = self.start_date + dt.timedelta(days=self.duration_days - 1)
        return self

    @property
    def has_nightlife(self) -> bool:
        return any(tag.strip().lower() == "nightlife" for tag in self.interests)

    def date_for_day(self, day_number: int) -> dt.date:
        return self.start_date + dt.timedelta(days=day_number - 1)


class CandidateAttraction(BaseModel):
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    duration_minutes: int = 90
    estimated_cost: float = 0.0
    rating: Optional[float] = None
    opening_hours: Optional[OpeningHours] = None
    must_see: bool = False
    data_reliability: DataReliability = DataReliability.VERIFIED
    description: str = ""
    tags: list[str] = Field(default_factory=list)


class CandidateRestaurant(BaseModel):
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    price_level: int = Field(default=2, ge=1, le=4)
    rating: Optional[float] = None
    cuisine: list[str] = Field(default_factory=list)
    dietary_options: list[str] = Field(default_factory=list)
    meal_types: list[MealType] = Field(
        default_factory=lambda: [MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER]
    )
    opening_hours: Optional[OpeningHours] = None


class AirportInfo(BaseModel):
    code: str
    name: str = ""
    city: str = ""
    coordinates: Coordinates


class Flight(BaseModel):
    id: str
    flight_number: str = ""
    airline: str = ""
    direction: LegDirection = LegDirection.OUTBOUND
    departure_airport_code: str = ""
    arrival_airport_code: str = ""
    departure_city: str = ""
    arrival_city: str = ""
    departure_time: dt.datetime
    arrival_time: dt.datetime
    price: float = 0.0

    @property
    def is_overnight(self) -> bool:
        return self.arrival_time.date() > self.departure_time.date()


class TransportOption(BaseModel):
    id: str
    mode: GroundMode = GroundMode.TRAIN
    operator: str = ""
    total_duration_minutes: int = Field(default=120, gt=0)
    total_price: float = 0.0
    departure_time: Optional[str] = None
    return_departure_time: Optional[str] = None
    terminal_name: str = ""
    terminal_coords: Optional[Coordinates] = None


class Accommodation(BaseModel):
    id: str
    name: str
    kind: AccommodationKind = AccommodationKind.HOTEL
    coordinates: Optional[Coordinates] = None
    price_per_night: float = 0.0
    total_price: Optional[float] = None
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"
    breakfast_included: bool = False
    has_kitchen: bool = False

    def cost_for(self, nights: int) -> float:
        if self.total_price is not None:
            return float(self.total_price)
        return float(self.price_per_night) * max(nights, 0)


class ParkingOption(BaseModel):
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    distance_to_terminal_m: float = 0.0
    price_per_day: float = 0.0
    total_price: Optional[float] = None

    def cost_for(self, days: int) -> float:
        if self.total_price is not None:
            return float(self.total_price)
        return float(self.price_per_day) * max(days, 1)


class LuggageStorage(BaseModel):
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    price_per_bag: float = 0.0
    opening_hours: Optional[OpeningHours] = None


class GroceryStore(BaseModel):
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    opening_hours: Optional[OpeningHours] = None


class MealStrategyPlan(BaseModel):
    breakfast: MealStrategy = MealStrategy.RESTAURANT
    lunch: MealStrategy = MealStrategy.RESTAURANT
    dinner: MealStrategy = MealStrategy.RESTAURANT

    def for_meal(self, meal_type: MealType) -> MealStrategy:
        return getattr(self, meal_type.value)


class BudgetStrategy(BaseModel):
    accommodation_kind: AccommodationKind = AccommodationKind.HOTEL
    meals: MealStrategyPlan = Field(default_factory=MealStrategyPlan)
    grocery_shopping_needed: bool = False
    daily_activity_budget: Optional[float] = None
    max_price_per_activity: Optional[float] = None


class DayTripPlan(BaseModel):
    day_number: int = Field(ge=1)
    destination: str
    coordinates: Coordinates
    radius_km: float = 25.0


class ScheduleSlot(BaseModel):
    start: dt.datetime
    end: dt.datetime

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduleSlot":
        if self.start >= self.end:
            raise ValueError(f"slot start {self.start} must precede end {self.end}")
        return self

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "ScheduleSlot") -> bool:
        return self.start < other.end and other.start < self.end


class TripItem(BaseModel):
    id: str
    day_number: int
    slot: ScheduleSlot
    type: TripItemType
    title: str
    description: str = ""
    location_name: str = ""
    coordinates: Optional[Coordinates] = None
    estimated_cost: float = 0.0
    order_index: int = 0
    travel_minutes: int = 0
    attraction_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    meal_type: Optional[MealType] = None
    meal_mode: Optional[MealMode] = None
    leg: Optional[LegDirection] = None
    is_must_see: bool = False
    data_reliability: Optional[DataReliability] = None
    pair_id: Optional[str] = None

    @computed_field
    @property
    def start_time(self) -> str:
        return self.slot.start.strftime("%H:%M")

    @computed_field
    @property
    def end_time(self) -> str:
        return self.slot.end.strftime("%H:%M")

    @computed_field
    @property
    def duration_minutes(self) -> int:
        return self.slot.duration_minutes


class Day(BaseModel):
    day_number: int
    date: dt.date
    day_type: DayType
    items: list[TripItem] = Field(default_factory=list)
    theme: Optional[str] = None
    day_trip_destination: Optional[str] = None

    def activities(self) -> list[TripItem]:
        return [item for item in self.items if item.type == TripItemType.ACTIVITY]

    def reindex(self) -> None:
        """Sort by start time and assign dense order indices."""
        self.items.sort(key=lambda item: (item.slot.start, item.slot.end))
        for index, item in enumerate(self.items):
            item.order_index = index


class OvernightCarryover(BaseModel):
    leg: LegDirection
    arrival_time: dt.datetime
    flight: Optional[Flight] = None
    transport: Optional[TransportOption] = None
    dest_airport: Optional[AirportInfo] = None
    accommodation: Optional[Accommodation] = None


class AdvisorOption(BaseModel):
    id: str
    label: str
    duration_minutes: int = 0
    description: str = ""


class TravelerStateSummary(BaseModel):
    time: str
    location: str = ""
    available_hours: float = 0.0
    energy: EnergyLevel = EnergyLevel.FRESH
    meals: str = ""
    day_type: DayType = DayType.FULL_DAY
    pending_count: int = 0


class AdvisorRequest(BaseModel):
    question: AdvisorQuestion
    state: TravelerStateSummary
    options: list[AdvisorOption]
    constraints: list[str] = Field(default_factory=list)


class AdvisorResponse(BaseModel):
    chosen_id: str
    rationale: str = ""
    confidence: Confidence = Confidence.MEDIUM
    source: str = "fallback"


class LedgerEntry(BaseModel):
    committed: float = 0.0
    ceiling: float = 0.0

    @property
    def remaining(self) -> float:
        return self.ceiling - self.committed


class BudgetLedger(BaseModel):
    total: float
    entries: dict[BudgetCategory, LedgerEntry] = Field(default_factory=dict)
    rebalanced: bool = False


class ValidationIssue(BaseModel):
    code: str
    severity: Severity
    message: str
    day: Optional[int] = None
    suggestions: list[str] = Field(default_factory=list)


class RepairAction(BaseModel):
    code: str
    day: Optional[int] = None
    item_id: Optional[str] = None
    detail: str = ""


class TripResult(BaseModel):
    trace_id: str = ""
    destination: str
    days: list[Day] = Field(default_factory=list)
    cost_breakdown: dict[str, float] = Field(default_factory=dict)
    total_cost: float = 0.0
    advisor_calls: int = 0
    issues: list[ValidationIssue] = Field(default_factory=list)
    repair_actions: list[RepairAction] = Field(default_factory=list)
    carryover: Optional[OvernightCarryover] = None
