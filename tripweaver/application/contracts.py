"""Application request contract."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from tripweaver.domain.enums import LegDirection
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
    TransportOption,
    TripPreferences,
)


class PlanRequest(BaseModel):
    """Preferences plus the already-ranked collaborator outputs for one trip."""

    preferences: TripPreferences
    city_center: Optional[Coordinates] = None
    attractions: list[CandidateAttraction] = Field(default_factory=list)
    attractions_by_day: Optional[dict[int, list[CandidateAttraction]]] = None
    restaurants: list[CandidateRestaurant] = Field(default_factory=list)
    flights: list[Flight] = Field(default_factory=list)
    transport: Optional[TransportOption] = None
    accommodation: Optional[Accommodation] = None
    parking: Optional[ParkingOption] = None
    luggage_storages: list[LuggageStorage] = Field(default_factory=list)
    grocery_stores: list[GroceryStore] = Field(default_factory=list)
    origin_airport: Optional[AirportInfo] = None
    dest_airport: Optional[AirportInfo] = None
    budget_strategy: Optional[BudgetStrategy] = None
    day_trips: list[DayTripPlan] = Field(default_factory=list)
    geocoded: dict[str, Coordinates] = Field(default_factory=dict)
    trace_id: Optional[str] = Field(default=None, max_length=64)

    def flight_for(self, direction: LegDirection) -> Optional[Flight]:
        return next((f for f in self.flights if f.direction == direction), None)

    def resolved_center(self) -> Optional[Coordinates]:
        return self.city_center or self.preferences.destination_coords
