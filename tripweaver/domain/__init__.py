"""Domain package exports."""

from tripweaver.domain.enums import (
    AdvisorQuestion,
    BudgetCategory,
    BudgetTier,
    DayType,
    LegDirection,
    MealMode,
    MealType,
    Severity,
    TripItemType,
)
from tripweaver.domain.exceptions import (
    AdvisorError,
    DomainError,
    InvalidTripRequest,
    NoFeasibleItinerary,
)
from tripweaver.domain.models import (
    Accommodation,
    CandidateAttraction,
    CandidateRestaurant,
    Coordinates,
    Day,
    Flight,
    OvernightCarryover,
    ScheduleSlot,
    TripItem,
    TripPreferences,
    TripResult,
    ValidationIssue,
)

__all__ = [
    "Accommodation",
    "AdvisorError",
    "AdvisorQuestion",
    "BudgetCategory",
    "BudgetTier",
    "CandidateAttraction",
    "CandidateRestaurant",
    "Coordinates",
    "Day",
    "DayType",
    "DomainError",
    "Flight",
    "InvalidTripRequest",
    "LegDirection",
    "MealMode",
    "MealType",
    "NoFeasibleItinerary",
    "OvernightCarryover",
    "ScheduleSlot",
    "Severity",
    "TripItem",
    "TripItemType",
    "TripPreferences",
    "TripResult",
    "ValidationIssue",
]
