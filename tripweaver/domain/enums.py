"""Domain enums."""

from enum import Enum


class BudgetTier(str, Enum):
    ECONOMIC = "economic"
    MODERATE = "moderate"
    COMFORT = "comfort"
    LUXURY = "luxury"


class TripItemType(str, Enum):
    FLIGHT = "flight"
    TRANSPORT = "transport"
    CHECKIN = "checkin"
    CHECKOUT = "checkout"
    HOTEL = "hotel"
    PARKING = "parking"
    ACTIVITY = "activity"
    RESTAURANT = "restaurant"
    LUGGAGE = "luggage"
    GROCERY = "grocery"


class DayType(str, Enum):
    ARRIVAL = "arrival"
    FULL_DAY = "full_day"
    DEPARTURE = "departure"
    SINGLE_DAY = "single_day"
    OVERNIGHT_ARRIVAL = "overnight_arrival"


class DataReliability(str, Enum):
    VERIFIED = "verified"
    ESTIMATED = "estimated"
    GENERATED = "generated"


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class MealMode(str, Enum):
    HOTEL = "hotel"
    SELF_CATERED = "self_catered"
    PICNIC = "picnic"
    RESTAURANT = "restaurant"


class MealStrategy(str, Enum):
    RESTAURANT = "restaurant"
    SELF_CATERED = "self_catered"
    MIXED = "mixed"


class LegDirection(str, Enum):
    OUTBOUND = "outbound"
    RETURN = "return"


class GroundMode(str, Enum):
    TRAIN = "train"
    BUS = "bus"
    CAR = "car"
    FERRY = "ferry"


class AccommodationKind(str, Enum):
    HOTEL = "hotel"
    APARTMENT = "apartment"
    HOSTEL = "hostel"
    BNB = "bnb"
    RESORT = "resort"


class BudgetCategory(str, Enum):
    FLIGHTS = "flights"
    ACCOMMODATION = "accommodation"
    FOOD = "food"
    ACTIVITIES = "activities"
    TRANSPORT = "transport"
    PARKING = "parking"
    OTHER = "other"


class AdvisorQuestion(str, Enum):
    LATE_ARRIVAL = "late_arrival"
    GAP_FILL = "gap_fill"
    ACTIVITY_ORDER = "activity_order"
    ENERGY_CHECK = "energy_check"
    MEAL_DECISION = "meal_decision"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EnergyLevel(str, Enum):
    FRESH = "fresh"
    MODERATE = "moderate"
    TIRED = "tired"
    EXHAUSTED = "exhausted"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
