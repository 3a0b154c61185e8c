"""Domain constants shared by planners, validators and settings defaults."""

from tripweaver.domain.enums import BudgetCategory, BudgetTier, MealType

# per-person meal prices indexed by price tier 1..4
MEAL_PRICE_TABLE: dict[MealType, tuple[float, float, float, float]] = {
    MealType.BREAKFAST: (8.0, 12.0, 18.0, 30.0),
    MealType.LUNCH: (12.0, 20.0, 35.0, 60.0),
    MealType.DINNER: (18.0, 30.0, 50.0, 100.0),
}

SELF_CATERED_PRICE: dict[MealType, float] = {
    MealType.BREAKFAST: 3.0,
    MealType.LUNCH: 5.0,
    MealType.DINNER: 7.0,
}

PICNIC_PRICE_PER_PERSON = 8.0

PRICE_TIER_BY_BUDGET: dict[BudgetTier, int] = {
    BudgetTier.ECONOMIC: 1,
    BudgetTier.MODERATE: 2,
    BudgetTier.COMFORT: 3,
    BudgetTier.LUXURY: 4,
}

DAILY_BUDGET_PER_PERSON: dict[BudgetTier, float] = {
    BudgetTier.ECONOMIC: 70.0,
    BudgetTier.MODERATE: 140.0,
    BudgetTier.COMFORT: 250.0,
    BudgetTier.LUXURY: 500.0,
}

FIXED_CATEGORIES = (
    BudgetCategory.FLIGHTS,
    BudgetCategory.ACCOMMODATION,
    BudgetCategory.PARKING,
)

ESTIMATED_SHARES: dict[BudgetCategory, float] = {
    BudgetCategory.FLIGHTS: 0.30,
    BudgetCategory.ACCOMMODATION: 0.30,
    BudgetCategory.PARKING: 0.02,
    BudgetCategory.FOOD: 0.20,
    BudgetCategory.ACTIVITIES: 0.12,
    BudgetCategory.TRANSPORT: 0.06,
    BudgetCategory.OTHER: 0.0,
}

VARIABLE_SHARES: dict[BudgetCategory, float] = {
    BudgetCategory.FOOD: 0.50,
    BudgetCategory.ACTIVITIES: 0.30,
    BudgetCategory.TRANSPORT: 0.20,
}

# removal priority when two items collide: higher survives
ITEM_PRIORITY: dict[str, int] = {
    "flight": 100,
    "transport": 90,
    "checkin": 80,
    "checkout": 80,
    "parking": 70,
    "luggage": 65,
    "hotel": 60,
    "grocery": 30,
    "restaurant": 20,
    "activity": 10,
}

LOGISTICS_TYPES = frozenset(
    {"flight", "transport", "checkin", "checkout", "parking", "hotel", "luggage"}
)

MIN_ACTIVITY_MINUTES = 30
MAX_ACTIVITY_MINUTES = 240
DEFAULT_ACTIVITY_MINUTES = 90
