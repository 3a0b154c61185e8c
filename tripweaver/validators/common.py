"""Helpers shared by the post-generation validators."""

from __future__ import annotations

from typing import Optional

from tripweaver.domain.constants import LOGISTICS_TYPES
from tripweaver.domain.enums import BudgetCategory, TripItemType
from tripweaver.domain.models import TripItem
from tripweaver.planner.budget import BudgetTracker

CATEGORY_BY_TYPE: dict[TripItemType, BudgetCategory] = {
    TripItemType.ACTIVITY: BudgetCategory.ACTIVITIES,
    TripItemType.RESTAURANT: BudgetCategory.FOOD,
    TripItemType.TRANSPORT: BudgetCategory.TRANSPORT,
    TripItemType.LUGGAGE: BudgetCategory.OTHER,
}


def is_fixed(item: TripItem) -> bool:
    """Logistics items are pinned to real-world times and never moved."""
    return item.type.value in LOGISTICS_TYPES


def refund(budget: Optional[BudgetTracker], item: TripItem) -> None:
    category = CATEGORY_BY_TYPE.get(item.type)
    if budget is None or category is None or item.estimated_cost <= 0:
        return
    budget.spend(category, -item.estimated_cost)
