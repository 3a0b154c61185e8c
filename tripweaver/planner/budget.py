"""Per-category spend ledger against ceilings."""

from __future__ import annotations

from typing import Mapping

from tripweaver.domain.constants import (
    DAILY_BUDGET_PER_PERSON,
    ESTIMATED_SHARES,
    FIXED_CATEGORIES,
    VARIABLE_SHARES,
)
from tripweaver.domain.enums import BudgetCategory
from tripweaver.domain.models import BudgetLedger, LedgerEntry, TripPreferences

_EPSILON = 1e-6


def resolve_total_budget(preferences: TripPreferences) -> float:
    """Explicit total wins; otherwise tier allowance x party x days."""
    if preferences.budget_total is not None:
        return float(preferences.budget_total)
    per_day = DAILY_BUDGET_PER_PERSON[preferences.budget_tier]
    return per_day * preferences.party_size * preferences.duration_days


class BudgetTracker:
    """Soft ceilings per category.

    ``spend`` is the single mutator and clamps at zero; ``can_afford`` is the
    check callers run before placing anything that costs money. Declined spends
    are the caller's cue to skip the candidate.
    """

    def __init__(
        self,
        total: float,
        *,
        party_size: int = 1,
        duration_days: int = 1,
        shares: Mapping[BudgetCategory, float] = ESTIMATED_SHARES,
    ):
        self.total = max(float(total), 0.0)
        self.party_size = max(int(party_size), 1)
        self.duration_days = max(int(duration_days), 1)
        self._entries: dict[BudgetCategory, LedgerEntry] = {
            category: LedgerEntry(committed=0.0, ceiling=round(self.total * shares.get(category, 0.0), 2))
            for category in BudgetCategory
        }
        self._estimated_fixed = sum(self._entries[c].ceiling for c in FIXED_CATEGORIES)
        self._rebalanced = False
        self.daily_activity_allowance = self._entries[BudgetCategory.ACTIVITIES].ceiling / self.duration_days

    @classmethod
    def for_preferences(cls, preferences: TripPreferences) -> "BudgetTracker":
        return cls(
            resolve_total_budget(preferences),
            party_size=preferences.party_size,
            duration_days=preferences.duration_days,
        )

    @property
    def rebalanced(self) -> bool:
        return self._rebalanced

    def committed(self, category: BudgetCategory) -> float:
        return self._entries[category].committed

    def ceiling(self, category: BudgetCategory) -> float:
        return self._entries[category].ceiling

    def remaining(self, category: BudgetCategory) -> float:
        return max(0.0, self._entries[category].remaining)

    def can_afford(self, category: BudgetCategory, amount: float) -> bool:
        if amount <= 0:
            return True
        entry = self._entries[category]
        return entry.committed + amount <= entry.ceiling + _EPSILON

    def spend(self, category: BudgetCategory, amount: float) -> float:
        """Record ``amount`` (negative for refunds); the total never drops below zero."""
        entry = self._entries[category]
        entry.committed = round(max(0.0, entry.committed + float(amount)), 2)
        return entry.committed

    def commit_fixed_costs(
        self,
        *,
        flights: float = 0.0,
        accommodation: float = 0.0,
        parking: float = 0.0,
    ) -> None:
        """Book the known fixed costs; their ceilings become the actual amounts."""
        for category, amount in (
            (BudgetCategory.FLIGHTS, flights),
            (BudgetCategory.ACCOMMODATION, accommodation),
            (BudgetCategory.PARKING, parking),
        ):
            if amount:
                self.spend(category, amount)
            entry = self._entries[category]
            entry.ceiling = entry.committed

    def rebalance(self) -> float:
        """Redistribute what fixed costs left over across the variable categories.

        Runs once; returns the estimated-minus-actual fixed delta (positive when
        fixed costs came in under estimate).
        """
        if self._rebalanced:
            return 0.0
        actual_fixed = sum(self._entries[c].committed for c in FIXED_CATEGORIES)
        delta = round(self._estimated_fixed - actual_fixed, 2)
        pool = max(0.0, self.total - actual_fixed)
        for category in BudgetCategory:
            if category in FIXED_CATEGORIES:
                continue
            share = VARIABLE_SHARES.get(category, 0.0)
            entry = self._entries[category]
            entry.ceiling = max(round(pool * share, 2), entry.committed)
        self.daily_activity_allowance = self._entries[BudgetCategory.ACTIVITIES].ceiling / self.duration_days
        self._rebalanced = True
        return delta

    @property
    def total_committed(self) -> float:
        return round(sum(entry.committed for entry in self._entries.values()), 2)

    def breakdown(self) -> dict[str, float]:
        return {category.value: entry.committed for category, entry in self._entries.items()}

    def ledger(self) -> BudgetLedger:
        return BudgetLedger(
            total=self.total,
            entries={c: e.model_copy() for c, e in self._entries.items()},
            rebalanced=self._rebalanced,
        )
