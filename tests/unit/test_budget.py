"""Budget tracker tests."""

import pytest
from helpers import preferences

from tripweaver.domain.enums import BudgetCategory, BudgetTier
from tripweaver.planner.budget import BudgetTracker, resolve_total_budget


def _two_travellers_five_days() -> BudgetTracker:
    budget = BudgetTracker(1000, party_size=2, duration_days=5)
    budget.commit_fixed_costs(flights=400, accommodation=300)
    return budget


def test_total_from_tier_when_no_custom_amount():
    prefs = preferences(days=4, budget_total=None, party_size=2, budget_tier=BudgetTier.COMFORT)
    assert resolve_total_budget(prefs) == 250 * 2 * 4


def test_custom_total_wins():
    assert resolve_total_budget(preferences(days=4, budget_total=900)) == 900


def test_fixed_costs_leave_variable_pool():
    budget = _two_travellers_five_days()
    delta = budget.rebalance()

    assert delta == pytest.approx(620 - 700)
    variable = sum(
        budget.ceiling(c)
        for c in (BudgetCategory.FOOD, BudgetCategory.ACTIVITIES, BudgetCategory.TRANSPORT)
    )
    assert variable == pytest.approx(300)
    assert budget.ceiling(BudgetCategory.ACTIVITIES) == pytest.approx(90)
    assert budget.daily_activity_allowance == pytest.approx(18)


def test_activity_spend_over_ceiling_is_declined():
    budget = _two_travellers_five_days()
    budget.rebalance()

    assert budget.can_afford(BudgetCategory.ACTIVITIES, 60)
    budget.spend(BudgetCategory.ACTIVITIES, 60)
    assert not budget.can_afford(BudgetCategory.ACTIVITIES, 40)
    assert budget.committed(BudgetCategory.ACTIVITIES) == 60


def test_rebalance_runs_once():
    budget = _two_travellers_five_days()
    budget.rebalance()
    assert budget.rebalance() == 0.0
    assert budget.rebalanced


def test_spend_never_goes_negative():
    budget = BudgetTracker(500)
    budget.spend(BudgetCategory.FOOD, 20)
    budget.spend(BudgetCategory.FOOD, -50)
    assert budget.committed(BudgetCategory.FOOD) == 0.0


def test_free_items_are_always_affordable():
    budget = BudgetTracker(0)
    assert budget.can_afford(BudgetCategory.ACTIVITIES, 0)
    assert not budget.can_afford(BudgetCategory.ACTIVITIES, 1)


def test_breakdown_and_total():
    budget = _two_travellers_five_days()
    budget.rebalance()
    budget.spend(BudgetCategory.FOOD, 42.5)
    breakdown = budget.breakdown()
    assert breakdown["flights"] == 400
    assert breakdown["food"] == 42.5
    assert budget.total_committed == pytest.approx(742.5)
    assert budget.ledger().rebalanced
