from datetime import date

import pytest

from budget_engine import pricing
from budget_engine.budget_editor import BudgetEditor, ItemDraft
from budget_engine.defaults import new_budget
from budget_engine.errors import PricingInputError
from budget_engine.models.budget import Budget, Category, LineItem


def make_budget(*items: LineItem, profit=20.0, bv=10.0, tax=10.0) -> Budget:
    return Budget(lead_id="lead-1", profit_pct=profit, bv_pct=bv, tax_pct=tax, items=list(items))


def test_total_cost_ignores_hidden_items():
    budget = make_budget(
        LineItem(description="Camera", quantity=2, unit_cost=150),
        LineItem(description="Editing", quantity=1.5, unit_cost=100),
        LineItem(description="Backup drone", quantity=1, unit_cost=9999, hidden=True),
    )
    pricing.recalculate(budget)

    assert budget.total_cost == pytest.approx(450.0)


def test_recalculate_is_idempotent():
    budget = make_budget(LineItem(description="Camera", quantity=3, unit_cost=33.33))
    pricing.recalculate(budget)
    first = (budget.total_cost, budget.nominal_sale_value, budget.adjusted_final_value)
    pricing.recalculate(budget)

    assert (budget.total_cost, budget.nominal_sale_value, budget.adjusted_final_value) == first


def test_new_budget_syncs_to_ideal_price():
    editor = BudgetEditor(new_budget(lead_id="lead-1", today=date(2025, 3, 1)))
    editor.add_item(Category.production, ItemDraft(description="Shooting day", quantity="1", unit_cost="100"))

    assert editor.budget.total_cost == pytest.approx(100.0)
    assert editor.budget.nominal_sale_value == 143.00
    assert editor.budget.adjusted_final_value == 143.00
    assert editor.breakdown().is_synced


def test_manual_override_survives_new_items():
    editor = BudgetEditor(new_budget(lead_id="lead-1"))
    editor.add_item(Category.production, ItemDraft(description="Shooting day", unit_cost=100))
    editor.set_adjusted_value(150)
    editor.commit_adjusted_value()

    editor.add_item(Category.logistics, ItemDraft(description="Transport", quantity=1, unit_cost=50))

    assert editor.budget.total_cost == pytest.approx(150.0)
    assert editor.budget.nominal_sale_value == 214.50
    assert editor.budget.adjusted_final_value == 150.00
    assert editor.budget.price_locked


def test_manual_edit_updates_both_values_while_typing():
    budget = pricing.recalculate(make_budget(LineItem(description="Camera", unit_cost=100)))
    pricing.set_adjusted_value(budget, "149.999")

    assert budget.adjusted_final_value == pytest.approx(149.999)
    assert budget.nominal_sale_value == pytest.approx(149.999)

    pricing.commit_adjusted_value(budget)
    assert budget.adjusted_final_value == 150.0
    assert budget.nominal_sale_value == 150.0


def test_blank_manual_value_is_zero():
    budget = make_budget()
    pricing.set_adjusted_value(budget, "")
    assert budget.adjusted_final_value == 0.0


def test_invalid_manual_value_is_rejected():
    budget = make_budget()
    with pytest.raises(PricingInputError):
        pricing.set_adjusted_value(budget, "abc")


def test_reset_to_computed_clears_the_lock():
    budget = pricing.recalculate(make_budget(LineItem(description="Camera", unit_cost=100)))
    pricing.set_adjusted_value(budget, 999)
    pricing.reset_to_computed(budget)

    assert not budget.price_locked
    assert budget.adjusted_final_value == 143.00
    assert budget.nominal_sale_value == 143.00


def test_prices_are_rounded_to_cents():
    budget = make_budget(LineItem(description="Session", unit_cost=1), profit=33.333, bv=0, tax=0)
    pricing.recalculate(budget)

    assert budget.nominal_sale_value == 1.33
    assert budget.adjusted_final_value == 1.33


def test_breakdown_back_solves_real_profit():
    budget = pricing.recalculate(make_budget(LineItem(description="Camera", unit_cost=100)))
    breakdown = pricing.price_breakdown(budget)

    assert breakdown.commission == pytest.approx(10.0)
    assert breakdown.tax == pytest.approx(13.0)
    assert breakdown.real_profit == pytest.approx(20.0)

    pricing.set_adjusted_value(budget, 165)
    assert pricing.price_breakdown(budget).real_profit == pytest.approx(40.0)


def test_zero_percentages_price_at_cost():
    budget = make_budget(LineItem(description="Camera", quantity=2, unit_cost=75), profit=0, bv=0, tax=0)
    pricing.recalculate(budget)
    assert budget.adjusted_final_value == 150.0


def test_degenerate_tax_is_rejected():
    items = [LineItem(description="Camera", unit_cost=100)]
    with pytest.raises(PricingInputError):
        pricing.calculate_totals(items, profit_pct=20, bv_pct=10, tax_pct=-100)
    with pytest.raises(PricingInputError):
        pricing.calculate_totals(items, profit_pct=float("nan"), bv_pct=10, tax_pct=10)


def test_negative_tax_above_floor_is_allowed():
    totals = pricing.calculate_totals(
        [LineItem(description="Camera", unit_cost=100)], profit_pct=0, bv_pct=0, tax_pct=-50
    )
    assert totals.ideal_price == pytest.approx(50.0)


def test_half_cent_ties_round_up():
    budget = make_budget(LineItem(description="Session", unit_cost=1234.125), profit=0, bv=0, tax=0)
    pricing.recalculate(budget)

    assert budget.nominal_sale_value == 1234.13
    assert budget.adjusted_final_value == 1234.13


def test_committed_manual_value_rounds_ties_up():
    budget = make_budget()
    pricing.set_adjusted_value(budget, "0.125")
    pricing.commit_adjusted_value(budget)

    assert budget.adjusted_final_value == 0.13
    assert budget.nominal_sale_value == 0.13


def test_round_money():
    assert pricing.round_money(2.675) == 2.67
    assert pricing.round_money(0.5) == 0.5
    assert pricing.round_money(143.00000000000003) == 143.0


def test_infinite_manual_value_is_rejected():
    budget = make_budget()
    with pytest.raises(PricingInputError):
        pricing.set_adjusted_value(budget, "inf")
    assert budget.adjusted_final_value == 0.0


def test_infinite_percentage_is_rejected():
    with pytest.raises(PricingInputError):
        pricing.calculate_totals([], profit_pct=float("inf"), bv_pct=0, tax_pct=0)
