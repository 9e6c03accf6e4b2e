from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from pydantic import BaseModel

from .errors import PricingInputError
from .models.budget import Budget, LineItem

TAX_PCT_FLOOR = -100.0
CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round to cents with exact binary ties going up, so 0.125 becomes 0.13."""
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PricingTotals:
    total_cost: float
    margin_multiplier: float
    tax_multiplier: float
    ideal_price: float

    @property
    def rounded_price(self) -> float:
        return round_money(self.ideal_price)


class PriceBreakdown(BaseModel):
    total_cost: float
    ideal_price: float
    nominal_sale_value: float
    adjusted_final_value: float
    real_profit: float
    commission: float
    tax: float
    is_synced: bool


def ensure_valid_percentages(*, profit_pct: float, bv_pct: float, tax_pct: float) -> None:
    if tax_pct <= TAX_PCT_FLOOR:
        raise PricingInputError(f"tax_pct must be greater than {TAX_PCT_FLOOR:g}, got {tax_pct:g}")
    for name, value in (("profit_pct", profit_pct), ("bv_pct", bv_pct), ("tax_pct", tax_pct)):
        if not math.isfinite(value):
            raise PricingInputError(f"{name} must be a finite number")


def calculate_totals(
    items: Iterable[LineItem],
    *,
    profit_pct: float,
    bv_pct: float,
    tax_pct: float,
) -> PricingTotals:
    """Compute cost and ideal sale price for the visible items.

    Hidden items are skipped. The ideal price applies the profit and BV margins
    on top of cost and then the tax on top of that:

        ideal = cost * (1 + (profit + bv) / 100) * (1 + tax / 100)
    """
    ensure_valid_percentages(profit_pct=profit_pct, bv_pct=bv_pct, tax_pct=tax_pct)
    total_cost = sum((item.quantity * item.unit_cost for item in items if not item.hidden), 0.0)
    margin_multiplier = 1 + (profit_pct + bv_pct) / 100
    tax_multiplier = 1 + tax_pct / 100
    ideal_price = total_cost * margin_multiplier * tax_multiplier
    return PricingTotals(
        total_cost=total_cost,
        margin_multiplier=margin_multiplier,
        tax_multiplier=tax_multiplier,
        ideal_price=ideal_price,
    )


def totals_for(budget: Budget) -> PricingTotals:
    return calculate_totals(
        budget.items,
        profit_pct=budget.profit_pct,
        bv_pct=budget.bv_pct,
        tax_pct=budget.tax_pct,
    )


def recalculate(budget: Budget) -> Budget:
    """Refresh the computed fields of ``budget`` in place and return it.

    The nominal value always follows the computed price. The adjusted value
    follows it too unless the user locked the price with a manual edit.
    """
    totals = totals_for(budget)
    price = totals.rounded_price
    budget.total_cost = totals.total_cost
    budget.nominal_sale_value = price
    if not budget.price_locked:
        budget.adjusted_final_value = price
    return budget


def set_adjusted_value(budget: Budget, value: float | str | None) -> Budget:
    """Apply a manual edit of the final price while the user is typing."""
    amount = _to_amount(value)
    budget.adjusted_final_value = amount
    budget.nominal_sale_value = amount
    budget.price_locked = True
    return budget


def commit_adjusted_value(budget: Budget) -> Budget:
    """Finish a manual edit by rounding the typed value to cents."""
    amount = round_money(budget.adjusted_final_value or 0.0)
    budget.adjusted_final_value = amount
    budget.nominal_sale_value = amount
    return budget


def reset_to_computed(budget: Budget) -> Budget:
    budget.price_locked = False
    return recalculate(budget)


def price_breakdown(budget: Budget) -> PriceBreakdown:
    totals = totals_for(budget)
    total_cost = totals.total_cost
    commission = total_cost * budget.bv_pct / 100
    real_profit = budget.adjusted_final_value / totals.tax_multiplier - total_cost - commission
    tax = total_cost * totals.margin_multiplier * (budget.tax_pct / 100)
    return PriceBreakdown(
        total_cost=total_cost,
        ideal_price=totals.rounded_price,
        nominal_sale_value=budget.nominal_sale_value,
        adjusted_final_value=budget.adjusted_final_value,
        real_profit=real_profit,
        commission=commission,
        tax=tax,
        is_synced=not budget.price_locked,
    )


def _to_amount(value: float | str | None) -> float:
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise PricingInputError(f"Not a valid amount: {value!r}") from exc
    if not math.isfinite(amount):
        raise PricingInputError(f"Not a valid amount: {value!r}")
    return amount


__all__ = [
    "PriceBreakdown",
    "PricingTotals",
    "calculate_totals",
    "commit_adjusted_value",
    "ensure_valid_percentages",
    "price_breakdown",
    "recalculate",
    "round_money",
    "reset_to_computed",
    "set_adjusted_value",
    "totals_for",
]
