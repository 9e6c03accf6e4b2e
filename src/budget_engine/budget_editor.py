from __future__ import annotations

import logging
import math
from typing import Any

from pydantic import BaseModel, ValidationError

from . import pricing
from .models.budget import Budget, Category, LineItem
from .models.catalog import CatalogEntry

logger = logging.getLogger(__name__)


class ItemDraft(BaseModel):
    """Raw values typed into the add-item row before they become a LineItem."""

    description: str = ""
    quantity: str | float | None = None
    unit_cost: str | float | None = None

    def apply_suggestion(self, entry: CatalogEntry) -> "ItemDraft":
        return self.model_copy(update={"description": entry.name, "unit_cost": entry.last_price})


def parse_number(value: str | float | None) -> float | None:
    """Parse user input such as ``"12.5"`` or ``"12,5"``; ``None`` when unparsable or not finite."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = value.strip()
        if not text:
            return None
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _is_blank(value: str | float | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class BudgetEditor:
    """Editing session over one budget.

    Every mutating call recomputes the budget's totals so that the cost, the
    nominal value and the adjusted value are always consistent with the items
    and percentages.
    """

    def __init__(self, budget: Budget) -> None:
        self.budget = budget

    def add_item(self, category: Category | str, draft: ItemDraft) -> LineItem | None:
        """Append an item built from ``draft``; invalid drafts are ignored."""
        description = draft.description.strip()
        unit_cost = parse_number(draft.unit_cost)
        if not description or unit_cost is None:
            return None
        quantity = parse_number(draft.quantity)
        if quantity is None:
            if not _is_blank(draft.quantity):
                return None
            quantity = 1.0
        try:
            item = LineItem(
                category=category,
                description=description,
                quantity=quantity,
                unit_cost=unit_cost,
            )
        except ValidationError:
            logger.debug("Ignoring invalid item draft", extra={"budget_id": self.budget.id})
            return None
        self.budget.items.append(item)
        pricing.recalculate(self.budget)
        return item

    def remove_item(self, item_id: str) -> bool:
        remaining = [item for item in self.budget.items if item.id != item_id]
        if len(remaining) == len(self.budget.items):
            return False
        self.budget.items = remaining
        pricing.recalculate(self.budget)
        return True

    def update_item(self, item_id: str, **changes: Any) -> bool:
        """Edit fields of one item in place; rejected edits leave it unchanged."""
        changes.pop("id", None)
        for field in ("quantity", "unit_cost"):
            value = changes.get(field)
            if isinstance(value, str):
                parsed = parse_number(value)
                if parsed is not None:
                    changes[field] = parsed
        for index, item in enumerate(self.budget.items):
            if item.id != item_id:
                continue
            try:
                updated = LineItem.model_validate({**item.model_dump(), **changes})
            except ValidationError:
                logger.debug(
                    "Rejected item edit",
                    extra={"budget_id": self.budget.id, "item_id": item_id, "fields": sorted(changes)},
                )
                return False
            self.budget.items[index] = updated
            pricing.recalculate(self.budget)
            return True
        return False

    def toggle_hidden(self, item_id: str) -> bool:
        item = self.budget.find_item(item_id)
        if item is None:
            return False
        return self.update_item(item_id, hidden=not item.hidden)

    def set_percentages(
        self,
        *,
        profit_pct: float | None = None,
        bv_pct: float | None = None,
        tax_pct: float | None = None,
    ) -> Budget:
        profit = self.budget.profit_pct if profit_pct is None else float(profit_pct)
        bv = self.budget.bv_pct if bv_pct is None else float(bv_pct)
        tax = self.budget.tax_pct if tax_pct is None else float(tax_pct)
        pricing.ensure_valid_percentages(profit_pct=profit, bv_pct=bv, tax_pct=tax)
        self.budget.profit_pct = profit
        self.budget.bv_pct = bv
        self.budget.tax_pct = tax
        return pricing.recalculate(self.budget)

    def set_adjusted_value(self, value: float | str | None) -> Budget:
        return pricing.set_adjusted_value(self.budget, value)

    def commit_adjusted_value(self) -> Budget:
        return pricing.commit_adjusted_value(self.budget)

    def reset_to_computed(self) -> Budget:
        return pricing.reset_to_computed(self.budget)

    def breakdown(self) -> pricing.PriceBreakdown:
        return pricing.price_breakdown(self.budget)


__all__ = ["BudgetEditor", "ItemDraft", "parse_number"]
