from __future__ import annotations

from typing import Sequence


class BudgetEngineError(Exception):
    """Base class for errors raised by the budget engine."""


class PricingInputError(BudgetEngineError, ValueError):
    """Raised when percentage parameters would make the pricing degenerate."""


class PersistenceError(BudgetEngineError):
    """Raised when a store is unreachable or rejects a write."""


class BudgetNotFoundError(BudgetEngineError, KeyError):
    def __init__(self, budget_id: str) -> None:
        super().__init__(budget_id)
        self.budget_id = budget_id

    def __str__(self) -> str:
        return f"Budget not found: {self.budget_id}"


class CatalogLearningError(BudgetEngineError):
    """Aggregate of the per-item failures of one catalog learning pass."""

    def __init__(self, budget_id: str, failures: Sequence[tuple[str, str]]) -> None:
        self.budget_id = budget_id
        self.failures = list(failures)
        names = ", ".join(name for name, _ in self.failures)
        super().__init__(
            f"Catalog learning failed for {len(self.failures)} item(s) of budget {budget_id}: {names}"
        )


__all__ = [
    "BudgetEngineError",
    "PricingInputError",
    "PersistenceError",
    "BudgetNotFoundError",
    "CatalogLearningError",
]
