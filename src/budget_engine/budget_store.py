from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Protocol, Sequence

from .models.budget import Budget, LineItem


class BudgetStore(Protocol):
    def load_budgets(self) -> list[Budget]:
        ...

    def load_budget(self, budget_id: str) -> Budget | None:
        ...

    def save_budget(self, budget: Budget) -> Budget:
        ...

    def delete_budget(self, budget_id: str) -> bool:
        ...


@dataclass(frozen=True)
class ItemDiff:
    upserts: tuple[tuple[int, LineItem], ...]
    deletes: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes


def diff_items(
    previous: Sequence[tuple[int, LineItem]],
    current: Sequence[LineItem],
) -> ItemDiff:
    """Work out which stored items must be written or removed.

    ``previous`` holds the stored ``(position, item)`` pairs. An item is
    rewritten when it is new, when any field changed or when it moved.
    """
    stored = {item.id: (position, item) for position, item in previous}
    current_ids = {item.id for item in current}
    upserts = tuple(
        (position, item)
        for position, item in enumerate(current)
        if stored.get(item.id) != (position, item)
    )
    deletes = tuple(item_id for item_id in stored if item_id not in current_ids)
    return ItemDiff(upserts=upserts, deletes=deletes)


class InMemoryBudgetStore:
    def __init__(self) -> None:
        self._headers: Dict[str, Budget] = {}
        self._items: Dict[str, Dict[str, tuple[int, LineItem]]] = {}
        self._lock = threading.Lock()

    def load_budgets(self) -> list[Budget]:
        with self._lock:
            return [self._assemble(budget_id) for budget_id in self._headers]

    def load_budget(self, budget_id: str) -> Budget | None:
        with self._lock:
            if budget_id not in self._headers:
                return None
            return self._assemble(budget_id)

    def save_budget(self, budget: Budget) -> Budget:
        with self._lock:
            stored_items = self._items.setdefault(budget.id, {})
            diff = diff_items(list(stored_items.values()), budget.items)
            for item_id in diff.deletes:
                del stored_items[item_id]
            for position, item in diff.upserts:
                stored_items[item.id] = (position, item.model_copy())
            self._headers[budget.id] = budget.model_copy(update={"items": []}, deep=True)
            return self._assemble(budget.id)

    def delete_budget(self, budget_id: str) -> bool:
        with self._lock:
            self._items.pop(budget_id, None)
            return self._headers.pop(budget_id, None) is not None

    def _assemble(self, budget_id: str) -> Budget:
        header = self._headers[budget_id]
        ordered = sorted(self._items.get(budget_id, {}).values(), key=lambda pair: pair[0])
        return header.model_copy(update={"items": [item.model_copy() for _, item in ordered]}, deep=True)


__all__ = ["BudgetStore", "InMemoryBudgetStore", "ItemDiff", "diff_items"]
