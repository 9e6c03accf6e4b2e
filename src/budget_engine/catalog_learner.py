from __future__ import annotations

import logging
from typing import Sequence

from pydantic import BaseModel, Field

from .catalog_store import CatalogStore
from .errors import CatalogLearningError, PersistenceError
from .models.budget import Budget, Category
from .models.catalog import CatalogEntry

logger = logging.getLogger(__name__)


class LearningFailure(BaseModel):
    name: str
    reason: str


class LearningReport(BaseModel):
    budget_id: str
    learned: Sequence[str] = Field(default_factory=list)
    failures: Sequence[LearningFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise CatalogLearningError(
                self.budget_id, [(failure.name, failure.reason) for failure in self.failures]
            )


class CatalogLearner:
    """Keeps the shared item catalog in step with saved budgets."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def learn(self, budget: Budget) -> LearningReport:
        """Record every named item of ``budget`` in the catalog.

        Hidden items are learned too. Each item is attempted even when an
        earlier one fails; failures are returned in the report.
        """
        learned: list[str] = []
        failures: list[LearningFailure] = []
        for item in budget.items:
            if not item.description.strip():
                continue
            try:
                self._store.record_usage(item.description, price=item.unit_cost, category=item.category)
            except PersistenceError as exc:
                logger.warning(
                    "Catalog learning failed for item",
                    exc_info=True,
                    extra={"budget_id": budget.id, "catalog_name": item.description},
                )
                failures.append(LearningFailure(name=item.description, reason=str(exc)))
                continue
            learned.append(item.description)

        logger.info(
            "Catalog learning finished",
            extra={"budget_id": budget.id, "learned": len(learned), "failed": len(failures)},
        )
        return LearningReport(budget_id=budget.id, learned=learned, failures=failures)

    def suggest(self, partial_name: str, category: Category | None = None) -> list[CatalogEntry]:
        if not partial_name:
            return []
        return self._store.query_catalog(partial_name, category)

    def list_entries(self) -> list[CatalogEntry]:
        return self._store.list_entries()


__all__ = ["CatalogLearner", "LearningFailure", "LearningReport"]
