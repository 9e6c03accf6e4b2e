from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from .budget_store import BudgetStore
from .catalog_learner import CatalogLearner, LearningReport
from .defaults import BudgetDefaults, new_budget
from .errors import BudgetNotFoundError
from .models.budget import Budget, new_id
from .pricing import recalculate

logger = logging.getLogger(__name__)


@dataclass
class SaveOutcome:
    budget: Budget
    learning: LearningReport


class BudgetService:
    """Persists budgets and feeds the item catalog on every save.

    A save is authoritative once the budget store accepts it. Catalog learning
    runs afterwards on a best-effort basis: failures are logged and returned in
    the outcome's report, and the saved budget is kept.
    """

    def __init__(
        self,
        *,
        store: BudgetStore,
        learner: CatalogLearner,
        defaults: BudgetDefaults | None = None,
    ) -> None:
        self._store = store
        self._learner = learner
        self._defaults = defaults or BudgetDefaults()

    def create_budget(
        self,
        *,
        lead_id: str,
        title: str = "New Project",
        opportunity_id: str | None = None,
        today: date | None = None,
    ) -> Budget:
        """Build an unsaved budget from the configured defaults."""
        return new_budget(
            lead_id=lead_id,
            title=title,
            opportunity_id=opportunity_id,
            today=today,
            defaults=self._defaults,
        )

    def list_budgets(self, *, include_archived: bool = False, lead_id: str | None = None) -> list[Budget]:
        budgets = self._store.load_budgets()
        if not include_archived:
            budgets = [budget for budget in budgets if not budget.is_archived]
        if lead_id is not None:
            budgets = [budget for budget in budgets if budget.lead_id == lead_id]
        return sorted(budgets, key=lambda budget: (budget.created_on, budget.title), reverse=True)

    def get_budget(self, budget_id: str) -> Budget:
        budget = self._store.load_budget(budget_id)
        if budget is None:
            raise BudgetNotFoundError(budget_id)
        return budget

    def save_budget(self, budget: Budget) -> SaveOutcome:
        candidate = recalculate(budget.model_copy(deep=True))
        saved = self._store.save_budget(candidate)
        logger.info(
            "Budget saved",
            extra={
                "budget_id": saved.id,
                "lead_id": saved.lead_id,
                "items": len(saved.items),
                "adjusted_final_value": saved.adjusted_final_value,
            },
        )
        report = self._learner.learn(saved)
        if not report.ok:
            logger.warning(
                "Budget saved but catalog learning was incomplete",
                extra={"budget_id": saved.id, "failed": [failure.name for failure in report.failures]},
            )
        return SaveOutcome(budget=saved, learning=report)

    def delete_budget(self, budget_id: str) -> None:
        if not self._store.delete_budget(budget_id):
            raise BudgetNotFoundError(budget_id)
        logger.info("Budget deleted", extra={"budget_id": budget_id})

    def archive_budget(self, budget_id: str) -> Budget:
        return self._set_archived(budget_id, True)

    def restore_budget(self, budget_id: str) -> Budget:
        return self._set_archived(budget_id, False)

    def duplicate_budget(self, budget_id: str, *, today: date | None = None) -> SaveOutcome:
        source = self.get_budget(budget_id)
        created_on = today or date.today()
        duplicated = source.model_copy(
            deep=True,
            update={
                "id": new_id(),
                "title": f"{source.title} (Copy)",
                "created_on": created_on,
                "valid_until": created_on + timedelta(days=source.validity_days),
                "is_closed": False,
                "is_archived": False,
                "items": [item.model_copy(update={"id": new_id()}) for item in source.items],
            },
        )
        logger.info("Duplicating budget", extra={"budget_id": budget_id, "copy_id": duplicated.id})
        return self.save_budget(duplicated)

    def _set_archived(self, budget_id: str, archived: bool) -> Budget:
        # Archiving is a flag change only; it does not count as a new use of the items.
        budget = self.get_budget(budget_id)
        budget.is_archived = archived
        saved = self._store.save_budget(budget)
        logger.info("Budget archive flag changed", extra={"budget_id": budget_id, "archived": archived})
        return saved


__all__ = ["BudgetService", "SaveOutcome"]
