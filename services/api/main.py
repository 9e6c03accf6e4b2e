from __future__ import annotations

import logging

from budget_engine.api import create_app
from budget_engine.budget_service import BudgetService
from budget_engine.budget_store import InMemoryBudgetStore
from budget_engine.catalog_learner import CatalogLearner
from budget_engine.catalog_store import InMemoryCatalogStore
from budget_engine.config import Settings
from budget_engine.firestore_budget_store import FirestoreBudgetStore
from budget_engine.firestore_catalog_store import FirestoreCatalogStore
from budget_engine.logging_config import setup_logging

# Environment configuration
settings = Settings.from_env()

# Setup logging
setup_logging(environment=settings.environment, project_id=settings.project_id)
logger = logging.getLogger(__name__)

# Use Firestore in production, in-memory for dev
if settings.is_dev:
    budget_store = InMemoryBudgetStore()
    catalog_store = InMemoryCatalogStore()
else:
    budget_store = FirestoreBudgetStore(
        project_id=settings.project_id, collection_name=settings.budgets_collection
    )
    catalog_store = FirestoreCatalogStore(
        project_id=settings.project_id, collection_name=settings.catalog_collection
    )

learner = CatalogLearner(catalog_store)
service = BudgetService(store=budget_store, learner=learner, defaults=settings.budget_defaults())

app = create_app(service=service, learner=learner)

logger.info(
    "Budget engine API configured",
    extra={"environment": settings.environment, "project_id": settings.project_id},
)
