from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .budget_service import BudgetService
from .catalog_learner import CatalogLearner, LearningReport
from .errors import BudgetNotFoundError, PersistenceError, PricingInputError
from .logging_config import set_trace_id
from .models.budget import Budget, Category
from .models.catalog import CatalogEntry
from .pricing import PriceBreakdown, price_breakdown, recalculate

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Cloud-Trace-Context"


class CreateBudgetRequest(BaseModel):
    lead_id: str
    title: str = Field(default="New Project")
    opportunity_id: str | None = None


class SaveBudgetResponse(BaseModel):
    budget: Budget
    learning: LearningReport


class PricingPreviewResponse(BaseModel):
    budget: Budget
    breakdown: PriceBreakdown


def create_app(*, service: BudgetService, learner: CatalogLearner) -> FastAPI:
    app = FastAPI(title="Budget Engine API", version="0.1.0")

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        header = request.headers.get(TRACE_HEADER, "")
        set_trace_id(header.split("/")[0] or uuid.uuid4().hex)
        try:
            return await call_next(request)
        finally:
            set_trace_id(None)

    @app.exception_handler(BudgetNotFoundError)
    async def _not_found(request: Request, exc: BudgetNotFoundError) -> JSONResponse:
        return JSONResponse({"detail": str(exc)}, status_code=404)

    @app.exception_handler(PricingInputError)
    async def _invalid_pricing(request: Request, exc: PricingInputError) -> JSONResponse:
        return JSONResponse({"detail": str(exc)}, status_code=422)

    @app.exception_handler(PersistenceError)
    async def _storage_failed(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Storage failure", exc_info=exc, extra={"path": request.url.path})
        return JSONResponse({"detail": str(exc)}, status_code=503)

    @app.post("/v1/budgets", response_model=Budget, status_code=201)
    async def create_budget(request: CreateBudgetRequest) -> Budget:
        budget = service.create_budget(
            lead_id=request.lead_id, title=request.title, opportunity_id=request.opportunity_id
        )
        outcome = await asyncio.to_thread(service.save_budget, budget)
        return outcome.budget

    @app.get("/v1/budgets", response_model=list[Budget])
    async def list_budgets(include_archived: bool = False, lead_id: str | None = None) -> list[Budget]:
        return await asyncio.to_thread(
            service.list_budgets, include_archived=include_archived, lead_id=lead_id
        )

    @app.get("/v1/budgets/{budget_id}", response_model=Budget)
    async def get_budget(budget_id: str) -> Budget:
        return await asyncio.to_thread(service.get_budget, budget_id)

    @app.put("/v1/budgets/{budget_id}", response_model=SaveBudgetResponse)
    async def save_budget(budget_id: str, budget: Budget) -> SaveBudgetResponse:
        outcome = await asyncio.to_thread(service.save_budget, budget.model_copy(update={"id": budget_id}))
        return SaveBudgetResponse(budget=outcome.budget, learning=outcome.learning)

    @app.delete("/v1/budgets/{budget_id}", status_code=204)
    async def delete_budget(budget_id: str) -> None:
        await asyncio.to_thread(service.delete_budget, budget_id)

    @app.post("/v1/budgets/{budget_id}:archive", response_model=Budget)
    async def archive_budget(budget_id: str) -> Budget:
        return await asyncio.to_thread(service.archive_budget, budget_id)

    @app.post("/v1/budgets/{budget_id}:restore", response_model=Budget)
    async def restore_budget(budget_id: str) -> Budget:
        return await asyncio.to_thread(service.restore_budget, budget_id)

    @app.post("/v1/budgets/{budget_id}:duplicate", response_model=SaveBudgetResponse, status_code=201)
    async def duplicate_budget(budget_id: str) -> SaveBudgetResponse:
        outcome = await asyncio.to_thread(service.duplicate_budget, budget_id)
        return SaveBudgetResponse(budget=outcome.budget, learning=outcome.learning)

    @app.get("/v1/budgets/{budget_id}/breakdown", response_model=PriceBreakdown)
    async def get_breakdown(budget_id: str) -> PriceBreakdown:
        budget = await asyncio.to_thread(service.get_budget, budget_id)
        return price_breakdown(budget)

    @app.post("/v1/pricing:preview", response_model=PricingPreviewResponse)
    async def preview_pricing(budget: Budget) -> PricingPreviewResponse:
        priced = recalculate(budget)
        return PricingPreviewResponse(budget=priced, breakdown=price_breakdown(priced))

    @app.get("/v1/catalog", response_model=list[CatalogEntry])
    async def list_catalog() -> list[CatalogEntry]:
        return await asyncio.to_thread(learner.list_entries)

    @app.get("/v1/catalog/suggestions", response_model=list[CatalogEntry])
    async def suggest_items(q: str = "", category: Category | None = None) -> list[CatalogEntry]:
        return await asyncio.to_thread(learner.suggest, q, category)

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


__all__ = ["create_app", "CreateBudgetRequest", "SaveBudgetResponse", "PricingPreviewResponse"]
