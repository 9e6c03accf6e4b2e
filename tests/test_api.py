import asyncio

import pytest
from fastapi.testclient import TestClient

from budget_engine.api import create_app
from budget_engine.budget_service import BudgetService
from budget_engine.budget_store import InMemoryBudgetStore
from budget_engine.catalog_learner import CatalogLearner
from budget_engine.catalog_store import InMemoryCatalogStore


@pytest.fixture
def client() -> TestClient:
    learner = CatalogLearner(InMemoryCatalogStore())
    service = BudgetService(store=InMemoryBudgetStore(), learner=learner)
    return TestClient(create_app(service=service, learner=learner))


def create_budget(client: TestClient) -> dict:
    response = client.post("/v1/budgets", json={"lead_id": "lead-1", "title": "Launch video"})
    assert response.status_code == 201
    return response.json()


def test_save_budget_prices_and_learns(client):
    budget = create_budget(client)
    budget["items"] = [
        {"category": "Equipment", "description": "Drone Footage", "quantity": 1, "unit_cost": 100},
    ]

    response = client.put(f"/v1/budgets/{budget['id']}", json=budget)

    assert response.status_code == 200
    body = response.json()
    assert body["budget"]["adjusted_final_value"] == 143.0
    assert body["learning"]["learned"] == ["Drone Footage"]

    suggestions = client.get("/v1/catalog/suggestions", params={"q": "dro"}).json()
    assert [entry["name"] for entry in suggestions] == ["Drone Footage"]
    assert client.get("/v1/catalog").json()[0]["usage_count"] == 1

    breakdown = client.get(f"/v1/budgets/{budget['id']}/breakdown").json()
    assert breakdown["commission"] == pytest.approx(10.0)
    assert breakdown["is_synced"] is True


def test_suggestions_with_other_category_are_excluded(client):
    budget = create_budget(client)
    budget["items"] = [{"category": "Equipment", "description": "Drone Footage", "unit_cost": 100}]
    client.put(f"/v1/budgets/{budget['id']}", json=budget)

    response = client.get("/v1/catalog/suggestions", params={"q": "dro", "category": "Logistics"})
    assert response.json() == []


def test_pricing_preview_does_not_persist(client):
    response = client.post(
        "/v1/pricing:preview",
        json={"lead_id": "lead-1", "items": [{"description": "Van", "unit_cost": 50, "quantity": 2}]},
    )

    assert response.status_code == 200
    assert response.json()["budget"]["total_cost"] == 100.0
    assert client.get("/v1/budgets").json() == []


def test_pricing_preview_rejects_degenerate_tax(client):
    response = client.post("/v1/pricing:preview", json={"lead_id": "lead-1", "tax_pct": -100})
    assert response.status_code == 422


def test_archive_restore_and_delete(client):
    budget = create_budget(client)

    assert client.post(f"/v1/budgets/{budget['id']}:archive").json()["is_archived"] is True
    assert client.get("/v1/budgets").json() == []
    assert len(client.get("/v1/budgets", params={"include_archived": True}).json()) == 1

    assert client.post(f"/v1/budgets/{budget['id']}:restore").json()["is_archived"] is False
    assert client.delete(f"/v1/budgets/{budget['id']}").status_code == 204
    assert client.get(f"/v1/budgets/{budget['id']}").status_code == 404


def test_duplicate_budget(client):
    budget = create_budget(client)
    response = client.post(f"/v1/budgets/{budget['id']}:duplicate")

    assert response.status_code == 201
    assert response.json()["budget"]["title"] == "Launch video (Copy)"
    assert len(client.get("/v1/budgets").json()) == 2


def test_unknown_budget_is_404(client):
    assert client.get("/v1/budgets/missing").status_code == 404
    assert client.post("/v1/budgets/missing:archive").status_code == 404


def test_healthcheck(client):
    assert client.get("/health").json() == {"status": "ok"}


class LoopAwareBudgetStore(InMemoryBudgetStore):
    def __init__(self) -> None:
        super().__init__()
        self.saved_inside_event_loop: list[bool] = []

    def save_budget(self, budget):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.saved_inside_event_loop.append(False)
        else:
            self.saved_inside_event_loop.append(True)
        return super().save_budget(budget)


def test_store_calls_run_off_the_event_loop():
    store = LoopAwareBudgetStore()
    learner = CatalogLearner(InMemoryCatalogStore())
    client = TestClient(create_app(service=BudgetService(store=store, learner=learner), learner=learner))

    budget = create_budget(client)
    client.put(f"/v1/budgets/{budget['id']}", json=budget)
    client.post(f"/v1/budgets/{budget['id']}:archive")

    assert store.saved_inside_event_loop == [False, False, False]
