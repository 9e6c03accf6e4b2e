from budget_engine.budget_store import InMemoryBudgetStore, diff_items
from budget_engine.models.budget import Budget, LineItem


def test_diff_items_tracks_new_changed_moved_and_deleted():
    camera = LineItem(id="camera", description="Camera", unit_cost=100)
    van = LineItem(id="van", description="Van", unit_cost=50)
    lens = LineItem(id="lens", description="Lens", unit_cost=20)
    stored = [(0, camera), (1, van), (2, lens)]

    pricier_van = van.model_copy(update={"unit_cost": 60})
    extra = LineItem(id="extra", description="Extra", unit_cost=5)
    diff = diff_items(stored, [pricier_van, camera, extra])

    assert [(position, item.id) for position, item in diff.upserts] == [(0, "van"), (1, "camera"), (2, "extra")]
    assert diff.deletes == ("lens",)


def test_diff_items_is_empty_when_nothing_changed():
    camera = LineItem(id="camera", description="Camera", unit_cost=100)
    assert diff_items([(0, camera)], [camera.model_copy()]).is_empty


def test_in_memory_store_round_trip_keeps_item_order():
    store = InMemoryBudgetStore()
    budget = Budget(
        lead_id="lead-1",
        items=[LineItem(description="B", unit_cost=2), LineItem(description="A", unit_cost=1)],
    )
    store.save_budget(budget)

    loaded = store.load_budget(budget.id)
    assert [item.description for item in loaded.items] == ["B", "A"]

    loaded.items.reverse()
    loaded.items.pop()
    store.save_budget(loaded)
    assert [item.description for item in store.load_budget(budget.id).items] == ["A"]


def test_in_memory_store_returns_copies():
    store = InMemoryBudgetStore()
    budget = Budget(lead_id="lead-1", items=[LineItem(description="Camera", unit_cost=100)])
    store.save_budget(budget)

    loaded = store.load_budget(budget.id)
    loaded.items[0].unit_cost = 1
    loaded.title = "Changed"

    again = store.load_budget(budget.id)
    assert again.items[0].unit_cost == 100
    assert again.title == "New Project"


def test_in_memory_store_delete():
    store = InMemoryBudgetStore()
    budget = Budget(lead_id="lead-1")
    store.save_budget(budget)

    assert store.delete_budget(budget.id)
    assert not store.delete_budget(budget.id)
    assert store.load_budget(budget.id) is None
    assert store.load_budgets() == []
