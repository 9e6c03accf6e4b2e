from __future__ import annotations

import logging

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore

from .budget_store import diff_items
from .errors import PersistenceError
from .models.budget import Budget, LineItem

logger = logging.getLogger(__name__)


class FirestoreBudgetStore:
    """Firestore-backed budget store.

    Each budget is a document in ``budgets``; its line items live in an
    ``items`` subcollection keyed by item id, carrying a ``position`` field
    that preserves their order.
    """

    COLLECTION_NAME = "budgets"
    ITEMS_COLLECTION = "items"

    def __init__(
        self,
        project_id: str | None = None,
        *,
        collection_name: str | None = None,
        client: firestore.Client | None = None,
    ) -> None:
        self._db = client or firestore.Client(project=project_id)
        self._collection = self._db.collection(collection_name or self.COLLECTION_NAME)

    def load_budgets(self) -> list[Budget]:
        try:
            return [
                self._from_firestore_dict(doc.id, doc.to_dict(), self._load_items(doc.reference))
                for doc in self._collection.stream()
            ]
        except GoogleAPICallError as exc:
            raise PersistenceError("Failed to load budgets") from exc

    def load_budget(self, budget_id: str) -> Budget | None:
        doc_ref = self._collection.document(budget_id)
        try:
            doc = doc_ref.get()
            if not doc.exists:
                return None
            items = self._load_items(doc_ref)
        except GoogleAPICallError as exc:
            raise PersistenceError(f"Failed to load budget {budget_id}") from exc
        return self._from_firestore_dict(doc.id, doc.to_dict(), items)

    def save_budget(self, budget: Budget) -> Budget:
        """Write the header and only the items that changed, in one batch."""
        doc_ref = self._collection.document(budget.id)
        items_ref = doc_ref.collection(self.ITEMS_COLLECTION)
        try:
            diff = diff_items(self._load_items(doc_ref), budget.items)
            batch = self._db.batch()
            batch.set(doc_ref, self._to_firestore_dict(budget))
            for position, item in diff.upserts:
                batch.set(items_ref.document(item.id), {**item.model_dump(mode="json"), "position": position})
            for item_id in diff.deletes:
                batch.delete(items_ref.document(item_id))
            batch.commit()
        except GoogleAPICallError as exc:
            raise PersistenceError(f"Failed to save budget {budget.id}") from exc

        logger.info(
            "Saved budget",
            extra={
                "budget_id": budget.id,
                "items_written": len(diff.upserts),
                "items_deleted": len(diff.deletes),
            },
        )
        return budget

    def delete_budget(self, budget_id: str) -> bool:
        doc_ref = self._collection.document(budget_id)
        try:
            if not doc_ref.get().exists:
                return False
            batch = self._db.batch()
            for item_doc in doc_ref.collection(self.ITEMS_COLLECTION).stream():
                batch.delete(item_doc.reference)
            batch.delete(doc_ref)
            batch.commit()
        except GoogleAPICallError as exc:
            raise PersistenceError(f"Failed to delete budget {budget_id}") from exc

        logger.info("Deleted budget", extra={"budget_id": budget_id})
        return True

    def _load_items(self, doc_ref) -> list[tuple[int, LineItem]]:
        pairs: list[tuple[int, LineItem]] = []
        for item_doc in doc_ref.collection(self.ITEMS_COLLECTION).stream():
            data = dict(item_doc.to_dict())
            position = int(data.pop("position", len(pairs)))
            pairs.append((position, LineItem.model_validate({**data, "id": item_doc.id})))
        pairs.sort(key=lambda pair: pair[0])
        return pairs

    def _to_firestore_dict(self, budget: Budget) -> dict:
        return budget.model_dump(mode="json", exclude={"id", "items"})

    def _from_firestore_dict(
        self, budget_id: str, data: dict, items: list[tuple[int, LineItem]]
    ) -> Budget:
        return Budget.model_validate({**data, "id": budget_id, "items": [item for _, item in items]})


__all__ = ["FirestoreBudgetStore"]
