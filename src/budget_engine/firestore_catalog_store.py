from __future__ import annotations

import hashlib
import logging

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore

from .catalog_store import by_usage, matches_query
from .errors import PersistenceError
from .models.budget import Category
from .models.catalog import CatalogEntry

logger = logging.getLogger(__name__)


class FirestoreCatalogStore:
    """Firestore-backed catalog of previously priced line items."""

    COLLECTION_NAME = "catalog"

    def __init__(
        self,
        project_id: str | None = None,
        *,
        collection_name: str | None = None,
        client: firestore.Client | None = None,
    ) -> None:
        self._db = client or firestore.Client(project=project_id)
        self._collection = self._db.collection(collection_name or self.COLLECTION_NAME)

    def find_catalog_entry(self, name: str) -> CatalogEntry | None:
        """Look up an entry by its exact, case-sensitive name."""
        try:
            doc = self._collection.document(self._doc_id(name)).get()
        except GoogleAPICallError as exc:
            raise PersistenceError(f"Failed to read catalog entry {name!r}") from exc

        if not doc.exists:
            return None
        return self._from_firestore_dict(doc.to_dict())

    def upsert_catalog_entry(self, entry: CatalogEntry) -> CatalogEntry:
        """Write the entry as-is, replacing any stored counters."""
        try:
            self._collection.document(self._doc_id(entry.name)).set(self._to_firestore_dict(entry))
        except GoogleAPICallError as exc:
            raise PersistenceError(f"Failed to write catalog entry {entry.name!r}") from exc
        return entry

    def record_usage(self, name: str, *, price: float, category: Category | None) -> CatalogEntry:
        """Create or update the entry for ``name`` with a server-side increment.

        The merged write creates the document with ``usage_count=1`` when it does
        not exist yet, so concurrent saves of the same name never lose a count.
        """
        doc_ref = self._collection.document(self._doc_id(name))
        try:
            doc_ref.set(
                {
                    "name": name,
                    "last_price": price,
                    "category": category.value if category else None,
                    "usage_count": firestore.Increment(1),
                },
                merge=True,
            )
            snapshot = doc_ref.get()
        except GoogleAPICallError as exc:
            raise PersistenceError(f"Failed to record catalog usage for {name!r}") from exc

        logger.debug("Recorded catalog usage", extra={"catalog_name": name, "price": price})
        return self._from_firestore_dict(snapshot.to_dict())

    def query_catalog(self, name_substring: str, category: Category | None = None) -> list[CatalogEntry]:
        # Firestore has no case-insensitive substring operator; filter client-side.
        return [
            entry for entry in self.list_entries() if matches_query(entry, name_substring, category)
        ]

    def list_entries(self) -> list[CatalogEntry]:
        query = self._collection.order_by("usage_count", direction=firestore.Query.DESCENDING)
        try:
            entries = [self._from_firestore_dict(doc.to_dict()) for doc in query.stream()]
        except GoogleAPICallError as exc:
            raise PersistenceError("Failed to list catalog entries") from exc
        return by_usage(entries)

    @staticmethod
    def _doc_id(name: str) -> str:
        # Item names may contain "/" which Firestore forbids in document ids.
        return hashlib.sha256(name.encode("utf-8")).hexdigest()

    def _to_firestore_dict(self, entry: CatalogEntry) -> dict:
        return {
            "name": entry.name,
            "last_price": entry.last_price,
            "category": entry.category.value if entry.category else None,
            "usage_count": entry.usage_count,
        }

    def _from_firestore_dict(self, data: dict) -> CatalogEntry:
        return CatalogEntry(
            name=data["name"],
            last_price=float(data.get("last_price") or 0.0),
            category=data.get("category"),
            usage_count=int(data.get("usage_count") or 0),
        )


__all__ = ["FirestoreCatalogStore"]
