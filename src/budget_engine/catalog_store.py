from __future__ import annotations

import threading
from typing import Dict, Protocol

from .models.budget import Category
from .models.catalog import CatalogEntry


class CatalogStore(Protocol):
    def find_catalog_entry(self, name: str) -> CatalogEntry | None:
        ...

    def upsert_catalog_entry(self, entry: CatalogEntry) -> CatalogEntry:
        ...

    def query_catalog(self, name_substring: str, category: Category | None = None) -> list[CatalogEntry]:
        ...

    def record_usage(self, name: str, *, price: float, category: Category | None) -> CatalogEntry:
        """Create or bump the entry for ``name`` in a single atomic step."""
        ...

    def list_entries(self) -> list[CatalogEntry]:
        ...


def matches_query(entry: CatalogEntry, name_substring: str, category: Category | None) -> bool:
    """Case-insensitive substring match, optionally limited to a category.

    Entries without a category match any category filter.
    """
    if name_substring.lower() not in entry.name.lower():
        return False
    if category is None or entry.category is None:
        return True
    return entry.category == category


def by_usage(entries: list[CatalogEntry]) -> list[CatalogEntry]:
    return sorted(entries, key=lambda entry: (-entry.usage_count, entry.name))


class InMemoryCatalogStore:
    def __init__(self) -> None:
        self._entries: Dict[str, CatalogEntry] = {}
        self._lock = threading.Lock()

    def find_catalog_entry(self, name: str) -> CatalogEntry | None:
        with self._lock:
            entry = self._entries.get(name)
            return entry.model_copy() if entry else None

    def upsert_catalog_entry(self, entry: CatalogEntry) -> CatalogEntry:
        with self._lock:
            self._entries[entry.name] = entry.model_copy()
            return entry

    def query_catalog(self, name_substring: str, category: Category | None = None) -> list[CatalogEntry]:
        with self._lock:
            found = [
                entry.model_copy()
                for entry in self._entries.values()
                if matches_query(entry, name_substring, category)
            ]
        return by_usage(found)

    def record_usage(self, name: str, *, price: float, category: Category | None) -> CatalogEntry:
        with self._lock:
            existing = self._entries.get(name)
            usage_count = existing.usage_count + 1 if existing else 1
            entry = CatalogEntry(name=name, last_price=price, category=category, usage_count=usage_count)
            self._entries[name] = entry
            return entry.model_copy()

    def list_entries(self) -> list[CatalogEntry]:
        with self._lock:
            entries = [entry.model_copy() for entry in self._entries.values()]
        return by_usage(entries)


__all__ = ["CatalogStore", "InMemoryCatalogStore", "matches_query", "by_usage"]
