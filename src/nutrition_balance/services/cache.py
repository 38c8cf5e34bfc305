"""Cache for food search results."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from nutrition_balance.domain.estimates import NutritionEstimate


class SearchCache(Protocol):
    """Cache interface for food search results keyed by query."""

    def get(self, query: str) -> list[NutritionEstimate] | None:
        """Return cached results for a query if present and not expired."""

    def set(
        self, query: str, results: list[NutritionEstimate], ttl_seconds: int
    ) -> None:
        """Store results for a query with a TTL in seconds."""


@dataclass
class _CacheEntry:
    results: list[NutritionEstimate]
    expires_at: datetime


@dataclass
class InMemorySearchCache(SearchCache):
    """Process-local search cache.

    Queries are normalized (trimmed, lower-cased) so that "Apple " and
    "apple" share an entry. Callers always receive a copy of the list.
    """

    _entries: dict[str, _CacheEntry]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, query: str) -> list[NutritionEstimate] | None:
        """Return a copy of cached results if they haven't expired."""
        key = normalize_query(query)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return list(entry.results)

    def set(
        self, query: str, results: list[NutritionEstimate], ttl_seconds: int
    ) -> None:
        """Store non-empty results with a TTL."""
        if not results:
            return
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[normalize_query(query)] = _CacheEntry(
            results=list(results), expires_at=expires_at
        )


def normalize_query(query: str) -> str:
    """Return the cache key for a search query."""
    return query.strip().lower()
