"""Tests for search result caching, filtering and sorting."""

from datetime import UTC, datetime, timedelta

from nutrition_balance.domain.estimates import NutritionEstimate
from nutrition_balance.services import cache as cache_module
from nutrition_balance.services.cache import InMemorySearchCache
from nutrition_balance.services.search import (
    Range,
    SearchFilters,
    SortKey,
    filter_and_sort,
)
from tests.conftest import estimate_payload


def _estimate(name: str, calories: float, protein: float = 1) -> NutritionEstimate:
    payload = estimate_payload(name, calories)
    payload["protein"] = protein
    return NutritionEstimate.model_validate(payload)


def test_cache_normalizes_query_and_returns_copies() -> None:
    cache = InMemorySearchCache()
    results = [_estimate("Apple", 95)]

    cache.set(" Apple ", results, ttl_seconds=60)
    cached = cache.get("apple")

    assert cached == results
    assert cached is not results
    cached.clear()
    assert cache.get("APPLE") == results


def test_cache_skips_empty_results() -> None:
    cache = InMemorySearchCache()

    cache.set("unobtainium", [], ttl_seconds=60)

    assert cache.get("unobtainium") is None


def test_cache_entries_expire(monkeypatch) -> None:
    cache = InMemorySearchCache()
    cache.set("apple", [_estimate("Apple", 95)], ttl_seconds=60)
    later = datetime.now(tz=UTC) + timedelta(seconds=61)

    class _LaterDatetime(datetime):
        @classmethod
        def now(cls, tz=None):  # type: ignore[no-untyped-def]
            return later

    monkeypatch.setattr(cache_module, "datetime", _LaterDatetime)

    assert cache.get("apple") is None


def test_filter_and_sort() -> None:
    results = [
        _estimate("Banana", 105, protein=1),
        _estimate("Chicken", 165, protein=31),
        _estimate("Rice", 130, protein=3),
    ]

    by_calories = filter_and_sort(results, sort_key=SortKey.CALORIES_ASC)
    by_protein = filter_and_sort(results, sort_key=SortKey.PROTEIN_DESC)
    filtered = filter_and_sort(
        results, SearchFilters(calories=Range(minimum=110, maximum=160))
    )

    assert [item.name for item in by_calories] == ["Banana", "Rice", "Chicken"]
    assert [item.name for item in by_protein] == ["Chicken", "Rice", "Banana"]
    assert [item.name for item in filtered] == ["Rice"]
    assert filter_and_sort(results) == results
