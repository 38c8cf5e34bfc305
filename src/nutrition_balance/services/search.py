"""Filtering and ordering of food search results."""

from dataclasses import dataclass
from enum import Enum

from nutrition_balance.domain.estimates import NutritionEstimate


class SortKey(Enum):
    """Supported orderings for search results."""

    DEFAULT = "default"
    CALORIES_ASC = "calories-asc"
    CALORIES_DESC = "calories-desc"
    PROTEIN_DESC = "protein-desc"
    CARBS_ASC = "carbs-asc"
    FAT_ASC = "fat-asc"


_SORT_FIELDS: dict[SortKey, tuple[str, bool]] = {
    SortKey.CALORIES_ASC: ("calories", False),
    SortKey.CALORIES_DESC: ("calories", True),
    SortKey.PROTEIN_DESC: ("protein", True),
    SortKey.CARBS_ASC: ("carbs", False),
    SortKey.FAT_ASC: ("fat", False),
}


@dataclass(frozen=True)
class Range:
    """Inclusive bounds; a missing bound is not applied."""

    minimum: float | None = None
    maximum: float | None = None

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        return self.maximum is None or value <= self.maximum


@dataclass(frozen=True)
class SearchFilters:
    """Per-macro bounds applied to search results."""

    calories: Range = Range()
    protein: Range = Range()
    carbs: Range = Range()
    fat: Range = Range()

    def accepts(self, item: NutritionEstimate) -> bool:
        return (
            self.calories.contains(item.calories)
            and self.protein.contains(item.protein)
            and self.carbs.contains(item.carbs)
            and self.fat.contains(item.fat)
        )


def filter_and_sort(
    results: list[NutritionEstimate],
    filters: SearchFilters | None = None,
    sort_key: SortKey = SortKey.DEFAULT,
) -> list[NutritionEstimate]:
    """Return results matching the filters in the requested order.

    The default order keeps the order the results arrived in; other
    orderings are stable for ties.
    """
    resolved = filters or SearchFilters()
    selected = [item for item in results if resolved.accepts(item)]
    if sort_key in _SORT_FIELDS:
        attribute, descending = _SORT_FIELDS[sort_key]
        selected.sort(key=lambda item: getattr(item, attribute), reverse=descending)
    return selected
