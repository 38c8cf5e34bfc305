"""Meal plan promotion and suggestion handling."""

import re

from nutrition_balance.domain.entries import FoodDraft, FoodEntry, Ledger, MealType
from nutrition_balance.domain.estimates import NutritionEstimate

_SERVING_PATTERN = re.compile(r"^(\d*\.?\d+)\s*(\w[\w\s]*)$")

DEFAULT_SERVING = (1.0, "serving")


def promote(
    plan_ledger: Ledger, logged_ledger: Ledger, key: str
) -> tuple[Ledger, list[str]]:
    """Copy a day's planned entries into the logged ledger.

    Each plan entry is logged under a fresh id and appended after the entries
    already logged that day. The plan itself is left in place, so promoting
    the same day twice logs the meals twice.
    """
    planned = plan_ledger.entries_for(key)
    if not planned:
        return logged_ledger, []
    copies = [entry.copy_with_new_id() for entry in planned]
    return logged_ledger.append(key, copies), [entry.id for entry in copies]


def parse_serving_size(text: str | None) -> tuple[float, str]:
    """Split serving text like ``"100g"`` or ``"1.5 cups"`` into value and unit."""
    if not text:
        return DEFAULT_SERVING
    match = _SERVING_PATTERN.match(text.strip())
    if not match:
        return DEFAULT_SERVING
    value = float(match.group(1))
    if value <= 0:
        return DEFAULT_SERVING
    return value, match.group(2).strip()


def draft_from_estimate(
    estimate: NutritionEstimate, meal_type: MealType, quantity: float = 1.0
) -> FoodDraft:
    """Build a food draft from an AI estimate."""
    serving_value, serving_unit = parse_serving_size(estimate.serving_size)
    return FoodDraft(
        name=estimate.name,
        calories=estimate.calories,
        protein=estimate.protein,
        carbs=estimate.carbs,
        fat=estimate.fat,
        meal_type=meal_type,
        quantity=quantity,
        serving_value=serving_value,
        serving_unit=serving_unit,
    )


def apply_suggested_plan(
    plan_ledger: Ledger,
    key: str,
    suggestion: dict[MealType, list[NutritionEstimate]],
) -> tuple[Ledger, list[FoodEntry]]:
    """Add every suggested meal to the plan for a day, in meal order."""
    entries = [
        FoodEntry.from_draft(draft_from_estimate(estimate, meal_type))
        for meal_type in MealType
        for estimate in suggestion.get(meal_type, [])
    ]
    return plan_ledger.append(key, entries), entries
