"""Nutrition aggregation over ledgers."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from nutrition_balance.domain.entries import FoodEntry, Ledger, date_key
from nutrition_balance.domain.goals import DailyTotals, NutritionTotals


@dataclass
class PeriodSummary:
    """Aggregated totals for a run of consecutive days."""

    daily: list[DailyTotals]
    avg_calories: float
    avg_protein: float
    avg_carbs: float
    avg_fat: float


def totals(entries: Iterable[FoodEntry]) -> NutritionTotals:
    """Sum nutrition over entries, scaling each by its quantity."""
    calories = protein = carbs = fat = 0.0
    for entry in entries:
        calories += entry.calories * entry.quantity
        protein += entry.protein * entry.quantity
        carbs += entry.carbs * entry.quantity
        fat += entry.fat * entry.quantity
    return NutritionTotals(calories=calories, protein=protein, carbs=carbs, fat=fat)


def daily_totals(ledger: Ledger, key: str) -> NutritionTotals:
    """Return totals for one date key; a missing date yields zeros."""
    return totals(ledger.entries_for(key))


def summarize_period(ledger: Ledger, start: date, days: int) -> PeriodSummary:
    """Return per-day totals and averages for ``days`` days from ``start``."""
    daily = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        daily.append(DailyTotals(day=day, totals=daily_totals(ledger, date_key(day))))

    total_days = max(len(daily), 1)
    combined = NutritionTotals()
    for entry in daily:
        combined = NutritionTotals(
            calories=combined.calories + entry.totals.calories,
            protein=combined.protein + entry.totals.protein,
            carbs=combined.carbs + entry.totals.carbs,
            fat=combined.fat + entry.totals.fat,
        )

    return PeriodSummary(
        daily=daily,
        avg_calories=combined.calories / total_days,
        avg_protein=combined.protein / total_days,
        avg_carbs=combined.carbs / total_days,
        avg_fat=combined.fat / total_days,
    )
