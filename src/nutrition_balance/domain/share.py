"""Shareable daily summary models."""

import datetime as dt

from pydantic import BaseModel, Field


class SharedFoodItem(BaseModel):
    """Food item as it appears in a shared summary."""

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_type: str
    quantity: float
    serving_value: float
    serving_unit: str


class SharedTotals(BaseModel):
    """Day totals in a shared summary."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class SharedGoals(BaseModel):
    """Goals in effect for the shared day."""

    calories: float
    protein: float
    carbs: float
    fat: float
    water: float


class DailySummary(BaseModel):
    """Read-only snapshot of one day, suitable for a share link."""

    date: dt.date
    food_items: list[SharedFoodItem] = Field(default_factory=list)
    totals: SharedTotals
    goals: SharedGoals
    water_intake: float = Field(default=0.0, ge=0.0)
