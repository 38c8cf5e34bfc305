"""Goal and status domain models."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class GoalStatus(Enum):
    """Actual-vs-goal classification used for visual feedback."""

    UNDER = "under"
    ON_TARGET = "on_target"
    OVER = "over"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class BaseGoals:
    """User-set daily targets."""

    calories: float = 2000
    protein: float = 150
    carbs: float = 250
    fat: float = 65
    water: float = 2000

    def to_dict(self) -> dict[str, float]:
        """Serialize goals to a JSON-friendly dict."""
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "water": self.water,
        }


@dataclass(frozen=True)
class NutritionTotals:
    """Summed nutrition for a set of entries."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Serialize totals to a JSON-friendly dict."""
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class DailyTotals:
    """Totals for one calendar day."""

    day: date
    totals: NutritionTotals


@dataclass(frozen=True)
class MacroProgress:
    """Progress of one metric against its goal."""

    metric: str
    actual: float
    goal: float
    percent: float
    status: GoalStatus


@dataclass(frozen=True)
class ProgressBar:
    """One day of the weekly progress chart."""

    day: date
    intake: float
    goal: float
    percent: float
    status: GoalStatus
