"""Models for AI nutrition estimates."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nutrition_balance.domain.entries import MealType

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


class NutritionEstimate(BaseModel):
    """Estimated nutrition for one food, as returned by the AI service."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    serving_size: str = Field(default="1 serving", alias="servingSize")

    @field_validator("serving_size")
    @classmethod
    def _clean_serving_size(cls, value: str) -> str:
        cleaned = _NON_PRINTABLE.sub("", value).strip()
        return cleaned or "1 serving"


class EstimateList(BaseModel):
    """Structured output wrapper for food search results."""

    foods: list[NutritionEstimate]


class DayPlanSuggestion(BaseModel):
    """Structured output for a suggested one-day meal plan."""

    model_config = ConfigDict(populate_by_name=True)

    breakfast: list[NutritionEstimate] = Field(alias="Breakfast")
    lunch: list[NutritionEstimate] = Field(alias="Lunch")
    dinner: list[NutritionEstimate] = Field(alias="Dinner")
    snack: list[NutritionEstimate] = Field(alias="Snack")

    def by_meal_type(self) -> dict[MealType, list[NutritionEstimate]]:
        """Return the suggested foods keyed by meal type, in meal order."""
        return {
            MealType.BREAKFAST: list(self.breakfast),
            MealType.LUNCH: list(self.lunch),
            MealType.DINNER: list(self.dinner),
            MealType.SNACK: list(self.snack),
        }
