"""Request bodies for the HTTP API."""

from pydantic import BaseModel, Field

from nutrition_balance.domain.entries import FoodDraft, MealType


class FoodEntryRequest(BaseModel):
    """A food item to log or plan."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_type: MealType
    quantity: float = 1.0
    serving_value: float = 1.0
    serving_unit: str = "serving"

    def to_draft(self) -> FoodDraft:
        return FoodDraft(
            name=self.name,
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            meal_type=self.meal_type,
            quantity=self.quantity,
            serving_value=self.serving_value,
            serving_unit=self.serving_unit,
        )


class EntryUpdateRequest(BaseModel):
    """New quantity or meal type for a logged entry."""

    quantity: float | None = None
    meal_type: MealType | None = None


class WaterRequest(BaseModel):
    """Water to add to a day; negative amounts subtract."""

    amount: float


class GoalsRequest(BaseModel):
    """Goal values to change; omitted goals keep their current value."""

    calories: float | str | None = None
    protein: float | str | None = None
    carbs: float | str | None = None
    fat: float | str | None = None
    water: float | str | None = None

    def provided(self) -> dict[str, float | str]:
        return {
            name: value
            for name, value in self.model_dump().items()
            if value is not None
        }


class WeeklyBalancingRequest(BaseModel):
    """Weekly balancing switch."""

    enabled: bool


class OnboardingRequest(GoalsRequest):
    """Goals and balancing choice collected while onboarding."""

    weekly_balancing: bool | None = None

    def provided(self) -> dict[str, float | str]:
        values = super().provided()
        values.pop("weekly_balancing", None)
        return values


class SuggestPlanRequest(BaseModel):
    """Targets for a suggested plan; missing targets use the day's goals."""

    calories: float | None = Field(default=None, gt=0)
    protein: float | None = Field(default=None, gt=0)
    carbs: float | None = Field(default=None, gt=0)
    fat: float | None = Field(default=None, gt=0)


class TextEstimateRequest(BaseModel):
    description: str


class ImageEstimateRequest(BaseModel):
    """Image to analyze, sent as base64 (a data URL prefix is accepted)."""

    image_base64: str
    mime_type: str | None = None
