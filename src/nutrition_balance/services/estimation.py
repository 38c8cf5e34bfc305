"""AI nutrition estimation service."""

import base64
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from nutrition_balance.domain.entries import MealType
from nutrition_balance.domain.errors import (
    EstimateParseError,
    EstimationError,
    InvalidInputError,
)
from nutrition_balance.domain.estimates import (
    DayPlanSuggestion,
    EstimateList,
    NutritionEstimate,
)
from nutrition_balance.services.cache import SearchCache

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_logger = logging.getLogger(__name__)

_ESTIMATE_PROPERTIES: dict[str, object] = {
    "name": {"type": "string"},
    "calories": {"type": "number", "minimum": 0},
    "protein": {"type": "number", "minimum": 0},
    "carbs": {"type": "number", "minimum": 0},
    "fat": {"type": "number", "minimum": 0},
    "servingSize": {"type": "string"},
}

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": _ESTIMATE_PROPERTIES,
    "required": list(_ESTIMATE_PROPERTIES),
    "additionalProperties": False,
}

SEARCH_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"foods": {"type": "array", "items": ESTIMATE_SCHEMA}},
    "required": ["foods"],
    "additionalProperties": False,
}

_PLAN_MEALS = ("Breakfast", "Lunch", "Dinner", "Snack")

DAY_PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        meal: {"type": "array", "items": ESTIMATE_SCHEMA} for meal in _PLAN_MEALS
    },
    "required": list(_PLAN_MEALS),
    "additionalProperties": False,
}

OVERLOADED_MESSAGE = "The AI service is currently overloaded. Please try again later."
NOT_FOUND_MESSAGE = "Service not found. Please check your connection."
HTTP_NOT_FOUND = 404
HTTP_SERVICE_UNAVAILABLE = 503


class EstimationClient(Protocol):
    """Interface for structured-output LLM calls."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> object:
        """Return the decoded JSON document produced by the model."""


@dataclass
class EstimationService:
    """Builds nutrition prompts and validates the structured results."""

    client: EstimationClient
    cache: SearchCache
    model: str
    reasoning_effort: str | None
    store: bool
    search_ttl_seconds: int = 3600
    search_limit: int = 5

    async def estimate_from_text(self, description: str) -> NutritionEstimate:
        """Estimate total nutrition for a free-text meal description."""
        cleaned = description.strip()
        if not cleaned:
            raise InvalidInputError("description", "Required.")
        prompt = (
            f'Analyze the nutritional content of: "{cleaned}". '
            "Calculate the TOTAL nutrition for the entire described meal or "
            "portion using standard nutritional data: look up each ingredient, "
            "scale it to the stated quantity and sum everything. "
            "Return a brief descriptive name, calories, protein, carbs and fat "
            "in grams, and servingSize describing the total portion "
            '(e.g. "100g" or "1 medium apple").'
        )
        return await self._request(
            prompt=prompt,
            schema=ESTIMATE_SCHEMA,
            schema_name="nutrition_estimate",
            result_type=NutritionEstimate,
            action="analyze meal description",
        )

    async def estimate_from_image(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> NutritionEstimate:
        """Estimate nutrition for the food shown in an image."""
        if not image_bytes:
            raise InvalidInputError("image", "Required.")
        prompt = (
            "Analyze the food in this image and estimate its nutritional "
            "content. Include name, calories, protein, carbs and fat as numbers "
            "even if approximate. For servingSize, provide a metric quantity "
            '(e.g. "100g") or a descriptive unit (e.g. "1 slice").'
        )
        return await self._request(
            prompt=prompt,
            schema=ESTIMATE_SCHEMA,
            schema_name="nutrition_estimate",
            result_type=NutritionEstimate,
            action="analyze meal image",
            image_data_url=to_data_url(image_bytes, mime_type),
        )

    async def search_by_name(self, query: str) -> list[NutritionEstimate]:
        """Look up nutrition for common variations of a food name."""
        cleaned = query.strip()
        if not cleaned:
            return []
        cached = self.cache.get(cleaned)
        if cached is not None:
            return cached
        prompt = (
            f'Find nutritional information for "{cleaned}". Provide a list of '
            f"up to {self.search_limit} common variations with name, calories, "
            "protein, carbs, fat and servingSize. The serving size must be in "
            'metric units (e.g. "100g", "250ml"). If you can\'t find the food, '
            "return an empty list."
        )
        result = await self._request(
            prompt=prompt,
            schema=SEARCH_SCHEMA,
            schema_name="food_search",
            result_type=EstimateList,
            action="search food database",
        )
        foods = result.foods[: self.search_limit]
        self.cache.set(cleaned, foods, ttl_seconds=self.search_ttl_seconds)
        return list(foods)

    async def suggest_day_plan(
        self, calories: float, protein: float, carbs: float, fat: float
    ) -> dict[MealType, list[NutritionEstimate]]:
        """Suggest a one-day meal plan approximating the given targets."""
        prompt = (
            "Generate a one-day meal plan for Breakfast, Lunch, Dinner, and "
            f"Snack that totals approximately {calories:.0f} calories, "
            f"{protein:.0f}g protein, {carbs:.0f}g carbs, and {fat:.0f}g fat. "
            "Provide simple, common food items. Each meal is a list of foods "
            "with name, calories, protein, carbs, fat and servingSize."
        )
        plan = await self._request(
            prompt=prompt,
            schema=DAY_PLAN_SCHEMA,
            schema_name="day_plan",
            result_type=DayPlanSuggestion,
            action="generate meal plan",
        )
        return plan.by_meal_type()

    async def _request(  # noqa: PLR0913
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        result_type: type[_ModelT],
        action: str,
        image_data_url: str | None = None,
    ) -> _ModelT:
        raw = await _call_collaborator(
            lambda: self.client.complete(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt,
                schema=schema,
                schema_name=schema_name,
                image_data_url=image_data_url,
            ),
            action=action,
        )
        try:
            return result_type.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Estimate payload rejected (%s): %s", action, exc)
            raise EstimateParseError(
                f"Failed to {action}. The response was not understood."
            ) from exc


async def _call_collaborator(
    func: Callable[[], Awaitable[object]], *, action: str
) -> object:
    """Run a collaborator call, translating failures into EstimationError."""
    try:
        return await func()
    except Exception as exc:
        status_code = _status_code_from_exception(exc)
        _logger.exception("Estimation %s failed (status=%s)", action, status_code)
        raise EstimationError(_user_message(status_code, action)) from exc


def _user_message(status_code: int | None, action: str) -> str:
    if status_code == HTTP_SERVICE_UNAVAILABLE:
        return OVERLOADED_MESSAGE
    if status_code == HTTP_NOT_FOUND:
        return NOT_FOUND_MESSAGE
    return f"Failed to {action}. Please try again."


def _status_code_from_exception(exc: Exception) -> int | None:
    """Extract an HTTP status code from an exception, if available."""
    status_code = getattr(exc, "status_code", None)
    if status_code is None:
        response = getattr(exc, "response", None)
        status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert image bytes to a base64 data URL."""
    resolved = mime_type or _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
