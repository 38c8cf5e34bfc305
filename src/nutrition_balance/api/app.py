"""FastAPI application factory."""

import base64
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from nutrition_balance.api.models import (
    EntryUpdateRequest,
    FoodEntryRequest,
    GoalsRequest,
    ImageEstimateRequest,
    OnboardingRequest,
    SuggestPlanRequest,
    TextEstimateRequest,
    WaterRequest,
    WeeklyBalancingRequest,
)
from nutrition_balance.app_logging import configure_logging
from nutrition_balance.containers import AppContainer
from nutrition_balance.domain.entries import FoodEntry
from nutrition_balance.domain.errors import (
    EstimationError,
    InvalidInputError,
    ShareLinkError,
)
from nutrition_balance.domain.estimates import DayPlanSuggestion, NutritionEstimate
from nutrition_balance.domain.goals import MacroProgress, ProgressBar
from nutrition_balance.services.plans import parse_serving_size
from nutrition_balance.services.search import (
    Range,
    SearchFilters,
    SortKey,
    filter_and_sort,
)
from nutrition_balance.services.share import decode_summary, encode_summary
from nutrition_balance.services.tracker import (
    CHART_DAYS,
    MAX_SUMMARY_DAYS,
    DayView,
    TrackerService,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting nutrition balance API (environment=%s)",
            app.state.container.settings.environment,
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(InvalidInputError)
    async def invalid_input(_: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"field": exc.field, "message": exc.message},
        )

    @app.exception_handler(EstimationError)
    async def estimation_failed(_: Request, exc: EstimationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ShareLinkError)
    async def bad_share_link(_: Request, exc: ShareLinkError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/days/{day}")
    async def get_day(day: date, request: Request) -> dict[str, object]:
        """Return entries, totals and goal progress for a day."""
        state_container: AppContainer = request.app.state.container
        return _day_payload(state_container.tracker_service.day_view(day))

    @app.post("/days/{day}/entries", status_code=status.HTTP_201_CREATED)
    async def add_entry(
        day: date, body: FoodEntryRequest, request: Request
    ) -> dict[str, object]:
        """Log a food entry for a day."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.tracker_service.add_food(day, body.to_draft())
        return _entry_payload(entry)

    @app.patch("/days/{day}/entries/{entry_id}")
    async def update_entry(
        day: date, entry_id: str, body: EntryUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Change the quantity or meal type of a logged entry."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.tracker_service.update_food(
            day, entry_id, quantity=body.quantity, meal_type=body.meal_type
        )
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _entry_payload(entry)

    @app.delete("/days/{day}/entries/{entry_id}")
    async def delete_entry(
        day: date, entry_id: str, request: Request
    ) -> dict[str, str]:
        """Remove a logged entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.tracker_service.remove_food(day, entry_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"status": "ok"}

    @app.post("/days/{day}/water")
    async def log_water(
        day: date, body: WaterRequest, request: Request
    ) -> dict[str, object]:
        """Add water intake for a day; negative amounts remove water."""
        state_container: AppContainer = request.app.state.container
        tracker = state_container.tracker_service
        intake = tracker.log_water(day, body.amount)
        view = tracker.day_view(day)
        return {
            "day": day.isoformat(),
            "intake": intake,
            "percent": view.water_percent,
        }

    @app.get("/plans/{day}")
    async def get_plan(day: date, request: Request) -> dict[str, object]:
        """Return the meal plan for a day."""
        state_container: AppContainer = request.app.state.container
        view = state_container.tracker_service.day_view(day)
        return {
            "day": day.isoformat(),
            "entries": [_entry_payload(entry) for entry in view.planned_entries],
            "calories": view.planned_calories,
        }

    @app.post("/plans/{day}/entries", status_code=status.HTTP_201_CREATED)
    async def add_plan_entry(
        day: date, body: FoodEntryRequest, request: Request
    ) -> dict[str, object]:
        """Add a food to the meal plan for a day."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.tracker_service.add_to_plan(day, body.to_draft())
        return _entry_payload(entry)

    @app.delete("/plans/{day}/entries/{entry_id}")
    async def delete_plan_entry(
        day: date, entry_id: str, request: Request
    ) -> dict[str, str]:
        """Remove a planned entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.tracker_service.remove_from_plan(day, entry_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"status": "ok"}

    @app.post("/plans/{day}/log")
    async def log_plan(day: date, request: Request) -> dict[str, object]:
        """Log every planned meal for a day."""
        state_container: AppContainer = request.app.state.container
        new_ids = state_container.tracker_service.log_plan(day)
        return {"day": day.isoformat(), "logged_ids": new_ids}

    @app.post("/plans/{day}/suggest")
    async def suggest_plan(
        day: date, request: Request, body: SuggestPlanRequest | None = None
    ) -> dict[str, object]:
        """Ask the AI service for a one-day plan around the day's goals."""
        state_container: AppContainer = request.app.state.container
        goals = state_container.tracker_service.day_view(day).goals
        targets = body or SuggestPlanRequest()
        suggestion = await state_container.estimation_service.suggest_day_plan(
            calories=targets.calories or goals.calories,
            protein=targets.protein or goals.protein,
            carbs=targets.carbs or goals.carbs,
            fat=targets.fat or goals.fat,
        )
        return {
            meal_type.value: [_estimate_payload(item) for item in items]
            for meal_type, items in suggestion.items()
        }

    @app.post("/plans/{day}/apply", status_code=status.HTTP_201_CREATED)
    async def apply_plan(
        day: date, body: DayPlanSuggestion, request: Request
    ) -> dict[str, object]:
        """Add a suggested plan to the meal plan for a day."""
        state_container: AppContainer = request.app.state.container
        entries = state_container.tracker_service.apply_suggestion(
            day, body.by_meal_type()
        )
        return {"entries": [_entry_payload(entry) for entry in entries]}

    @app.get("/goals")
    async def get_goals(request: Request) -> dict[str, object]:
        """Return base goals, the balancing switch and today's calorie goal."""
        state_container: AppContainer = request.app.state.container
        tracker = state_container.tracker_service
        return _goals_payload(tracker)

    @app.put("/goals")
    async def update_goals(body: GoalsRequest, request: Request) -> dict[str, object]:
        """Change one or more base goals."""
        state_container: AppContainer = request.app.state.container
        tracker = state_container.tracker_service
        tracker.update_goals(**body.provided())
        return _goals_payload(tracker)

    @app.put("/goals/weekly-balancing")
    async def set_weekly_balancing(
        body: WeeklyBalancingRequest, request: Request
    ) -> dict[str, object]:
        """Switch weekly calorie balancing on or off."""
        state_container: AppContainer = request.app.state.container
        tracker = state_container.tracker_service
        tracker.set_weekly_balancing(body.enabled)
        return _goals_payload(tracker)

    @app.get("/goals/adjustments")
    async def get_adjustments(request: Request) -> dict[str, object]:
        """Return the adjusted calorie goals for the rest of the week."""
        state_container: AppContainer = request.app.state.container
        tracker = state_container.tracker_service
        return {
            "enabled": tracker.weekly_balancing,
            "adjustments": dict(sorted(tracker.current_adjustments().items())),
        }

    @app.get("/progress")
    async def get_progress(
        request: Request, metric: str = "calories"
    ) -> dict[str, object]:
        """Return the last seven days of intake against goal."""
        state_container: AppContainer = request.app.state.container
        bars = state_container.tracker_service.weekly_progress(metric)
        return {"metric": metric, "days": [_bar_payload(bar) for bar in bars]}

    @app.get("/summary")
    async def get_summary(
        start: date,
        request: Request,
        days: int = Query(default=CHART_DAYS, gt=0, le=MAX_SUMMARY_DAYS),
    ) -> dict[str, object]:
        """Return daily totals and averages for a run of days."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.tracker_service.period_summary(start, days)
        return {
            "days": [
                {"day": item.day.isoformat(), **item.totals.to_dict()}
                for item in summary.daily
            ],
            "averages": {
                "calories": summary.avg_calories,
                "protein": summary.avg_protein,
                "carbs": summary.avg_carbs,
                "fat": summary.avg_fat,
            },
        }

    @app.get("/onboarding")
    async def get_onboarding(request: Request) -> dict[str, bool]:
        """Return whether onboarding has been finished."""
        state_container: AppContainer = request.app.state.container
        return {"complete": state_container.tracker_service.is_onboarding_complete()}

    @app.post("/onboarding")
    async def complete_onboarding(
        request: Request, body: OnboardingRequest | None = None
    ) -> dict[str, object]:
        """Save the goals chosen while onboarding and finish it."""
        state_container: AppContainer = request.app.state.container
        tracker = state_container.tracker_service
        if body is not None:
            values = body.provided()
            if values:
                tracker.update_goals(**values)
            if body.weekly_balancing is not None:
                tracker.set_weekly_balancing(body.weekly_balancing)
        tracker.complete_onboarding()
        return {"complete": True, **_goals_payload(tracker)}

    @app.delete("/onboarding")
    async def reset_onboarding(request: Request) -> dict[str, bool]:
        """Start onboarding again."""
        state_container: AppContainer = request.app.state.container
        state_container.tracker_service.reset_onboarding()
        return {"complete": False}

    @app.post("/estimates/text")
    async def estimate_text(
        body: TextEstimateRequest, request: Request
    ) -> dict[str, object]:
        """Estimate nutrition from a meal description."""
        state_container: AppContainer = request.app.state.container
        estimate = await state_container.estimation_service.estimate_from_text(
            body.description
        )
        return _estimate_payload(estimate)

    @app.post("/estimates/image")
    async def estimate_image(
        body: ImageEstimateRequest, request: Request
    ) -> dict[str, object]:
        """Estimate nutrition from a base64-encoded food photo."""
        state_container: AppContainer = request.app.state.container
        image_bytes, mime_type = _decode_image(body)
        estimate = await state_container.estimation_service.estimate_from_image(
            image_bytes, mime_type
        )
        return _estimate_payload(estimate)

    @app.get("/foods/search")
    async def search_foods(  # noqa: PLR0913
        request: Request,
        q: str = "",
        sort: SortKey = SortKey.DEFAULT,
        min_calories: float | None = Query(default=None),
        max_calories: float | None = Query(default=None),
        min_protein: float | None = Query(default=None),
        max_protein: float | None = Query(default=None),
        min_carbs: float | None = Query(default=None),
        max_carbs: float | None = Query(default=None),
        min_fat: float | None = Query(default=None),
        max_fat: float | None = Query(default=None),
    ) -> dict[str, object]:
        """Search foods by name, then filter and sort the results."""
        state_container: AppContainer = request.app.state.container
        results = await state_container.estimation_service.search_by_name(q)
        filters = SearchFilters(
            calories=Range(min_calories, max_calories),
            protein=Range(min_protein, max_protein),
            carbs=Range(min_carbs, max_carbs),
            fat=Range(min_fat, max_fat),
        )
        selected = filter_and_sort(results, filters, sort)
        return {
            "query": q,
            "total": len(results),
            "results": [_estimate_payload(item) for item in selected],
        }

    @app.get("/share/{day}")
    async def share_day(day: date, request: Request) -> dict[str, object]:
        """Create a share token for a day's summary."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.tracker_service.daily_summary(day)
        return {
            "data": encode_summary(summary),
            "summary": summary.model_dump(mode="json"),
        }

    @app.get("/share")
    async def read_share(data: str = "") -> dict[str, object]:
        """Decode a shared daily summary."""
        return decode_summary(data).model_dump(mode="json")

    return app


def _entry_payload(entry: FoodEntry) -> dict[str, object]:
    payload = entry.to_dict()
    payload["display_amount"] = entry.display_amount
    return payload


def _estimate_payload(estimate: NutritionEstimate) -> dict[str, object]:
    payload = estimate.model_dump(by_alias=True)
    serving_value, serving_unit = parse_serving_size(estimate.serving_size)
    payload["serving_value"] = serving_value
    payload["serving_unit"] = serving_unit
    return payload


def _progress_payload(progress: MacroProgress) -> dict[str, object]:
    return {
        "actual": progress.actual,
        "goal": progress.goal,
        "percent": progress.percent,
        "status": progress.status.value,
    }


def _bar_payload(bar: ProgressBar) -> dict[str, object]:
    return {
        "day": bar.day.isoformat(),
        "intake": bar.intake,
        "goal": bar.goal,
        "percent": bar.percent,
        "status": bar.status.value,
    }


def _day_payload(view: DayView) -> dict[str, object]:
    return {
        "day": view.day.isoformat(),
        "meals": [
            {
                "meal_type": group.meal_type.value,
                "calories": group.calories,
                "entries": [_entry_payload(entry) for entry in group.entries],
            }
            for group in view.meals
        ],
        "totals": view.totals.to_dict(),
        "goals": view.goals.to_dict(),
        "progress": {
            metric: _progress_payload(progress)
            for metric, progress in view.progress.items()
        },
        "water": {
            "intake": view.water_intake,
            "goal": view.goals.water,
            "percent": view.water_percent,
        },
        "plan": {
            "entries": [_entry_payload(entry) for entry in view.planned_entries],
            "calories": view.planned_calories,
        },
    }


def _goals_payload(tracker: TrackerService) -> dict[str, object]:
    today = tracker.today()
    return {
        "goals": tracker.goals.to_dict(),
        "weekly_balancing": tracker.weekly_balancing,
        "today": today.isoformat(),
        "today_calorie_goal": tracker.calorie_goal_for(today),
    }


def _decode_image(body: ImageEstimateRequest) -> tuple[bytes, str | None]:
    data = body.image_base64.strip()
    mime_type = body.mime_type
    if data.startswith("data:") and "," in data:
        header, data = data.split(",", 1)
        mime_type = mime_type or header[5:].split(";", 1)[0] or None
    try:
        return base64.b64decode(data, validate=True), mime_type
    except ValueError as exc:
        raise InvalidInputError("image_base64", "Must be base64 encoded.") from exc


