"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from nutrition_balance.config import Settings
from nutrition_balance.containers import AppContainer
from nutrition_balance.domain.entries import FoodDraft, MealType
from nutrition_balance.services.cache import InMemorySearchCache
from nutrition_balance.services.estimation import EstimationClient, EstimationService
from nutrition_balance.services.preferences import (
    PreferencesRepository,
    PreferencesService,
)
from nutrition_balance.services.rebalancing import Clock, WeeklyRebalancer
from nutrition_balance.services.tracker import TrackerService

TUESDAY = date(2024, 1, 2)
SUNDAY = date(2023, 12, 31)


@dataclass
class InMemoryPreferencesRepository(PreferencesRepository):
    """In-memory preference store for tests."""

    values: dict[str, str] = field(default_factory=dict)

    def load(self, key: str) -> str | None:
        return self.values.get(key)

    def save(self, key: str, value: str) -> None:
        self.values[key] = value


@dataclass
class FakeEstimationClient(EstimationClient):
    """Fake structured-output client returning queued payloads."""

    responses: list[object] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)
    error: Exception | None = None

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
        self.calls.append(
            {
                "model": model,
                "prompt": prompt,
                "schema_name": schema_name,
                "image_data_url": image_data_url,
            }
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@dataclass
class FakeClock:
    """Settable clock."""

    now: datetime

    def __call__(self) -> datetime:
        return self.now

    def set_day(self, day: date) -> None:
        self.now = datetime(day.year, day.month, day.day, 12, tzinfo=UTC)


def clock_on(day: date) -> FakeClock:
    return FakeClock(datetime(day.year, day.month, day.day, 12, tzinfo=UTC))


def make_draft(  # noqa: PLR0913
    name: str = "Oatmeal",
    calories: float = 100,
    protein: float = 5,
    carbs: float = 20,
    fat: float = 2,
    meal_type: MealType = MealType.BREAKFAST,
    quantity: float = 1.0,
) -> FoodDraft:
    return FoodDraft(
        name=name,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        meal_type=meal_type,
        quantity=quantity,
    )


def estimate_payload(
    name: str = "Apple", calories: float = 95, serving: str = "1 medium"
) -> dict[str, object]:
    return {
        "name": name,
        "calories": calories,
        "protein": 0.5,
        "carbs": 25,
        "fat": 0.3,
        "servingSize": serving,
    }


def build_tracker(
    repository: PreferencesRepository, clock: Clock
) -> TrackerService:
    return TrackerService(
        preferences=PreferencesService(repository),
        rebalancer=WeeklyRebalancer(clock),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def clock() -> FakeClock:
    return clock_on(TUESDAY)


@pytest.fixture
def preferences_repository() -> InMemoryPreferencesRepository:
    return InMemoryPreferencesRepository()


@pytest.fixture
def estimation_client() -> FakeEstimationClient:
    return FakeEstimationClient()


@pytest.fixture
def tracker_service(
    preferences_repository: InMemoryPreferencesRepository, clock: FakeClock
) -> TrackerService:
    return build_tracker(preferences_repository, clock)


@pytest.fixture
def estimation_service(
    settings: Settings, estimation_client: FakeEstimationClient
) -> EstimationService:
    return EstimationService(
        client=estimation_client,
        cache=InMemorySearchCache(),
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )


@pytest.fixture
def container(
    settings: Settings,
    tracker_service: TrackerService,
    estimation_service: EstimationService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        preferences_service=tracker_service.preferences,
        tracker_service=tracker_service,
        estimation_service=estimation_service,
        close_resources=close_resources,
    )
