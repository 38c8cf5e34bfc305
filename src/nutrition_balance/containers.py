"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_balance.adapters.openai_estimation_client import (
    OpenAIEstimationClient,
)
from nutrition_balance.adapters.supabase_preferences_repository import (
    SupabasePreferencesRepository,
)
from nutrition_balance.config import Settings
from nutrition_balance.services.cache import InMemorySearchCache
from nutrition_balance.services.estimation import EstimationService
from nutrition_balance.services.preferences import PreferencesService
from nutrition_balance.services.rebalancing import WeeklyRebalancer, system_clock
from nutrition_balance.services.tracker import TrackerService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    preferences_service: PreferencesService
    tracker_service: TrackerService
    estimation_service: EstimationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    preferences_repository = SupabasePreferencesRepository(
        supabase_client, table_name=resolved_settings.preferences_table
    )
    preferences_service = PreferencesService(preferences_repository)
    tracker_service = TrackerService(
        preferences=preferences_service,
        rebalancer=WeeklyRebalancer(system_clock(resolved_settings.timezone)),
    )
    openai_client = OpenAIEstimationClient.create(resolved_settings.openai_api_key)
    estimation_service = EstimationService(
        client=openai_client,
        cache=InMemorySearchCache(),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        search_ttl_seconds=resolved_settings.search_cache_ttl_seconds,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        preferences_service=preferences_service,
        tracker_service=tracker_service,
        estimation_service=estimation_service,
        close_resources=close_resources,
    )
