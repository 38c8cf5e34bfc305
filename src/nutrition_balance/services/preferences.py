"""Goal and preference settings service."""

import json
import logging
import math
from dataclasses import dataclass
from typing import Protocol

from nutrition_balance.domain.errors import InvalidInputError
from nutrition_balance.domain.goals import BaseGoals

CALORIE_GOAL_KEY = "calorieGoal"
PROTEIN_GOAL_KEY = "proteinGoal"
CARBS_GOAL_KEY = "carbsGoal"
FAT_GOAL_KEY = "fatGoal"
WATER_GOAL_KEY = "waterGoal"
WEEKLY_BALANCING_KEY = "weeklyTargetEnabled"
ONBOARDING_KEY = "onboardingComplete"

_GOAL_KEYS = {
    "calories": CALORIE_GOAL_KEY,
    "protein": PROTEIN_GOAL_KEY,
    "carbs": CARBS_GOAL_KEY,
    "fat": FAT_GOAL_KEY,
    "water": WATER_GOAL_KEY,
}

_DEFAULT_GOALS = BaseGoals()

_logger = logging.getLogger(__name__)


class PreferencesRepository(Protocol):
    """Key-value persistence for user preferences."""

    def load(self, key: str) -> str | None:
        """Return the stored raw value for a key, if any."""

    def save(self, key: str, value: str) -> None:
        """Store the raw value for a key."""


@dataclass
class PreferencesService:
    """Loads and saves goals and flags, falling back to defaults."""

    repository: PreferencesRepository

    def load_goals(self) -> BaseGoals:
        """Return stored goals, using defaults for missing or corrupt values."""
        values = {
            name: self._load_number(key, getattr(_DEFAULT_GOALS, name))
            for name, key in _GOAL_KEYS.items()
        }
        return BaseGoals(**values)

    def save_goals(self, goals: BaseGoals) -> None:
        """Persist every goal value."""
        for name, key in _GOAL_KEYS.items():
            self.repository.save(key, json.dumps(getattr(goals, name)))

    def is_weekly_balancing_enabled(self) -> bool:
        """Return True when weekly balancing is switched on."""
        return self._load_bool(WEEKLY_BALANCING_KEY, default=False)

    def set_weekly_balancing(self, enabled: bool) -> None:
        """Persist the weekly balancing switch."""
        self.repository.save(WEEKLY_BALANCING_KEY, json.dumps(enabled))

    def is_onboarding_complete(self) -> bool:
        """Return True once the user has finished onboarding."""
        return self._load_bool(ONBOARDING_KEY, default=False)

    def set_onboarding_complete(self, complete: bool) -> None:
        """Mark onboarding as finished or pending."""
        self.repository.save(ONBOARDING_KEY, json.dumps(complete))

    def _load_number(self, key: str, default: float) -> float:
        value = self._load_json(key)
        if value is None:
            return default
        if (
            isinstance(value, bool)
            or not isinstance(value, int | float)
            or not math.isfinite(value)
        ):
            _logger.warning("Ignoring malformed preference %s=%r", key, value)
            return default
        return float(value)

    def _load_bool(self, key: str, *, default: bool) -> bool:
        value = self._load_json(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            _logger.warning("Ignoring malformed preference %s=%r", key, value)
            return default
        return value

    def _load_json(self, key: str) -> object | None:
        raw = self.repository.load(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            _logger.warning("Ignoring unreadable preference %s", key)
            return None


def parse_goal(field: str, value: object) -> float:
    """Validate user-entered goal input and return it as a float."""
    if isinstance(value, bool):
        raise InvalidInputError(field, "Must be a number.")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as exc:
            raise InvalidInputError(field, "Must be a number.") from exc
    if not isinstance(value, int | float) or not math.isfinite(value):
        raise InvalidInputError(field, "Must be a number.")
    if value <= 0:
        raise InvalidInputError(field, "Must be > 0.")
    return float(value)
