"""Tracker service holding the food ledgers, water log and weekly goals."""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date, timedelta

from nutrition_balance.domain.entries import (
    FoodDraft,
    FoodEntry,
    Ledger,
    MealType,
    date_key,
)
from nutrition_balance.domain.errors import InvalidInputError
from nutrition_balance.domain.estimates import NutritionEstimate
from nutrition_balance.domain.goals import (
    BaseGoals,
    MacroProgress,
    NutritionTotals,
    ProgressBar,
)
from nutrition_balance.domain.share import (
    DailySummary,
    SharedFoodItem,
    SharedGoals,
    SharedTotals,
)
from nutrition_balance.services.aggregation import (
    PeriodSummary,
    daily_totals,
    summarize_period,
    totals,
)
from nutrition_balance.services.plans import apply_suggested_plan, promote
from nutrition_balance.services.preferences import PreferencesService, parse_goal
from nutrition_balance.services.rebalancing import WeeklyRebalancer, prune_past
from nutrition_balance.services.status import classify, progress_percent

CHART_DAYS = 7
CHART_PERCENT_CAP = 150.0
MAX_SUMMARY_DAYS = 366
MACRO_METRICS = ("calories", "protein", "carbs", "fat")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MealGroup:
    """Entries of one meal type within a day."""

    meal_type: MealType
    entries: tuple[FoodEntry, ...]
    calories: float


@dataclass(frozen=True)
class DayView:
    """Everything needed to render one tracked day."""

    day: date
    meals: list[MealGroup]
    totals: NutritionTotals
    goals: BaseGoals
    progress: dict[str, MacroProgress]
    water_intake: float
    water_percent: float
    planned_entries: tuple[FoodEntry, ...]
    planned_calories: float


@dataclass
class TrackerService:
    """Application service for logging, planning and goal tracking.

    Goal adjustments are derived state: they are recomputed from the logged
    ledger, the base calorie goal and the balancing switch after every
    change to any of them.
    """

    preferences: PreferencesService
    rebalancer: WeeklyRebalancer
    logged: Ledger = field(default_factory=Ledger)
    plans: Ledger = field(default_factory=Ledger)
    water: dict[str, float] = field(default_factory=dict)
    adjustments: dict[str, float] = field(default_factory=dict)
    computed_on: date | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.goals = self.preferences.load_goals()
        self.weekly_balancing = self.preferences.is_weekly_balancing_enabled()
        self.onboarding_complete = self.preferences.is_onboarding_complete()
        self._recompute()

    def today(self) -> date:
        """Return the current local calendar day."""
        return self.rebalancer.today()

    def add_food(self, day: date, draft: FoodDraft) -> FoodEntry:
        """Log a new entry for a day."""
        entry = FoodEntry.from_draft(draft)
        self.logged = self.logged.append(date_key(day), [entry])
        self._recompute()
        return entry

    def update_food(
        self,
        day: date,
        entry_id: str,
        *,
        quantity: float | None = None,
        meal_type: MealType | None = None,
    ) -> FoodEntry | None:
        """Edit a logged entry's quantity or meal type."""
        key = date_key(day)
        if self.logged.find(key, entry_id) is None:
            return None
        self.logged = self.logged.replace_entry(
            key, entry_id, quantity=quantity, meal_type=meal_type
        )
        self._recompute()
        return self.logged.find(key, entry_id)

    def remove_food(self, day: date, entry_id: str) -> bool:
        """Remove a logged entry; return False if it does not exist."""
        key = date_key(day)
        if self.logged.find(key, entry_id) is None:
            return False
        self.logged = self.logged.remove(key, entry_id)
        self._recompute()
        return True

    def add_to_plan(self, day: date, draft: FoodDraft) -> FoodEntry:
        """Add an entry to a day's meal plan."""
        entry = FoodEntry.from_draft(draft)
        self.plans = self.plans.append(date_key(day), [entry])
        return entry

    def remove_from_plan(self, day: date, entry_id: str) -> bool:
        """Remove a planned entry; return False if it does not exist."""
        key = date_key(day)
        if self.plans.find(key, entry_id) is None:
            return False
        self.plans = self.plans.remove(key, entry_id)
        return True

    def log_plan(self, day: date) -> list[str]:
        """Log every planned entry for a day and return the new entry ids."""
        self.logged, new_ids = promote(self.plans, self.logged, date_key(day))
        if new_ids:
            _logger.info("Logged %s planned entries for %s", len(new_ids), day)
            self._recompute()
        return new_ids

    def apply_suggestion(
        self, day: date, suggestion: dict[MealType, list[NutritionEstimate]]
    ) -> list[FoodEntry]:
        """Add an AI-suggested day plan to the meal plan for a day."""
        self.plans, entries = apply_suggested_plan(
            self.plans, date_key(day), suggestion
        )
        return entries

    def log_water(self, day: date, amount: float) -> float:
        """Add (or subtract) water for a day; intake never drops below zero."""
        if isinstance(amount, bool) or not math.isfinite(amount):
            raise InvalidInputError("amount", "Must be a number.")
        key = date_key(day)
        self.water[key] = max(0.0, self.water.get(key, 0.0) + amount)
        return self.water[key]

    def update_goals(self, **values: object) -> BaseGoals:
        """Validate and persist new goal values given by name."""
        unknown = set(values) - set(BaseGoals.__dataclass_fields__)
        if unknown:
            raise InvalidInputError(sorted(unknown)[0], "Unknown goal.")
        parsed = {name: parse_goal(name, value) for name, value in values.items()}
        previous_calories = self.goals.calories
        self.goals = replace(self.goals, **parsed)
        self.preferences.save_goals(self.goals)
        if self.goals.calories != previous_calories:
            self._recompute()
        return self.goals

    def set_weekly_balancing(self, enabled: bool) -> None:
        """Switch weekly balancing on or off."""
        self.weekly_balancing = enabled
        self.preferences.set_weekly_balancing(enabled)
        self._recompute()

    def is_onboarding_complete(self) -> bool:
        """Return True once onboarding has been finished."""
        return self.onboarding_complete

    def complete_onboarding(self) -> None:
        """Finish onboarding so adjusted goals start being shown."""
        self.preferences.set_onboarding_complete(True)
        self.onboarding_complete = True
        _logger.info("Onboarding completed")

    def reset_onboarding(self) -> None:
        """Return to the onboarding state; goals and ledgers are kept."""
        self.preferences.set_onboarding_complete(False)
        self.onboarding_complete = False
        _logger.info("Onboarding reset")

    def current_adjustments(self) -> dict[str, float]:
        """Return the stored adjustments, minus any for days already past.

        When the calendar day has moved on since the last recompute, keys
        before today are dropped. Remaining days keep their stored values.
        """
        today = self.today()
        if today != self.computed_on:
            self.adjustments = prune_past(self.adjustments, today)
            self.computed_on = today
        return self.adjustments

    def calorie_goal_for(self, day: date) -> float:
        """Return the calorie goal shown for a day.

        Adjusted goals are held back until onboarding is complete.
        """
        enabled = self.weekly_balancing and self.onboarding_complete
        return WeeklyRebalancer.goal_for(
            date_key(day), self.goals.calories, enabled, self.current_adjustments()
        )

    def day_view(self, day: date) -> DayView:
        """Return entries, totals, goals and progress for a day."""
        key = date_key(day)
        entries = self.logged.entries_for(key)
        day_totals = totals(entries)
        goals = replace(self.goals, calories=self.calorie_goal_for(day))
        progress = {
            metric: _progress(
                metric, getattr(day_totals, metric), getattr(goals, metric)
            )
            for metric in MACRO_METRICS
        }
        water_intake = self.water.get(key, 0.0)
        planned = self.plans.entries_for(key)
        return DayView(
            day=day,
            meals=_group_meals(entries),
            totals=day_totals,
            goals=goals,
            progress=progress,
            water_intake=water_intake,
            water_percent=progress_percent(water_intake, goals.water),
            planned_entries=planned,
            planned_calories=totals(planned).calories,
        )

    def weekly_progress(self, metric: str = "calories") -> list[ProgressBar]:
        """Return intake against goal for the last seven days, oldest first."""
        if metric not in MACRO_METRICS:
            choices = ", ".join(MACRO_METRICS)
            raise InvalidInputError("metric", f"Must be one of {choices}.")
        today = self.today()
        adjustments = self.current_adjustments()
        bars = []
        for offset in range(CHART_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            key = date_key(day)
            intake = getattr(daily_totals(self.logged, key), metric)
            if metric == "calories":
                goal = WeeklyRebalancer.goal_for(
                    key, self.goals.calories, self.weekly_balancing, adjustments
                )
            else:
                goal = getattr(self.goals, metric)
            bars.append(
                ProgressBar(
                    day=day,
                    intake=intake,
                    goal=goal,
                    percent=progress_percent(intake, goal, cap=CHART_PERCENT_CAP),
                    status=classify(intake, goal),
                )
            )
        return bars

    def period_summary(self, start: date, days: int = CHART_DAYS) -> PeriodSummary:
        """Return per-day totals and averages for a run of days."""
        if days <= 0:
            raise InvalidInputError("days", "Must be > 0.")
        if days > MAX_SUMMARY_DAYS:
            raise InvalidInputError("days", f"Must be <= {MAX_SUMMARY_DAYS}.")
        try:
            start + timedelta(days=days - 1)
        except OverflowError as exc:
            raise InvalidInputError("start", "Date range is out of bounds.") from exc
        return summarize_period(self.logged, start, days)

    def daily_summary(self, day: date) -> DailySummary:
        """Build the shareable summary of a day."""
        view = self.day_view(day)
        return DailySummary(
            date=day,
            food_items=[
                SharedFoodItem(**entry.to_dict())
                for entry in self.logged.entries_for(date_key(day))
            ],
            totals=SharedTotals(**view.totals.to_dict()),
            goals=SharedGoals(**view.goals.to_dict()),
            water_intake=view.water_intake,
        )

    def _recompute(self) -> None:
        self.adjustments = self.rebalancer.recompute(
            self.logged, self.goals.calories, self.weekly_balancing, self.adjustments
        )
        self.computed_on = self.today()


def _progress(metric: str, actual: float, goal: float) -> MacroProgress:
    return MacroProgress(
        metric=metric,
        actual=actual,
        goal=goal,
        percent=progress_percent(actual, goal),
        status=classify(actual, goal),
    )


def _group_meals(entries: tuple[FoodEntry, ...]) -> list[MealGroup]:
    groups = []
    for meal_type in MealType:
        meal_entries = tuple(entry for entry in entries if entry.meal_type == meal_type)
        if meal_entries:
            groups.append(
                MealGroup(
                    meal_type=meal_type,
                    entries=meal_entries,
                    calories=totals(meal_entries).calories,
                )
            )
    return groups
