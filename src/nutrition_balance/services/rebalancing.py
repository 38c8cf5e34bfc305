"""Weekly calorie goal rebalancing.

When weekly balancing is enabled, the cumulative calorie surplus (or deficit)
of the days elapsed so far this week, today included, is spread evenly over
the days still ahead. Weeks run Sunday (index 0) through Saturday (index 6).

Every remaining day receives the same adjusted goal::

    max(0, base_goal - surplus / days_remaining)

This is plain proportional redistribution over the remaining horizon. There
is no per-day weighting and no decay toward the end of the week.

A day's "planned" goal is its stored adjustment when one exists, otherwise
the base goal. Today's adjustment is the value it received while it was
still a future day; a recompute never assigns a new value to today itself.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from nutrition_balance.domain.entries import Ledger, date_key
from nutrition_balance.services.aggregation import daily_totals

DAYS_IN_WEEK = 7

Clock = Callable[[], datetime]

_logger = logging.getLogger(__name__)


def system_clock(timezone_name: str) -> Clock:
    """Return a clock reading the current time in the given timezone."""
    tz = ZoneInfo(timezone_name)

    def now() -> datetime:
        return datetime.now(tz=tz)

    return now


def week_index(day: date) -> int:
    """Return the day's position in a Sunday-first week (Sunday=0)."""
    return (day.weekday() + 1) % DAYS_IN_WEEK


def start_of_week(day: date) -> date:
    """Return the most recent Sunday on or before ``day``."""
    return day - timedelta(days=week_index(day))


def rebalance_week(
    logged: Ledger,
    base_goal: float,
    previous: Mapping[str, float],
    today: date,
) -> dict[str, float]:
    """Return adjusted calorie goals for the rest of the current week."""
    today_index = week_index(today)
    week_start = start_of_week(today)

    total_consumed = 0.0
    total_planned = 0.0
    for offset in range(today_index + 1):
        key = date_key(week_start + timedelta(days=offset))
        total_consumed += daily_totals(logged, key).calories
        total_planned += previous.get(key, base_goal)

    surplus = total_consumed - total_planned
    days_remaining = DAYS_IN_WEEK - 1 - today_index

    adjustments = dict(previous)
    if days_remaining > 0:
        adjusted = max(0.0, base_goal - surplus / days_remaining)
        for offset in range(today_index + 1, DAYS_IN_WEEK):
            adjustments[date_key(week_start + timedelta(days=offset))] = adjusted

    return prune_past(adjustments, today)


def prune_past(adjustments: Mapping[str, float], today: date) -> dict[str, float]:
    """Drop adjustments for days strictly before ``today``."""
    today_key = date_key(today)
    return {key: goal for key, goal in adjustments.items() if key >= today_key}


@dataclass
class WeeklyRebalancer:
    """Derives goal adjustments from the logged ledger and the clock."""

    clock: Clock

    def today(self) -> date:
        """Return the current local calendar day."""
        return self.clock().date()

    def recompute(
        self,
        logged: Ledger,
        base_goal: float,
        enabled: bool,
        previous: Mapping[str, float],
    ) -> dict[str, float]:
        """Return the adjustment mapping for the current state."""
        if not enabled:
            return {}
        adjustments = rebalance_week(logged, base_goal, previous, self.today())
        _logger.debug(
            "Weekly goals recomputed: base=%s adjustments=%s", base_goal, adjustments
        )
        return adjustments

    @staticmethod
    def goal_for(
        key: str,
        base_goal: float,
        enabled: bool,
        adjustments: Mapping[str, float],
    ) -> float:
        """Return the calorie goal to display for a date."""
        if not enabled:
            return base_goal
        return adjustments.get(key, base_goal)
