"""Goal status classification."""

from nutrition_balance.domain.goals import GoalStatus

OVER_RATIO = 1.10
UNDER_RATIO = 0.90


def classify(actual: float, goal: float) -> GoalStatus:
    """Classify intake against a goal using a fixed 10% band."""
    if goal <= 0:
        return GoalStatus.NEUTRAL
    ratio = actual / goal
    if ratio > OVER_RATIO:
        return GoalStatus.OVER
    if ratio < UNDER_RATIO:
        return GoalStatus.UNDER
    return GoalStatus.ON_TARGET


def progress_percent(actual: float, goal: float, cap: float = 100.0) -> float:
    """Return intake as a percentage of goal, clamped to ``[0, cap]``."""
    if goal <= 0:
        return 0.0
    return min(max(actual / goal * 100.0, 0.0), cap)
