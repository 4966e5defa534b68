"""Baseline deviation computation module."""

from deviation.baselines.interface import DeviationCalculator
from deviation.baselines.registry import CalculatorRegistry
from deviation.baselines.sampler import MAX_MATCH_DISTANCE_SECONDS, fetch_window, select_closest
from deviation.baselines.week_over_week import (
    ONE_WEEK_SECONDS,
    WeekOverWeekCalculator,
    WeekOverWeekOutcome,
    compute_mean,
    week_anchors,
)

__all__ = [
    "CalculatorRegistry",
    "DeviationCalculator",
    "MAX_MATCH_DISTANCE_SECONDS",
    "ONE_WEEK_SECONDS",
    "WeekOverWeekCalculator",
    "WeekOverWeekOutcome",
    "compute_mean",
    "fetch_window",
    "select_closest",
    "week_anchors",
]
