"""Metrics aggregation module: activity history -> fitness metrics."""

from .aggregator import (
    compute_fitness_metrics,
    compute_average_pace,
    compute_consistency_score,
    favorite_activities,
    is_pace_eligible,
    DEFAULT_WINDOW_DAYS,
)
from .cache import MetricsCache

__all__ = [
    "compute_fitness_metrics",
    "compute_average_pace",
    "compute_consistency_score",
    "favorite_activities",
    "is_pace_eligible",
    "DEFAULT_WINDOW_DAYS",
    "MetricsCache",
]
