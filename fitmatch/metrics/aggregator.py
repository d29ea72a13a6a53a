"""
Fitness metrics aggregation from raw activity history.

This module converts a window of activity records into the normalized
metrics used by the admission gate and the compatibility scorer.

Metric Formulas (window of W days, W/7 weeks):
    weekly_distance   = sum(distance) / (W / 7)
    weekly_activities = count / (W / 7)
    average_pace      = mean(1000 / average_speed) over pace-eligible activities
    consistency       = round(0.6 * weekly + 0.4 * distribution)

Pace-eligible activities are Run/Walk/Hike with a positive speed and more
than 500 m of distance; shorter recordings are treated as GPS noise.

The aggregator does not query any store: the caller selects the window
of activities and passes its length.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..schema import ActivityRecord, FitnessMetrics, PACE_ACTIVITY_TYPES
from ..utils import clamp, round_half_up, week_start

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 90
MIN_PACE_DISTANCE_METERS = 500.0

WEEKLY_CONSISTENCY_WEIGHT = 0.6
DISTRIBUTION_CONSISTENCY_WEIGHT = 0.4
STD_PENALTY_PER_ACTIVITY = 20.0


def compute_fitness_metrics(
    activities: Sequence[ActivityRecord],
    window_days: int = DEFAULT_WINDOW_DAYS
) -> FitnessMetrics:
    """
    Compute fitness metrics from a window of activities.

    Args:
        activities: Activity records inside the selected window
        window_days: Length of the window in days (default: 90)

    Returns:
        FitnessMetrics instance. Empty input yields all-zero metrics with
        average_pace None and consistency_score 0.

    Raises:
        ValueError: If window_days is not positive
    """
    if window_days <= 0:
        raise ValueError(f"window_days must be positive, got {window_days}")

    if not activities:
        return FitnessMetrics()

    weeks_in_window = window_days / 7

    distances = np.array([a.distance for a in activities], dtype=float)
    total_distance = float(distances.sum())

    metrics = FitnessMetrics(
        weekly_distance=total_distance / weeks_in_window,
        weekly_activities=len(activities) / weeks_in_window,
        average_pace=compute_average_pace(activities),
        activity_types=frozenset(a.type for a in activities),
        total_distance=total_distance,
        longest_activity=float(distances.max()),
        consistency_score=compute_consistency_score(activities, window_days),
    )

    logger.debug(
        f"Computed metrics from {len(activities)} activities over {window_days} days: "
        f"weekly_distance={metrics.weekly_distance:.1f}m, "
        f"consistency={metrics.consistency_score}"
    )
    return metrics


def is_pace_eligible(activity: ActivityRecord) -> bool:
    """Whether an activity contributes to the average pace."""
    return (
        activity.type in PACE_ACTIVITY_TYPES
        and activity.average_speed > 0
        and activity.distance > MIN_PACE_DISTANCE_METERS
    )


def compute_average_pace(activities: Iterable[ActivityRecord]) -> Optional[float]:
    """
    Mean pace in seconds/km over pace-eligible activities.

    Each activity is weighted equally (not by distance).

    Returns:
        Average pace, or None if no activity qualifies
    """
    paces = [1000.0 / a.average_speed for a in activities if is_pace_eligible(a)]
    if not paces:
        return None
    return float(np.mean(paces))


def compute_consistency_score(
    activities: Sequence[ActivityRecord],
    window_days: int = DEFAULT_WINDOW_DAYS
) -> int:
    """
    Score (0-100) how evenly activity is spread across calendar weeks.

    Weeks start on Sunday. Two components are blended:
    - weekly: share of weeks in the window with at least one activity
    - distribution: 100 - 20 * population std-dev of per-week counts

    Args:
        activities: Activity records inside the window
        window_days: Window length in days

    Returns:
        Integer consistency score clamped to [0, 100]
    """
    if not activities:
        return 0

    per_week = Counter(week_start(a.start_date) for a in activities)

    total_weeks = max(1, round_half_up(window_days / 7))
    active_weeks = len(per_week)
    weekly_consistency = active_weeks / total_weeks * 100

    counts = np.array(list(per_week.values()), dtype=float)
    std_dev = float(np.std(counts))  # population (ddof=0)
    distribution_consistency = max(0.0, 100 - std_dev * STD_PENALTY_PER_ACTIVITY)

    blended = (
        WEEKLY_CONSISTENCY_WEIGHT * weekly_consistency
        + DISTRIBUTION_CONSISTENCY_WEIGHT * distribution_consistency
    )
    return int(clamp(round_half_up(blended), 0, 100))


def favorite_activities(
    activities: Iterable[ActivityRecord],
    top_n: int = 5
) -> List[str]:
    """
    Activity types ranked by frequency, most frequent first.

    A display convenience; membership checks use FitnessMetrics.activity_types.
    Ties keep first-seen order.
    """
    counts = Counter(a.type for a in activities)
    return [activity_type for activity_type, _ in counts.most_common(top_n)]
