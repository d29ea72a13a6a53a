from datetime import datetime, timedelta

import pytest

from fitmatch.metrics import (
    compute_average_pace,
    compute_consistency_score,
    compute_fitness_metrics,
    favorite_activities,
    is_pace_eligible,
)
from fitmatch.schema import FitnessMetrics

# Sunday
FIRST_SUNDAY = datetime(2024, 3, 3, 7, 30)


def test_empty_history_yields_zero_metrics():
    metrics = compute_fitness_metrics([], window_days=90)

    assert metrics == FitnessMetrics()
    assert metrics.weekly_distance == 0
    assert metrics.weekly_activities == 0
    assert metrics.average_pace is None
    assert metrics.activity_types == frozenset()
    assert metrics.consistency_score == 0


def test_window_must_be_positive(make_activity):
    with pytest.raises(ValueError):
        compute_fitness_metrics([make_activity()], window_days=0)


def test_weekly_rates_use_window_weeks(make_activity):
    activities = [
        make_activity(distance=5000, start_date=FIRST_SUNDAY + timedelta(weeks=i))
        for i in range(13)
    ]

    metrics = compute_fitness_metrics(activities, window_days=91)

    assert metrics.weekly_distance == pytest.approx(5000.0)
    assert metrics.weekly_activities == pytest.approx(1.0)
    assert metrics.total_distance == pytest.approx(65000.0)
    assert metrics.longest_activity == pytest.approx(5000.0)
    assert metrics.activity_types == {"Run"}


def test_pace_only_counts_eligible_activities(make_activity):
    activities = [
        make_activity(type="Run", distance=5000, average_speed=2.5),   # 400 s/km
        make_activity(type="Walk", distance=1000, average_speed=1.25),  # 800 s/km
        make_activity(type="Run", distance=400, average_speed=5.0),    # too short
        make_activity(type="Run", distance=500, average_speed=5.0),    # not strictly above 500 m
        make_activity(type="Ride", distance=30000, average_speed=8.0),
        make_activity(type="Hike", distance=6000, average_speed=0.0),
    ]

    assert [is_pace_eligible(a) for a in activities] == [True, True, False, False, False, False]
    assert compute_average_pace(activities) == pytest.approx(600.0)


def test_pace_is_none_without_eligible_activity(make_activity):
    activities = [make_activity(type="Ride", distance=40000, average_speed=8.0),
                  make_activity(type="Swim", distance=1500, average_speed=0.8)]

    metrics = compute_fitness_metrics(activities)

    assert metrics.average_pace is None
    assert metrics.weekly_distance > 0


def test_perfectly_regular_history_scores_full_consistency(make_activity):
    activities = [
        make_activity(start_date=FIRST_SUNDAY + timedelta(weeks=i)) for i in range(13)
    ]

    assert compute_consistency_score(activities, window_days=91) == 100


def test_single_burst_week_scores_low_consistency(make_activity):
    activities = [make_activity(start_date=FIRST_SUNDAY + timedelta(days=i)) for i in range(5)]

    # 1 of 13 weeks active, one week so zero spread: 0.6 * 7.69 + 0.4 * 100
    assert compute_consistency_score(activities, window_days=90) == 45


def test_weeks_start_on_sunday(make_activity):
    saturday = datetime(2024, 6, 1, 9)
    sunday = datetime(2024, 6, 2, 9)
    monday = datetime(2024, 6, 3, 9)

    split = [make_activity(start_date=saturday), make_activity(start_date=sunday)]
    same = [make_activity(start_date=sunday), make_activity(start_date=monday)]

    assert compute_consistency_score(split, window_days=14) == 100
    assert compute_consistency_score(same, window_days=14) == 70


def test_uneven_weeks_are_penalized(make_activity):
    even = [make_activity(start_date=FIRST_SUNDAY + timedelta(weeks=w)) for w in range(2)
            for _ in range(2)]
    uneven = (
        [make_activity(start_date=FIRST_SUNDAY) for _ in range(3)]
        + [make_activity(start_date=FIRST_SUNDAY + timedelta(weeks=1))]
    )

    assert compute_consistency_score(uneven, window_days=14) < compute_consistency_score(
        even, window_days=14
    )


def test_consistency_is_bounded(make_activity):
    activities = [make_activity(start_date=FIRST_SUNDAY + timedelta(days=i)) for i in range(60)]

    score = compute_fitness_metrics(activities, window_days=7).consistency_score

    assert 0 <= score <= 100


def test_favorite_activities_by_frequency(make_activity):
    activities = (
        [make_activity(type="Ride")] * 3
        + [make_activity(type="Run")] * 5
        + [make_activity(type="Swim")]
    )

    assert favorite_activities(activities) == ["Run", "Ride", "Swim"]
    assert favorite_activities(activities, top_n=1) == ["Run"]
