from dataclasses import replace

import pytest

from fitmatch.fusion import COMPATIBILITY_WEIGHTS, CompatibilityScorer, FactorWeights, score
from fitmatch.schema import FitnessMetrics

NYC = (40.7128, -74.0060)
LA = (34.0522, -118.2437)


@pytest.fixture
def user_a(make_profile):
    return make_profile("a", age=30, location=NYC)


@pytest.fixture
def sedentary_metrics():
    return FitnessMetrics(
        weekly_distance=2000.0,
        weekly_activities=1.0,
        average_pace=480.0,
        activity_types=frozenset({"Yoga", "Swim"}),
        consistency_score=20,
    )


def test_identical_users_score_high(user_a, make_profile, runner_metrics):
    user_b = make_profile("b", age=30, location=NYC)

    result = score(user_a, runner_metrics, user_b, runner_metrics)

    assert result.score > 80
    assert result.score == 100
    assert result.factors == {
        "activity_overlap": 100,
        "performance_similarity": 100,
        "location_proximity": 100,
        "age_compatibility": 100,
    }


def test_dissimilar_distant_users_score_low(user_a, make_profile, runner_metrics,
                                            sedentary_metrics):
    user_c = make_profile("c", age=55, location=LA)

    result = score(user_a, runner_metrics, user_c, sedentary_metrics)

    assert result.score < 30
    assert result.activity_overlap == 0
    assert result.location_proximity == 0
    assert result.age_compatibility == 0
    # 0.4 * 0.1 + 0.4 * 0.25 + 0.2 * 0.625 = 0.265
    assert result.performance_similarity in (26, 27)
    assert result.score == 8


def test_older_walker_in_los_angeles_scores_low(user_a, make_profile, runner_metrics):
    walker = make_profile("c", age=45, location=LA)
    walker_metrics = FitnessMetrics(
        weekly_distance=5000.0,
        weekly_activities=1.0,
        average_pace=600.0,
        activity_types=frozenset({"Walk"}),
        consistency_score=10,
    )

    result = score(user_a, runner_metrics, walker, walker_metrics)

    assert result.score < 30
    assert result.activity_overlap == 0
    assert result.location_proximity == 0
    assert result.age_compatibility == 25


def test_score_is_symmetric(user_a, make_profile, runner_metrics, sedentary_metrics):
    user_c = make_profile("c", age=41, location=(40.9, -74.1))

    forward = score(user_a, runner_metrics, user_c, sedentary_metrics)
    backward = score(user_c, sedentary_metrics, user_a, runner_metrics)

    assert forward == backward


def test_all_factors_in_range(user_a, make_profile, runner_metrics, sedentary_metrics):
    user_c = make_profile("c", age=35, location=(41.0, -74.0))
    result = score(user_a, runner_metrics, user_c, sedentary_metrics, {"Run"}, {"Run", "Yoga"})

    for value in [result.score, *result.factors.values()]:
        assert 0 <= value <= 100
    assert result.activity_overlap == 50


def test_explicit_types_override_metrics_types(user_a, make_profile, runner_metrics):
    user_b = make_profile("b", age=30, location=NYC)
    other = replace(runner_metrics, activity_types=frozenset({"Yoga"}))

    fallback = score(user_a, runner_metrics, user_b, other)
    recent = score(user_a, runner_metrics, user_b, other, {"Run"}, {"Run"})

    assert fallback.activity_overlap == 0
    assert recent.activity_overlap == 100
    assert recent.score - fallback.score == 40


def test_empty_activity_sets_give_zero_overlap(user_a, make_profile, runner_metrics):
    user_b = make_profile("b", age=30, location=NYC)

    result = score(user_a, runner_metrics, user_b, runner_metrics, set(), set())

    assert result.activity_overlap == 0
    assert result.score == 60


def test_precomputed_distance_is_used(user_a, make_profile, runner_metrics):
    user_b = make_profile("b", age=30, location=NYC)

    result = CompatibilityScorer().score(user_a, runner_metrics, user_b, runner_metrics,
                                         distance_km=50.0)

    assert result.location_proximity == 50


def test_weights_are_fixed():
    assert COMPATIBILITY_WEIGHTS.to_dict() == {
        "activity_overlap": 0.4,
        "performance_similarity": 0.3,
        "location_proximity": 0.2,
        "age_compatibility": 0.1,
    }
    assert CompatibilityScorer().get_effective_weights() == COMPATIBILITY_WEIGHTS.to_dict()
    with pytest.raises(ValueError):
        FactorWeights(activity_overlap=0.5).validate()
