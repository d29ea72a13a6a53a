import json

import numpy as np
import pytest

from fitmatch.evaluation import (
    compute_score_distribution_stats,
    create_admission_report,
    evaluate_users,
)
from fitmatch.schema import FitnessMetrics


@pytest.fixture
def population(runner_metrics):
    return {
        "fit": runner_metrics,
        "casual": FitnessMetrics(weekly_distance=4000.0, weekly_activities=3.0,
                                 activity_types=frozenset({"Walk"})),
        "yogi": FitnessMetrics(weekly_distance=0.0, weekly_activities=4.0,
                               activity_types=frozenset({"Yoga"})),
    }


def test_report_summarizes_population(population, threshold):
    evaluations = evaluate_users(population, threshold)

    report = create_admission_report(evaluations, threshold)

    assert report.threshold_version == 1
    assert report.total_evaluations == 3
    assert report.pass_rate == pytest.approx(1 / 3)
    assert report.average_score == pytest.approx(
        np.mean([e.score for e in evaluations.values()])
    )
    assert report.common_failure_reasons[0] == ("weekly_distance", 2)
    assert ("activity_types", 1) in report.common_failure_reasons
    assert report.distribution_stats.max == evaluations["fit"].score


def test_report_without_threshold_passes_everyone(population):
    report = create_admission_report(evaluate_users(population, None), None)

    assert report.threshold_version is None
    assert report.pass_rate == 1.0
    assert report.average_score == 100.0
    assert report.common_failure_reasons == []


def test_empty_report():
    report = create_admission_report({}, None)

    assert report.total_evaluations == 0
    assert report.distribution_stats is None
    assert "Users evaluated: 0" in report.summary()


def test_report_exports(population, threshold, tmp_path):
    report = create_admission_report(evaluate_users(population, threshold), threshold)

    frame = report.to_frame()
    assert list(frame.columns) == ["user_id", "meets", "score", "failed_checks"]
    assert frame.set_index("user_id").loc["fit", "meets"]
    assert frame.set_index("user_id").loc["yogi", "failed_checks"] == (
        "weekly_distance,activity_types"
    )

    path = tmp_path / "report.json"
    report.save(str(path))
    saved = json.loads(path.read_text())
    assert saved["total_evaluations"] == 3
    assert saved["common_failure_reasons"][0] == {"reason": "weekly_distance", "count": 2}
    assert "p50" in saved["distribution_stats"]["quantiles"]

    assert "Pass rate:" in report.summary()


def test_distribution_stats():
    stats = compute_score_distribution_stats(np.array([0, 50, 100]), quantiles=(0.5,))

    assert stats.mean == pytest.approx(50.0)
    assert stats.min == 0
    assert stats.max == 100
    assert stats.quantiles == {"p50": 50.0}

    with pytest.raises(ValueError):
        compute_score_distribution_stats(np.array([]))
