"""
Smoke test for the fitness compatibility engine.

This script validates that:
1. Configuration loads and validates
2. Metrics aggregate from synthetic activity history
3. The admission gate evaluates against the default threshold
4. Candidates rank and matches can be created and archived
5. No runtime errors across the engine

Usage:
    python scripts/smoke_test.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import logging
from datetime import datetime, timedelta

import numpy as np

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ACTIVITY_TYPES = ["Run", "Ride", "Swim", "Hike", "Walk", "Yoga"]


def create_synthetic_activities(n_users: int = 30, seed: int = 42, as_of: datetime = None):
    """Create random activity histories around a common reference time."""
    from fitmatch.schema import ActivityRecord

    rng = np.random.default_rng(seed)
    as_of = as_of or datetime.now()
    activities = []
    activity_id = 1

    for u in range(n_users):
        user_id = f"user_{u:03d}"
        favorite = rng.choice(ACTIVITY_TYPES, size=2, replace=False)
        for _ in range(int(rng.integers(0, 60))):
            activity_type = str(rng.choice(favorite))
            distance = float(rng.uniform(800, 40000 if activity_type == "Ride" else 15000))
            speed = float(rng.uniform(1.2, 9.0 if activity_type == "Ride" else 4.5))
            activities.append(ActivityRecord(
                id=activity_id,
                user_id=user_id,
                type=activity_type,
                distance=distance,
                moving_time=int(distance / speed),
                average_speed=speed,
                start_date=as_of - timedelta(days=float(rng.uniform(0, 90))),
            ))
            activity_id += 1

    return activities


def create_synthetic_profiles(n_users: int = 30, seed: int = 42):
    """Create profiles scattered around New York."""
    from fitmatch.schema import UserProfile

    rng = np.random.default_rng(seed + 1)
    return [
        UserProfile(
            id=f"user_{u:03d}",
            age=int(rng.integers(18, 66)),
            latitude=float(40.7128 + rng.normal(0, 0.3)),
            longitude=float(-74.0060 + rng.normal(0, 0.3)),
        )
        for u in range(n_users)
    ]


def run_smoke_test():
    """Run smoke tests across the engine."""

    logger.info("=" * 60)
    logger.info("SMOKE TEST: Fitness Compatibility Engine")
    logger.info("=" * 60)

    from fitmatch.admission import ThresholdLog, admission_decision
    from fitmatch.configs import EngineSettings
    from fitmatch.data_loading import InMemoryRepository
    from fitmatch.evaluation import create_admission_report, evaluate_users
    from fitmatch.matching import find_matches

    results = {}
    as_of = datetime.now()

    # =========================================================================
    # Configuration
    # =========================================================================
    logger.info("\n" + "=" * 60)
    logger.info("TEST 1: Configuration")
    logger.info("=" * 60)

    try:
        config_path = project_root / "configs" / "config.yaml"
        settings = EngineSettings.load(str(config_path))
        logger.info(f"  Settings: {settings.to_dict()}")
        results["config"] = "PASSED"
    except Exception as e:
        logger.error(f"  CONFIG TEST FAILED: {e}")
        results["config"] = f"FAILED - {e}"
        settings = EngineSettings()

    # =========================================================================
    # Metrics and admission
    # =========================================================================
    logger.info("\n" + "=" * 60)
    logger.info("TEST 2: Metrics Aggregation and Admission")
    logger.info("=" * 60)

    repo = InMemoryRepository.from_settings(
        settings,
        profiles=create_synthetic_profiles(),
        activities=create_synthetic_activities(as_of=as_of),
    )

    try:
        refreshed = repo.refresh_all_metrics(as_of)
        logger.info(f"  Users with metrics: {refreshed}")

        thresholds = ThresholdLog()
        threshold = thresholds.initialize_default(settings.default_threshold)
        logger.info(f"  Threshold version: {threshold.version}")
        recent = thresholds.history(days=settings.history_days)
        logger.info(f"  Threshold versions in last {settings.history_days} days: {len(recent)}")

        metrics_by_user = {
            p.id: repo.get_metrics(p.id) for p in repo.list_profiles()
            if repo.get_metrics(p.id) is not None
        }
        report = create_admission_report(evaluate_users(metrics_by_user, threshold), threshold)
        for line in report.summary().splitlines():
            logger.info(f"  {line}")

        sample_id = next(iter(metrics_by_user))
        decision = admission_decision(metrics_by_user[sample_id], threshold)
        logger.info(f"  {sample_id}: {decision.message}")
        for reason in decision.evaluation.reasons:
            logger.info(f"    {reason}")

        results["admission"] = "PASSED"
    except Exception as e:
        logger.error(f"  ADMISSION TEST FAILED: {e}")
        results["admission"] = f"FAILED - {e}"
        import traceback
        traceback.print_exc()

    # =========================================================================
    # Ranking and match lifecycle
    # =========================================================================
    logger.info("\n" + "=" * 60)
    logger.info("TEST 3: Ranking and Match Lifecycle")
    logger.info("=" * 60)

    try:
        requester = next(p.id for p in repo.list_profiles() if repo.get_metrics(p.id))
        ranked = find_matches(
            requester,
            repo,
            limit=5,
            as_of=as_of,
            overlap_window_days=settings.overlap_window_days,
            max_workers=settings.max_workers,
            preference_defaults=settings.preference_defaults,
        )
        logger.info(f"  Top matches for {requester}:")
        for candidate in ranked:
            logger.info(
                f"    {candidate.user_id}: {candidate.score} "
                f"({candidate.distance_km:.1f} km) {candidate.result.factors}"
            )

        if ranked:
            match = repo.matches.create_match(requester, ranked[0].user_id, ranked[0].score)
            again = find_matches(requester, repo, limit=5, as_of=as_of)
            assert ranked[0].user_id not in {c.user_id for c in again}
            repo.matches.archive_match(match.id, requester)
            logger.info(f"  Match stats: {repo.matches.match_stats(requester)}")

        results["matching"] = "PASSED"
    except Exception as e:
        logger.error(f"  MATCHING TEST FAILED: {e}")
        results["matching"] = f"FAILED - {e}"
        import traceback
        traceback.print_exc()

    # =========================================================================
    # Summary
    # =========================================================================
    logger.info("\n" + "=" * 60)
    logger.info("SMOKE TEST SUMMARY")
    logger.info("=" * 60)

    all_passed = True
    for stage, status in results.items():
        logger.info(f"  {stage.upper()}: {status}")
        if "FAILED" in status:
            all_passed = False

    if all_passed:
        logger.info("\n  ALL TESTS PASSED")
        return 0
    else:
        logger.error("\n  SOME TESTS FAILED")
        return 1


if __name__ == "__main__":
    sys.exit(run_smoke_test())
