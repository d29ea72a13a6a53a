"""
Rank candidates for one user from CSV exports.

Loads activities, profiles and (optionally) preferences, computes fitness
metrics for everyone, evaluates the requester against the default
threshold and prints the admission decision plus one page of ranked
matches as JSON.

Usage:
    python scripts/rank_candidates.py --activities data/activities.csv \
        --profiles data/profiles.csv --user u1 --limit 10
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fitmatch.admission import ThresholdLog, admission_decision
from fitmatch.configs import EngineSettings, setup_logging
from fitmatch.data_loading import (
    InMemoryRepository,
    load_activities,
    load_preferences,
    load_profiles,
)
from fitmatch.errors import FitMatchError
from fitmatch.matching import find_matches

logger = logging.getLogger(__name__)


def rank(args: argparse.Namespace) -> dict:
    settings = EngineSettings.load(args.config)
    setup_logging(settings.log_level)

    as_of = datetime.fromisoformat(args.as_of) if args.as_of else datetime.now()
    preferences = load_preferences(args.preferences) if args.preferences else []

    repo = InMemoryRepository.from_settings(
        settings,
        profiles=load_profiles(args.profiles),
        activities=load_activities(args.activities),
        preferences=preferences,
    )
    repo.refresh_all_metrics(as_of)

    thresholds = ThresholdLog()
    threshold = thresholds.initialize_default(settings.default_threshold)
    metrics = repo.get_metrics(args.user)
    decision = admission_decision(metrics, threshold) if metrics is not None else None

    ranked = find_matches(
        args.user,
        repo,
        limit=args.limit if args.limit is not None else settings.default_limit,
        offset=args.offset,
        as_of=as_of,
        overlap_window_days=settings.overlap_window_days,
        max_workers=settings.max_workers,
        preference_defaults=settings.preference_defaults,
    )

    return {
        "user_id": args.user,
        "threshold_history": [t.to_dict() for t in thresholds.history(days=settings.history_days)],
        "fitness_stats": metrics.to_dict() if metrics is not None else None,
        "admission": decision.to_dict() if decision is not None else None,
        "matches": [candidate.to_dict() for candidate in ranked],
    }


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Rank compatible training partners for a user"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/config.yaml",
        help="Path to configuration file"
    )
    parser.add_argument("--activities", type=str, required=True, help="Activities CSV")
    parser.add_argument("--profiles", type=str, required=True, help="Profiles CSV")
    parser.add_argument("--preferences", type=str, default=None, help="Preferences CSV")
    parser.add_argument("--user", type=str, required=True, help="Requesting user id")
    parser.add_argument("--limit", type=int, default=None, help="Page size (overrides config)")
    parser.add_argument("--offset", type=int, default=0, help="Ranked candidates to skip")
    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        help="Reference time as ISO timestamp (default: now)"
    )

    args = parser.parse_args()

    try:
        print(json.dumps(rank(args), indent=2))
        return 0
    except (FitMatchError, FileNotFoundError, ValueError) as e:
        logger.error(f"Ranking failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
