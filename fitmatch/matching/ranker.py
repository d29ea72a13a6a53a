"""
Candidate filtering and ranking.

This module orchestrates the pairwise scorer over a candidate pool:

1. Load requester profile, metrics and preferences (defaults if absent)
2. Exclude the requester and anyone ever matched with them (any status)
3. Keep candidates inside the requester's age window that have metrics
4. Keep candidates within the requester's own max_distance
5. Score every remaining candidate
6. Drop scores below the requester's min_compatibility_score
7. Sort by score (descending), then paginate

Distance filtering is asymmetric: only the requester's preference is
applied, never the candidate's. Pagination is applied after scoring
because the size of the filtered set is only known once scored.

Data access goes through a repository object providing:
    get_profile(user_id) -> Optional[UserProfile]
    get_metrics(user_id) -> Optional[FitnessMetrics]
    get_preferences(user_id) -> Optional[MatchingPreferences]
    list_profiles() -> Iterable[UserProfile]
    matched_user_ids(user_id) -> Set[str]
    recent_activity_types(user_id, days, as_of) -> Set[str]
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, TypeVar

import numpy as np

from ..errors import NotFoundError, ValidationError
from ..feature_engineering.pairwise_features import batch_haversine_km
from ..fusion.late_fusion import CompatibilityScorer
from ..schema import FitnessMetrics, MatchingPreferences, RankedCandidate, UserProfile
from .preferences import default_preferences

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_OVERLAP_WINDOW_DAYS = 30

T = TypeVar("T")


@dataclass(frozen=True)
class Candidate:
    """A candidate that passed filtering, before scoring."""
    profile: UserProfile
    metrics: FitnessMetrics
    distance_km: float


def filter_candidates(
    requester: UserProfile,
    preferences: MatchingPreferences,
    profiles: Iterable[UserProfile],
    metrics_by_user: Dict[str, FitnessMetrics],
    excluded_ids: Set[str]
) -> List[Candidate]:
    """
    Apply exclusion, age, metrics and distance filters.

    Args:
        requester: Requesting user's profile
        preferences: Requesting user's preferences
        profiles: Candidate pool
        metrics_by_user: Fitness metrics of users that have them
        excluded_ids: Requester and previously matched users

    Returns:
        Candidates with their metrics and distance from the requester
    """
    pool = [
        p for p in profiles
        if p.id not in excluded_ids
        and p.id != requester.id
        and preferences.min_age <= p.age <= preferences.max_age
        and p.id in metrics_by_user
    ]
    if not pool:
        return []

    distances = batch_haversine_km(
        requester.latitude,
        requester.longitude,
        np.array([p.latitude for p in pool]),
        np.array([p.longitude for p in pool]),
    )
    within = distances <= preferences.max_distance

    return [
        Candidate(profile=p, metrics=metrics_by_user[p.id], distance_km=float(d))
        for p, d, keep in zip(pool, distances, within)
        if keep
    ]


def paginate(items: Sequence[T], limit: int, offset: int) -> List[T]:
    """Slice a fully scored, filtered and sorted list."""
    if limit < 0 or offset < 0:
        raise ValidationError(f"limit and offset must be non-negative, got {limit}, {offset}")
    return list(items[offset:offset + limit])


def find_matches(
    requester_id: str,
    repository: Any,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    as_of: Optional[datetime] = None,
    overlap_window_days: int = DEFAULT_OVERLAP_WINDOW_DAYS,
    max_workers: Optional[int] = None,
    preference_defaults: Optional[Dict[str, Any]] = None,
    scorer: Optional[CompatibilityScorer] = None
) -> List[RankedCandidate]:
    """
    Find, score and rank potential matches for a user.

    Args:
        requester_id: Requesting user
        repository: Data access object (see module docstring)
        limit: Page size
        offset: Number of ranked candidates to skip
        as_of: Reference time for the activity-overlap window (default: now)
        overlap_window_days: Days of activity used for type overlap
        max_workers: Score candidates on a thread pool when > 1
        preference_defaults: Configured default preference values
        scorer: CompatibilityScorer to use (default: a new instance)

    Returns:
        Ranked candidates for the requested page, highest score first

    Raises:
        NotFoundError: If the requester's profile or metrics are missing
        ValidationError: If limit or offset is negative
    """
    if limit < 0 or offset < 0:
        raise ValidationError(f"limit and offset must be non-negative, got {limit}, {offset}")

    as_of = as_of or datetime.now()
    scorer = scorer or CompatibilityScorer()

    requester = repository.get_profile(requester_id)
    requester_metrics = repository.get_metrics(requester_id)
    if requester is None or requester_metrics is None:
        raise NotFoundError(f"User or fitness stats not found: {requester_id}")

    preferences = (
        repository.get_preferences(requester_id)
        or default_preferences(requester_id, preference_defaults)
    )

    excluded = set(repository.matched_user_ids(requester_id))
    excluded.add(requester_id)

    profiles = list(repository.list_profiles())
    metrics_by_user = {}
    for profile in profiles:
        if profile.id in excluded:
            continue
        metrics = repository.get_metrics(profile.id)
        if metrics is not None:
            metrics_by_user[profile.id] = metrics

    candidates = filter_candidates(requester, preferences, profiles, metrics_by_user, excluded)
    logger.info(
        f"Ranking {len(candidates)} candidates for {requester_id} "
        f"(pool={len(profiles)}, excluded={len(excluded) - 1})"
    )

    requester_types = repository.recent_activity_types(requester_id, overlap_window_days, as_of)

    def score_candidate(candidate: Candidate) -> RankedCandidate:
        candidate_types = repository.recent_activity_types(
            candidate.profile.id, overlap_window_days, as_of
        )
        result = scorer.score(
            requester,
            requester_metrics,
            candidate.profile,
            candidate.metrics,
            types_a=requester_types,
            types_b=candidate_types,
            distance_km=candidate.distance_km,
        )
        return RankedCandidate(
            user_id=candidate.profile.id,
            profile=candidate.profile,
            metrics=candidate.metrics,
            result=result,
            distance_km=candidate.distance_km,
        )

    if max_workers and max_workers > 1 and len(candidates) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            scored = list(executor.map(score_candidate, candidates))
    else:
        scored = [score_candidate(c) for c in candidates]

    qualifying = [c for c in scored if c.score >= preferences.min_compatibility_score]
    qualifying.sort(key=lambda c: c.score, reverse=True)

    logger.debug(
        f"{len(qualifying)} of {len(scored)} candidates meet "
        f"min score {preferences.min_compatibility_score}"
    )
    return paginate(qualifying, limit, offset)
