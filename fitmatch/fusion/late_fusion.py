"""
Score-level fusion of pairwise compatibility factors.

This module combines the four pairwise factors into the aggregate
compatibility score. Fusion happens at the score level: each factor is
computed independently and reported on its own for display/debugging.

Fusion Formula:
    score = round(100 * (0.4 * activity_overlap
                         + 0.3 * performance_similarity
                         + 0.2 * location_proximity
                         + 0.1 * age_compatibility))

The weights are fixed constants of the design and are not configurable
per call.
"""

import logging
from dataclasses import dataclass, asdict
from typing import AbstractSet, Dict, Optional

from ..feature_engineering.pairwise_features import (
    age_compatibility,
    haversine_km,
    jaccard_similarity,
    location_proximity,
    performance_similarity,
)
from ..schema import CompatibilityResult, FitnessMetrics, UserProfile
from ..utils import clamp, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactorWeights:
    """
    Weights of the four compatibility factors.

    Attributes:
        activity_overlap: Weight of shared activity types
        performance_similarity: Weight of training similarity
        location_proximity: Weight of geographic proximity
        age_compatibility: Weight of age gap
    """
    activity_overlap: float = 0.4
    performance_similarity: float = 0.3
    location_proximity: float = 0.2
    age_compatibility: float = 0.1

    def validate(self) -> None:
        """Validate that weights are non-negative and sum to 1."""
        for name, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"{name} weight must be non-negative, got {value}")
        total = sum(self.to_dict().values())
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Factor weights must sum to 1, got {total}")

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return asdict(self)


COMPATIBILITY_WEIGHTS = FactorWeights()


class CompatibilityScorer:
    """
    Pairwise compatibility scorer.

    Combines the pairwise factors of two users into a CompatibilityResult.
    Pure: performs no I/O and holds no mutable state, so one instance can
    score candidates concurrently.

    Attributes:
        weights: FactorWeights (always COMPATIBILITY_WEIGHTS)
    """

    def __init__(self):
        self.weights = COMPATIBILITY_WEIGHTS
        self.weights.validate()

    def score(
        self,
        profile_a: UserProfile,
        metrics_a: FitnessMetrics,
        profile_b: UserProfile,
        metrics_b: FitnessMetrics,
        types_a: Optional[AbstractSet[str]] = None,
        types_b: Optional[AbstractSet[str]] = None,
        distance_km: Optional[float] = None
    ) -> CompatibilityResult:
        """
        Score the compatibility of User A and User B.

        Args:
            profile_a: Profile of User A (age, coordinates)
            metrics_a: Fitness metrics of User A
            profile_b: Profile of User B
            metrics_b: Fitness metrics of User B
            types_a: Activity types of A for overlap (typically the last
                30 days); defaults to metrics_a.activity_types
            types_b: Activity types of B for overlap; defaults to
                metrics_b.activity_types
            distance_km: Precomputed distance between A and B, if known

        Returns:
            CompatibilityResult with aggregate score and factor breakdown
        """
        if types_a is None:
            types_a = metrics_a.activity_types
        if types_b is None:
            types_b = metrics_b.activity_types
        if distance_km is None:
            distance_km = haversine_km(
                profile_a.latitude, profile_a.longitude,
                profile_b.latitude, profile_b.longitude
            )

        overlap = jaccard_similarity(frozenset(types_a), frozenset(types_b))
        performance = performance_similarity(metrics_a, metrics_b)
        proximity = location_proximity(distance_km)
        age = age_compatibility(profile_a.age, profile_b.age)

        w = self.weights
        fused = (
            w.activity_overlap * overlap
            + w.performance_similarity * performance
            + w.location_proximity * proximity
            + w.age_compatibility * age
        )

        result = CompatibilityResult(
            score=int(clamp(round_half_up(fused * 100), 0, 100)),
            activity_overlap=round_half_up(overlap * 100),
            performance_similarity=round_half_up(performance * 100),
            location_proximity=round_half_up(proximity * 100),
            age_compatibility=round_half_up(age * 100),
        )
        logger.debug(f"Scored {profile_a.id} vs {profile_b.id}: {result.score}")
        return result

    def get_effective_weights(self) -> Dict[str, float]:
        """Return the factor weights in use."""
        return self.weights.to_dict()


_DEFAULT_SCORER = CompatibilityScorer()


def score(
    profile_a: UserProfile,
    metrics_a: FitnessMetrics,
    profile_b: UserProfile,
    metrics_b: FitnessMetrics,
    types_a: Optional[AbstractSet[str]] = None,
    types_b: Optional[AbstractSet[str]] = None
) -> CompatibilityResult:
    """Score two users with the fixed factor weights. See CompatibilityScorer.score."""
    return _DEFAULT_SCORER.score(profile_a, metrics_a, profile_b, metrics_b, types_a, types_b)
