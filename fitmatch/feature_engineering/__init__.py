"""Feature engineering module for pairwise compatibility factors."""

from .pairwise_features import (
    haversine_km,
    batch_haversine_km,
    jaccard_similarity,
    ratio_similarity,
    pace_similarity,
    performance_similarity,
    location_proximity,
    age_compatibility,
)

__all__ = [
    "haversine_km",
    "batch_haversine_km",
    "jaccard_similarity",
    "ratio_similarity",
    "pace_similarity",
    "performance_similarity",
    "location_proximity",
    "age_compatibility",
]
