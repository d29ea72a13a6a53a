"""
Pairwise similarity features for fitness compatibility.

This module computes the factors that describe the relationship between
two users (User A and User B), each normalized to [0, 1].

Pairwise Factor Types:
- Activity overlap: Jaccard(types_A, types_B) (shared activities)
- Performance similarity: ratio similarity of volume, frequency and pace
- Location proximity: linear decay of great-circle distance to 0 at 100 km
- Age compatibility: linear decay of the age gap to 0 at 20 years

Ratio similarity is defined as 1 - |a - b| / max(a, b), and 1 when both
values are zero. A missing pace on either side yields a neutral pace
similarity of 1 rather than a penalty.
"""

import logging
import math
from typing import AbstractSet, Optional, Union

import numpy as np

from ..schema import FitnessMetrics

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
PROXIMITY_RANGE_KM = 100.0
MAX_AGE_DIFFERENCE = 20.0

DISTANCE_SIMILARITY_WEIGHT = 0.4
ACTIVITY_SIMILARITY_WEIGHT = 0.4
PACE_SIMILARITY_WEIGHT = 0.2


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometers.

    Args:
        lat1, lon1: First point in degrees
        lat2, lon2: Second point in degrees

    Returns:
        Distance in km on a sphere of radius 6371 km
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Near-antipodal points can round a just above 1
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def batch_haversine_km(
    lat: float,
    lon: float,
    lats: np.ndarray,
    lons: np.ndarray
) -> np.ndarray:
    """
    Distances from one point to many points, in kilometers.

    Args:
        lat, lon: Origin in degrees
        lats, lons: Arrays of destination coordinates in degrees (N,)

    Returns:
        Array of distances (N,)
    """
    lats = np.radians(np.asarray(lats, dtype=float))
    lons = np.radians(np.asarray(lons, dtype=float))
    lat0 = math.radians(lat)
    lon0 = math.radians(lon)

    d_lat = lats - lat0
    d_lon = lons - lon0
    a = np.sin(d_lat / 2) ** 2 + math.cos(lat0) * np.cos(lats) * np.sin(d_lon / 2) ** 2
    # Guard tiny negative values from rounding before the square roots
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def jaccard_similarity(types_a: AbstractSet[str], types_b: AbstractSet[str]) -> float:
    """
    Jaccard similarity |A & B| / |A | B|.

    Defined as 0 when either set is empty.
    """
    if not types_a or not types_b:
        return 0.0
    return len(types_a & types_b) / len(types_a | types_b)


def ratio_similarity(a: float, b: float) -> float:
    """1 - |a - b| / max(a, b), or 1 when max(a, b) is not positive."""
    largest = max(a, b)
    if largest <= 0:
        return 1.0
    return 1.0 - abs(a - b) / largest


def pace_similarity(pace_a: Optional[float], pace_b: Optional[float]) -> float:
    """Ratio similarity of paces; neutral (1) when either pace is missing."""
    if pace_a is None or pace_b is None:
        return 1.0
    return ratio_similarity(pace_a, pace_b)


def performance_similarity(metrics_a: FitnessMetrics, metrics_b: FitnessMetrics) -> float:
    """
    Weighted similarity of training volume, frequency and pace.

    Formula: 0.4 * distance_sim + 0.4 * activity_sim + 0.2 * pace_sim
    """
    distance_sim = ratio_similarity(metrics_a.weekly_distance, metrics_b.weekly_distance)
    activity_sim = ratio_similarity(metrics_a.weekly_activities, metrics_b.weekly_activities)
    pace_sim = pace_similarity(metrics_a.average_pace, metrics_b.average_pace)

    return (
        DISTANCE_SIMILARITY_WEIGHT * distance_sim
        + ACTIVITY_SIMILARITY_WEIGHT * activity_sim
        + PACE_SIMILARITY_WEIGHT * pace_sim
    )


def location_proximity(distance_km: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Proximity score from a distance: 1 at 0 km, decaying linearly to 0 at 100 km.

    Accepts a scalar or an array of distances.
    """
    if isinstance(distance_km, np.ndarray):
        return np.maximum(0.0, 1.0 - distance_km / PROXIMITY_RANGE_KM)
    return max(0.0, 1.0 - distance_km / PROXIMITY_RANGE_KM)


def age_compatibility(age_a: int, age_b: int) -> float:
    """1 for the same age, decaying linearly to 0 at a 20-year gap."""
    return max(0.0, 1.0 - abs(age_a - age_b) / MAX_AGE_DIFFERENCE)
