"""
Matching preferences: defaults, validation and per-user storage.

Each user has at most one active preference record. Users without one
are matched with documented defaults (ages 18-65, within 50 km, any
activity, no minimum score); the record is created lazily on first read
through PreferenceStore.get_or_create.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ValidationError
from ..feature_engineering.pairwise_features import haversine_km
from ..schema import MatchingPreferences, UserProfile
from ..utils import is_number

logger = logging.getLogger(__name__)

DEFAULT_MIN_AGE = 18
DEFAULT_MAX_AGE = 65
DEFAULT_MAX_DISTANCE_KM = 50.0
DEFAULT_MIN_COMPATIBILITY_SCORE = 0

PREFERENCE_FIELDS = (
    "min_age", "max_age", "max_distance", "preferred_activities", "min_compatibility_score"
)


def default_preferences(
    user_id: str,
    overrides: Optional[Dict[str, Any]] = None
) -> MatchingPreferences:
    """
    Build the default preferences for a user.

    Args:
        user_id: Owning user
        overrides: Optional configured defaults (see EngineSettings)
    """
    values = {
        "min_age": DEFAULT_MIN_AGE,
        "max_age": DEFAULT_MAX_AGE,
        "max_distance": DEFAULT_MAX_DISTANCE_KM,
        "preferred_activities": (),
        "min_compatibility_score": DEFAULT_MIN_COMPATIBILITY_SCORE,
    }
    if overrides:
        values.update({k: v for k, v in overrides.items() if k in PREFERENCE_FIELDS})
    return MatchingPreferences(user_id=user_id, **values)


def validate_preferences_update(changes: Dict[str, Any]) -> None:
    """
    Validate preference values before they are stored.

    Raises:
        ValidationError: On unknown fields or out-of-range values
    """
    unknown = sorted(set(changes) - set(PREFERENCE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown preference fields: {', '.join(unknown)}")

    min_age = changes.get("min_age")
    max_age = changes.get("max_age")
    if min_age is not None and (not is_number(min_age) or not 18 <= min_age <= 100):
        raise ValidationError("Minimum age must be between 18 and 100")
    if max_age is not None and (not is_number(max_age) or not 18 <= max_age <= 100):
        raise ValidationError("Maximum age must be between 18 and 100")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise ValidationError("Minimum age cannot be greater than maximum age")

    max_distance = changes.get("max_distance")
    if max_distance is not None and (
        not is_number(max_distance) or not 1 <= max_distance <= 1000
    ):
        raise ValidationError("Maximum distance must be between 1 and 1000 km")

    activities = changes.get("preferred_activities")
    if activities is not None and not isinstance(activities, (list, tuple, set, frozenset)):
        raise ValidationError("Preferred activities must be an array")

    min_score = changes.get("min_compatibility_score")
    if min_score is not None and (not is_number(min_score) or not 0 <= min_score <= 100):
        raise ValidationError("Minimum compatibility score must be between 0 and 100")


def validate_preferences(record: MatchingPreferences) -> None:
    """
    Validate a complete preference record (e.g. one loaded from a file).

    Raises:
        ValidationError: If any value is out of range or the age window is inverted
    """
    values = record.to_dict()
    values.pop("user_id")
    validate_preferences_update(values)


class PreferenceStore:
    """In-memory store holding one active preference record per user."""

    def __init__(
        self,
        records: Optional[Iterable[MatchingPreferences]] = None,
        defaults: Optional[Dict[str, Any]] = None
    ):
        self.defaults = defaults or {}
        self._records: Dict[str, MatchingPreferences] = {}
        for record in records or []:
            validate_preferences(record)
            self._records[record.user_id] = record

    def find(self, user_id: str) -> Optional[MatchingPreferences]:
        """The stored record, or None."""
        return self._records.get(user_id)

    def get(self, user_id: str) -> MatchingPreferences:
        """The stored record, or the defaults without storing them."""
        return self._records.get(user_id) or default_preferences(user_id, self.defaults)

    def get_or_create(self, user_id: str) -> MatchingPreferences:
        """The stored record, creating it from the defaults if absent."""
        if user_id not in self._records:
            self._records[user_id] = default_preferences(user_id, self.defaults)
            logger.debug(f"Created default preferences for {user_id}")
        return self._records[user_id]

    def upsert(self, user_id: str, changes: Dict[str, Any]) -> MatchingPreferences:
        """
        Create or update a user's preferences.

        Values are validated before any state change; fields not in
        `changes` keep their current (or default) value. The combined
        age window is re-checked after merging.

        Raises:
            ValidationError: If the update is invalid
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        validate_preferences_update(changes)

        merged = self.get(user_id).to_dict()
        merged.update(changes)
        if merged["min_age"] > merged["max_age"]:
            raise ValidationError("Minimum age cannot be greater than maximum age")

        record = MatchingPreferences.from_dict(merged)
        self._records[user_id] = record
        logger.info(f"Updated matching preferences for {user_id}")
        return record


def check_activity_compatibility(
    prefs_a: Optional[MatchingPreferences],
    prefs_b: Optional[MatchingPreferences]
) -> Dict[str, Any]:
    """
    Compare two users' preferred activities.

    A missing preference record (None) on either side is not compatible
    and scores 0. An empty preferred-activities list on either side is
    compatible with everyone at a neutral 0.5.

    Returns:
        Dictionary with 'compatible', 'common_activities' and
        'compatibility_score' (common / larger list size)
    """
    if prefs_a is None or prefs_b is None:
        return {"compatible": False, "common_activities": [], "compatibility_score": 0.0}

    activities_a = list(prefs_a.preferred_activities)
    activities_b = list(prefs_b.preferred_activities)
    if not activities_a or not activities_b:
        return {"compatible": True, "common_activities": [], "compatibility_score": 0.5}

    common: List[str] = [a for a in activities_a if a in activities_b]
    score = len(common) / max(len(activities_a), len(activities_b)) if common else 0.0
    return {
        "compatible": bool(common),
        "common_activities": common,
        "compatibility_score": score,
    }


def is_mutually_within_distance(
    profile_a: UserProfile,
    prefs_a: MatchingPreferences,
    profile_b: UserProfile,
    prefs_b: MatchingPreferences
) -> bool:
    """
    Symmetric distance check: within BOTH users' max_distance.

    The ranker filters on the requester's preference only; this helper is
    the symmetric alternative for callers that want mutual filtering.
    """
    distance = haversine_km(
        profile_a.latitude, profile_a.longitude, profile_b.latitude, profile_b.longitude
    )
    return distance <= prefs_a.max_distance and distance <= prefs_b.max_distance
