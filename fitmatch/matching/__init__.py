"""Matching module: candidate ranking, preferences and match lifecycle."""

from .ranker import find_matches, filter_candidates, paginate, Candidate
from .lifecycle import MatchRegistry
from .preferences import (
    PreferenceStore,
    validate_preferences,
    default_preferences,
    validate_preferences_update,
    check_activity_compatibility,
    is_mutually_within_distance,
)

__all__ = [
    "find_matches",
    "filter_candidates",
    "paginate",
    "Candidate",
    "MatchRegistry",
    "PreferenceStore",
    "validate_preferences",
    "default_preferences",
    "validate_preferences_update",
    "check_activity_compatibility",
    "is_mutually_within_distance",
]
