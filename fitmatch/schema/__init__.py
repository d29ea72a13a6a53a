"""Record types exchanged between the engine and its collaborators."""

from .records import (
    ActivityType,
    PACE_ACTIVITY_TYPES,
    MatchStatus,
    ActivityRecord,
    FitnessMetrics,
    FitnessThreshold,
    ThresholdUpdate,
    UNSET,
    MatchingPreferences,
    UserProfile,
    CompatibilityResult,
    RankedCandidate,
    Match,
)

__all__ = [
    "ActivityType",
    "PACE_ACTIVITY_TYPES",
    "MatchStatus",
    "ActivityRecord",
    "FitnessMetrics",
    "FitnessThreshold",
    "ThresholdUpdate",
    "UNSET",
    "MatchingPreferences",
    "UserProfile",
    "CompatibilityResult",
    "RankedCandidate",
    "Match",
]
