"""
Typed records consumed and produced by the engine.

Defines the data structures exchanged with the surrounding data store:
raw activity facts, derived fitness metrics, the versioned fitness
threshold, matching preferences, user profiles, compatibility results
and matches.

Record Lifecycles:
- ActivityRecord: immutable fact written by an external sync process
- FitnessMetrics: derived on demand, never the source of truth
- FitnessThreshold: append-only; every update is a new version
- CompatibilityResult: ephemeral, never persisted
- Match: created once per unordered pair, active -> archived (terminal)
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, FrozenSet, Tuple


class ActivityType(str, Enum):
    """Activity types accepted in administrator threshold configuration."""
    RUN = "Run"
    RIDE = "Ride"
    SWIM = "Swim"
    HIKE = "Hike"
    WALK = "Walk"
    YOGA = "Yoga"
    WORKOUT = "Workout"
    WEIGHT_TRAINING = "WeightTraining"
    CROSSFIT = "Crossfit"


# Types whose speed is meaningfully expressed as a pace (seconds per km)
PACE_ACTIVITY_TYPES = frozenset({
    ActivityType.RUN.value,
    ActivityType.WALK.value,
    ActivityType.HIKE.value,
})


class MatchStatus(str, Enum):
    """Match lifecycle states. ARCHIVED is terminal."""
    ACTIVE = "active"
    ARCHIVED = "archived"


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class ActivityRecord:
    """
    A single synced exercise session.

    Attributes:
        id: Provider activity id
        user_id: Owning user
        type: Activity type label (provider labels outside ActivityType are kept)
        distance: Distance in meters
        moving_time: Moving duration in seconds
        average_speed: Average speed in meters/second
        start_date: Start timestamp
        total_elevation_gain: Elevation gain in meters
    """
    id: int
    user_id: str
    type: str
    distance: float
    moving_time: int
    average_speed: float
    start_date: datetime
    total_elevation_gain: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with an ISO start date."""
        d = asdict(self)
        d["start_date"] = self.start_date.isoformat()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ActivityRecord":
        """Create from dictionary."""
        return cls(
            id=int(d["id"]),
            user_id=str(d["user_id"]),
            type=str(d["type"]),
            distance=float(d["distance"]),
            moving_time=int(d.get("moving_time", 0)),
            average_speed=float(d.get("average_speed", 0.0)),
            start_date=_parse_datetime(d["start_date"]),
            total_elevation_gain=float(d.get("total_elevation_gain", 0.0)),
        )


@dataclass(frozen=True)
class FitnessMetrics:
    """
    Fitness metrics derived from a window of activities.

    Attributes:
        weekly_distance: Meters per week over the window
        weekly_activities: Activities per week over the window
        average_pace: Seconds per km, None when no pace-eligible activity exists
        activity_types: Distinct activity types observed
        total_distance: Total meters in the window
        longest_activity: Longest single activity in meters
        consistency_score: 0-100 spread of activity across weeks
    """
    weekly_distance: float = 0.0
    weekly_activities: float = 0.0
    average_pace: Optional[float] = None
    activity_types: FrozenSet[str] = field(default_factory=frozenset)
    total_distance: float = 0.0
    longest_activity: float = 0.0
    consistency_score: int = 0

    def __post_init__(self):
        """Normalize activity types to a frozenset and check score bounds."""
        if not isinstance(self.activity_types, frozenset):
            object.__setattr__(self, "activity_types", frozenset(self.activity_types))
        if not 0 <= self.consistency_score <= 100:
            raise ValueError(
                f"consistency_score must be in [0, 100], got {self.consistency_score}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (activity types sorted for stable output)."""
        return {
            "weekly_distance": self.weekly_distance,
            "weekly_activities": self.weekly_activities,
            "average_pace": self.average_pace,
            "activity_types": sorted(self.activity_types),
            "total_distance": self.total_distance,
            "longest_activity": self.longest_activity,
            "consistency_score": self.consistency_score,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FitnessMetrics":
        """Create from dictionary."""
        pace = d.get("average_pace")
        return cls(
            weekly_distance=float(d.get("weekly_distance", 0.0)),
            weekly_activities=float(d.get("weekly_activities", 0.0)),
            average_pace=float(pace) if pace is not None else None,
            activity_types=frozenset(d.get("activity_types", ())),
            total_distance=float(d.get("total_distance", 0.0)),
            longest_activity=float(d.get("longest_activity", 0.0)),
            consistency_score=int(d.get("consistency_score", 0)),
        )


@dataclass(frozen=True)
class FitnessThreshold:
    """
    One immutable version of the administrator fitness threshold.

    The "current" threshold is the most recently created version; older
    versions are kept as the audit trail.
    """
    id: str
    weekly_distance: float
    weekly_activities: float
    average_pace: Optional[float]
    allowed_activity_types: Tuple[str, ...]
    updated_by: str
    updated_at: datetime
    version: int = 1

    def __post_init__(self):
        if not isinstance(self.allowed_activity_types, tuple):
            object.__setattr__(self, "allowed_activity_types", tuple(self.allowed_activity_types))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "weekly_distance": self.weekly_distance,
            "weekly_activities": self.weekly_activities,
            "average_pace": self.average_pace,
            "allowed_activity_types": list(self.allowed_activity_types),
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FitnessThreshold":
        """Create from dictionary."""
        pace = d.get("average_pace")
        return cls(
            id=str(d["id"]),
            weekly_distance=float(d["weekly_distance"]),
            weekly_activities=float(d["weekly_activities"]),
            average_pace=float(pace) if pace is not None else None,
            allowed_activity_types=tuple(d.get("allowed_activity_types", ())),
            updated_by=str(d.get("updated_by", "system")),
            updated_at=_parse_datetime(d["updated_at"]),
            version=int(d.get("version", 1)),
        )


# Marker distinguishing "leave unchanged" from an explicit None
# (clearing the pace requirement) in ThresholdUpdate.
UNSET: Any = object()


@dataclass
class ThresholdUpdate:
    """
    Partial administrator update of the fitness threshold.

    Fields left as UNSET inherit their value from the current threshold.
    average_pace=None explicitly removes the pace requirement.
    """
    updated_by: str
    weekly_distance: Any = UNSET
    weekly_activities: Any = UNSET
    average_pace: Any = UNSET
    allowed_activity_types: Any = UNSET

    def changes(self) -> Dict[str, Any]:
        """Return only the fields that were explicitly set."""
        result = {}
        for name in ("weekly_distance", "weekly_activities", "average_pace",
                     "allowed_activity_types"):
            value = getattr(self, name)
            if value is not UNSET:
                result[name] = value
        return result


@dataclass
class MatchingPreferences:
    """
    A user's candidate filtering preferences.

    Attributes:
        user_id: Owning user
        min_age: Minimum candidate age
        max_age: Maximum candidate age
        max_distance: Maximum candidate distance in km
        preferred_activities: Preferred activity types (empty = no restriction)
        min_compatibility_score: Candidates scoring below are dropped (0-100)
    """
    user_id: str
    min_age: int = 18
    max_age: int = 65
    max_distance: float = 50.0
    preferred_activities: Tuple[str, ...] = ()
    min_compatibility_score: int = 0

    def __post_init__(self):
        if not isinstance(self.preferred_activities, tuple):
            self.preferred_activities = tuple(self.preferred_activities)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        d = asdict(self)
        d["preferred_activities"] = list(self.preferred_activities)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MatchingPreferences":
        """Create from dictionary."""
        return cls(**d)


@dataclass(frozen=True)
class UserProfile:
    """Profile fields the engine needs from the user store."""
    id: str
    age: int
    latitude: float
    longitude: float
    first_name: Optional[str] = None
    city: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UserProfile":
        """Create from dictionary."""
        return cls(
            id=str(d["id"]),
            age=int(d["age"]),
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            first_name=d.get("first_name"),
            city=d.get("city"),
        )


@dataclass(frozen=True)
class CompatibilityResult:
    """
    Result of pairwise compatibility scoring.

    Attributes:
        score: Weighted aggregate score [0, 100]
        activity_overlap: Jaccard overlap of activity types [0, 100]
        performance_similarity: Distance/frequency/pace similarity [0, 100]
        location_proximity: Linear proximity within 100 km [0, 100]
        age_compatibility: Age-gap compatibility [0, 100]
    """
    score: int
    activity_overlap: int
    performance_similarity: int
    location_proximity: int
    age_compatibility: int

    @property
    def factors(self) -> Dict[str, int]:
        """Per-factor breakdown for display and API serialization."""
        return {
            "activity_overlap": self.activity_overlap,
            "performance_similarity": self.performance_similarity,
            "location_proximity": self.location_proximity,
            "age_compatibility": self.age_compatibility,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"score": self.score, "factors": self.factors}


@dataclass(frozen=True)
class RankedCandidate:
    """A scored candidate returned by the ranker."""
    user_id: str
    profile: UserProfile
    metrics: FitnessMetrics
    result: CompatibilityResult
    distance_km: float

    @property
    def score(self) -> int:
        return self.result.score

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "user": self.profile.to_dict(),
            "compatibility_score": self.result.score,
            "compatibility_factors": self.result.factors,
            "fitness_stats": self.metrics.to_dict(),
            "distance_km": self.distance_km,
        }


@dataclass(frozen=True)
class Match:
    """
    Persisted relationship between an unordered pair of users.

    At most one Match exists per unordered pair; status only moves
    from ACTIVE to ARCHIVED.
    """
    id: str
    user1_id: str
    user2_id: str
    compatibility_score: int
    matched_at: datetime
    status: MatchStatus = MatchStatus.ACTIVE

    @property
    def pair(self) -> FrozenSet[str]:
        return frozenset((self.user1_id, self.user2_id))

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_user(self, user_id: str) -> str:
        """Return the member of the pair that is not user_id."""
        if user_id == self.user1_id:
            return self.user2_id
        if user_id == self.user2_id:
            return self.user1_id
        raise ValueError(f"User {user_id} is not part of match {self.id}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user1_id": self.user1_id,
            "user2_id": self.user2_id,
            "compatibility_score": self.compatibility_score,
            "matched_at": self.matched_at.isoformat(),
            "status": self.status.value,
        }
