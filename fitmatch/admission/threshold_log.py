"""
Append-only, versioned fitness threshold configuration.

Every administrator update creates a new immutable FitnessThreshold
version instead of mutating the previous one, which gives a natural
audit trail. The "current" threshold is simply the most recent version.

Only the append is serialized; readers always observe a fully written
version because records are immutable and the version list is replaced
under the lock.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ValidationError
from ..schema import ActivityType, FitnessThreshold, ThresholdUpdate
from ..utils import is_number

logger = logging.getLogger(__name__)

MAX_WEEKLY_DISTANCE = 100000
MAX_WEEKLY_ACTIVITIES = 50
MIN_PACE_SECONDS = 180
MAX_PACE_SECONDS = 1200

VALID_ACTIVITY_TYPES = frozenset(t.value for t in ActivityType)


def default_threshold_input() -> Dict[str, Any]:
    """Default threshold values used to seed an empty log."""
    return {
        "weekly_distance": 10000,  # 10 km per week
        "weekly_activities": 3,
        "average_pace": 360,  # 6:00 per km
        "allowed_activity_types": ["Run", "Ride", "Swim", "Hike", "Walk"],
    }


def validate_threshold_values(values: Dict[str, Any]) -> None:
    """
    Validate threshold values before any state change.

    Args:
        values: Mapping of the fields being set

    Raises:
        ValidationError: If any value is out of range
    """
    if "weekly_distance" in values:
        distance = values["weekly_distance"]
        if not is_number(distance) or not 0 <= distance <= MAX_WEEKLY_DISTANCE:
            raise ValidationError("Weekly distance must be between 0 and 100,000 meters")

    if "weekly_activities" in values:
        activities = values["weekly_activities"]
        if not is_number(activities) or not 0 <= activities <= MAX_WEEKLY_ACTIVITIES:
            raise ValidationError("Weekly activities must be between 0 and 50")

    pace = values.get("average_pace")
    if pace is not None and (
        not is_number(pace) or not MIN_PACE_SECONDS <= pace <= MAX_PACE_SECONDS
    ):
        raise ValidationError(
            "Average pace must be between 3:00 and 20:00 per km (180-1200 seconds)"
        )

    if "allowed_activity_types" in values:
        types = values["allowed_activity_types"]
        if types is None or isinstance(types, str):
            raise ValidationError("Allowed activity types must be a list")
        invalid = [t for t in types if t not in VALID_ACTIVITY_TYPES]
        if invalid:
            raise ValidationError(f"Invalid activity types: {', '.join(invalid)}")


def validate_threshold_update(update: ThresholdUpdate) -> None:
    """Validate the explicitly set fields of an update."""
    if not update.updated_by:
        raise ValidationError("updated_by is required")
    validate_threshold_values(update.changes())


def latest_threshold(records: Iterable[FitnessThreshold]) -> Optional[FitnessThreshold]:
    """Most recent threshold by timestamp (version breaks ties), or None."""
    records = list(records)
    if not records:
        return None
    return max(records, key=lambda t: (t.updated_at, t.version))


class ThresholdLog:
    """
    In-memory append-only log of fitness threshold versions.

    Attributes:
        clock: Callable returning the current time (injectable for tests)
    """

    def __init__(
        self,
        records: Optional[Iterable[FitnessThreshold]] = None,
        clock=datetime.now
    ):
        self.clock = clock
        self._records: List[FitnessThreshold] = list(records or [])
        self._lock = threading.Lock()

    def current(self) -> Optional[FitnessThreshold]:
        """The threshold in force, or None if none was ever configured."""
        return latest_threshold(self._records)

    def all(self) -> List[FitnessThreshold]:
        """Every version, newest first."""
        return sorted(self._records, key=lambda t: (t.updated_at, t.version), reverse=True)

    def find_by_id(self, threshold_id: str) -> Optional[FitnessThreshold]:
        for record in self._records:
            if record.id == threshold_id:
                return record
        return None

    def history(self, days: int = 30) -> List[FitnessThreshold]:
        """Versions created within the last `days` days, newest first."""
        since = self.clock() - timedelta(days=days)
        return [t for t in self.all() if t.updated_at >= since]

    def create(
        self,
        weekly_distance: float,
        weekly_activities: float,
        average_pace: Optional[float],
        allowed_activity_types: Iterable[str],
        updated_by: str
    ) -> FitnessThreshold:
        """
        Append a fully specified threshold version.

        Raises:
            ValidationError: If any value is out of range
        """
        values = {
            "weekly_distance": weekly_distance,
            "weekly_activities": weekly_activities,
            "average_pace": average_pace,
            "allowed_activity_types": list(allowed_activity_types),
        }
        validate_threshold_values(values)
        return self._append(values, updated_by)

    def update(self, update: ThresholdUpdate) -> FitnessThreshold:
        """
        Append a new version merging the update into the current threshold.

        Fields the update leaves unset inherit from the current version
        (or zero / no restriction when the log is empty).

        Raises:
            ValidationError: If the update is invalid
        """
        validate_threshold_update(update)
        changes = update.changes()

        with self._lock:
            current = latest_threshold(self._records)
            values = {
                "weekly_distance": current.weekly_distance if current else 0,
                "weekly_activities": current.weekly_activities if current else 0,
                "average_pace": current.average_pace if current else None,
                "allowed_activity_types": list(current.allowed_activity_types) if current else [],
            }
            values.update(changes)
            record = self._append_locked(values, update.updated_by)

        logger.info(
            f"Fitness threshold updated by {update.updated_by}: "
            f"version={record.version}, changes={changes}"
        )
        return record

    def initialize_default(self, values: Optional[Dict[str, Any]] = None) -> FitnessThreshold:
        """
        Return the current threshold, seeding the default if the log is empty.

        Args:
            values: Configured default values overriding default_threshold_input()
        """
        seed = default_threshold_input()
        seed.update(values or {})
        validate_threshold_values(seed)
        with self._lock:
            existing = latest_threshold(self._records)
            if existing is not None:
                return existing
            record = self._append_locked(seed, "system")
        logger.info("Initialized default fitness threshold")
        return record

    def _append(self, values: Dict[str, Any], updated_by: str) -> FitnessThreshold:
        with self._lock:
            record = self._append_locked(values, updated_by)
        logger.info(f"Created fitness threshold version {record.version} by {updated_by}")
        return record

    def _append_locked(self, values: Dict[str, Any], updated_by: str) -> FitnessThreshold:
        version = max((t.version for t in self._records), default=0) + 1
        record = FitnessThreshold(
            id=uuid.uuid4().hex,
            weekly_distance=float(values["weekly_distance"]),
            weekly_activities=float(values["weekly_activities"]),
            average_pace=(
                float(values["average_pace"]) if values["average_pace"] is not None else None
            ),
            allowed_activity_types=tuple(values["allowed_activity_types"]),
            updated_by=updated_by,
            updated_at=self.clock(),
            version=version,
        )
        # Replace rather than append in place so concurrent readers iterate a stable list
        self._records = self._records + [record]
        return record

    def __len__(self) -> int:
        return len(self._records)
