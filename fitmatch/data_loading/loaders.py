"""
Data loading functions for the fitness compatibility engine.

This module loads activity, profile and preference records from CSV
exports of the collaborator's data store. No aggregation is done here;
that is handled by the metrics module.
"""

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from ..errors import ValidationError
from ..matching.preferences import validate_preferences
from ..schema import ActivityRecord, MatchingPreferences, UserProfile

logger = logging.getLogger(__name__)

ACTIVITY_COLUMNS = [
    "id", "user_id", "type", "distance", "moving_time", "average_speed", "start_date"
]
PROFILE_COLUMNS = ["id", "age", "latitude", "longitude"]
PREFERENCE_COLUMNS = ["user_id"]


def validate_columns(df: pd.DataFrame, required: List[str]) -> List[str]:
    """
    Return the required columns missing from a DataFrame.

    Args:
        df: Loaded data
        required: Column names that must be present

    Returns:
        List of missing column names (empty if valid)
    """
    return [c for c in required if c not in df.columns]


def _read_csv(
    filepath: str,
    label: str,
    required: List[str],
    delimiter: str,
    id_columns: List[str]
) -> pd.DataFrame:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"{label} file not found: {filepath}")

    logger.info(f"Loading {label} from {filepath} (delimiter: {repr(delimiter)})")
    # Ids are opaque strings
    df = pd.read_csv(filepath, sep=delimiter, dtype={c: str for c in id_columns})

    missing = validate_columns(df, required)
    if missing:
        raise ValueError(f"{label} file is missing columns: {missing}")

    n_before = len(df)
    df = df.dropna(subset=required)
    dropped = n_before - len(df)
    if dropped:
        logger.warning(f"Dropped {dropped} {label} rows with missing required values")

    return df


def load_activities(filepath: str, delimiter: str = ",") -> List[ActivityRecord]:
    """
    Load activity records from CSV.

    The file should contain one row per activity with the columns
    id, user_id, type, distance (m), moving_time (s), average_speed (m/s),
    start_date (ISO timestamp) and optionally total_elevation_gain (m).

    Args:
        filepath: Path to the activities CSV
        delimiter: Field delimiter (default: comma)

    Returns:
        List of ActivityRecord

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
    """
    df = _read_csv(filepath, "activities", ACTIVITY_COLUMNS, delimiter, ["user_id"])

    df["start_date"] = pd.to_datetime(df["start_date"])
    if df["start_date"].dt.tz is not None:
        # Engine timestamps are naive UTC
        df["start_date"] = df["start_date"].dt.tz_convert(None)
    if "total_elevation_gain" not in df.columns:
        df["total_elevation_gain"] = 0.0
    df["total_elevation_gain"] = df["total_elevation_gain"].fillna(0.0)

    records = [
        ActivityRecord(
            id=int(row.id),
            user_id=str(row.user_id),
            type=str(row.type),
            distance=float(row.distance),
            moving_time=int(row.moving_time),
            average_speed=float(row.average_speed),
            start_date=row.start_date.to_pydatetime(),
            total_elevation_gain=float(row.total_elevation_gain),
        )
        for row in df.itertuples(index=False)
    ]
    logger.info(f"Loaded {len(records)} activities for {df['user_id'].nunique()} users")
    return records


def load_profiles(filepath: str, delimiter: str = ",") -> List[UserProfile]:
    """
    Load user profiles from CSV.

    Required columns: id, age, latitude, longitude. Optional: first_name, city.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
    """
    df = _read_csv(filepath, "profiles", PROFILE_COLUMNS, delimiter, ["id"])

    profiles = []
    for row in df.to_dict(orient="records"):
        profiles.append(UserProfile(
            id=str(row["id"]),
            age=int(row["age"]),
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            first_name=_optional_str(row.get("first_name")),
            city=_optional_str(row.get("city")),
        ))
    logger.info(f"Loaded {len(profiles)} profiles")
    return profiles


def load_preferences(filepath: str, delimiter: str = ",") -> List[MatchingPreferences]:
    """
    Load matching preferences from CSV.

    Required column: user_id. Optional columns (min_age, max_age,
    max_distance, min_compatibility_score, preferred_activities) fall back
    to the defaults when absent or empty. preferred_activities is a
    '|'-separated list.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
        ValidationError: If a row holds out-of-range values
    """
    df = _read_csv(filepath, "preferences", PREFERENCE_COLUMNS, delimiter, ["user_id"])

    records = []
    for row in df.to_dict(orient="records"):
        values = {"user_id": str(row["user_id"])}
        for column, cast in (("min_age", int), ("max_age", int),
                             ("max_distance", float), ("min_compatibility_score", int)):
            if column in row and not pd.isna(row[column]):
                values[column] = cast(row[column])
        activities = row.get("preferred_activities")
        if isinstance(activities, str) and activities:
            values["preferred_activities"] = tuple(a.strip() for a in activities.split("|"))
        record = MatchingPreferences(**values)
        try:
            validate_preferences(record)
        except ValidationError as e:
            raise ValidationError(f"Invalid preferences for user {record.user_id}: {e}") from e
        records.append(record)

    logger.info(f"Loaded {len(records)} preference records")
    return records


def _optional_str(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value)
