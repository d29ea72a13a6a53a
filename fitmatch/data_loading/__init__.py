"""Data loading module for activity/profile CSVs and the in-memory store."""

from .loaders import load_activities, load_profiles, load_preferences, validate_columns
from .repository import InMemoryRepository

__all__ = [
    "load_activities",
    "load_profiles",
    "load_preferences",
    "validate_columns",
    "InMemoryRepository",
]
