"""
In-memory repository backing the engine's data-access interface.

The engine itself never touches storage. This repository stands in for
the collaborator's data layer: it holds activities, profiles, stored
fitness metrics, preferences and matches, and answers the queries the
ranker issues (see fitmatch.matching.ranker).

Stored metrics play the role of the persisted fitness stats row: a user
only "has metrics" after refresh_metrics (or set_metrics) was called for
them, mirroring the external sync process.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set

from ..configs.loader import EngineSettings
from ..metrics.aggregator import DEFAULT_WINDOW_DAYS, compute_fitness_metrics
from ..metrics.cache import MetricsCache
from ..matching.lifecycle import MatchRegistry
from ..matching.preferences import PreferenceStore
from ..schema import ActivityRecord, FitnessMetrics, MatchingPreferences, UserProfile

logger = logging.getLogger(__name__)


class InMemoryRepository:
    """
    Collaborator data layer kept in memory.

    Attributes:
        window_days: Metrics window length in days
        preferences: PreferenceStore with one record per user
        matches: MatchRegistry enforcing the match lifecycle
        metrics_cache: Optional caller-supplied MetricsCache
    """

    def __init__(
        self,
        profiles: Optional[Iterable[UserProfile]] = None,
        activities: Optional[Iterable[ActivityRecord]] = None,
        preferences: Optional[PreferenceStore] = None,
        matches: Optional[MatchRegistry] = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
        metrics_cache: Optional[MetricsCache] = None
    ):
        self.window_days = window_days
        self.preferences = preferences or PreferenceStore()
        self.matches = matches or MatchRegistry()
        self.metrics_cache = metrics_cache

        self._profiles: Dict[str, UserProfile] = {}
        self._activities: Dict[str, List[ActivityRecord]] = defaultdict(list)
        self._metrics: Dict[str, FitnessMetrics] = {}

        for profile in profiles or []:
            self.add_profile(profile)
        self.add_activities(activities or [])

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        profiles: Optional[Iterable[UserProfile]] = None,
        activities: Optional[Iterable[ActivityRecord]] = None,
        preferences: Optional[Iterable[MatchingPreferences]] = None,
        use_cache: bool = True
    ) -> "InMemoryRepository":
        """
        Create a repository configured from EngineSettings.

        The metrics window, preference defaults and (when use_cache is set)
        a MetricsCache with the configured TTL are taken from settings.
        """
        cache = MetricsCache(ttl_seconds=settings.metrics_cache_ttl_seconds) if use_cache else None
        return cls(
            profiles=profiles,
            activities=activities,
            preferences=PreferenceStore(preferences, defaults=settings.preference_defaults),
            window_days=settings.window_days,
            metrics_cache=cache,
        )

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def add_profile(self, profile: UserProfile) -> None:
        self._profiles[profile.id] = profile

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def list_profiles(self) -> List[UserProfile]:
        return list(self._profiles.values())

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def add_activities(self, activities: Iterable[ActivityRecord]) -> int:
        """Store activities, ignoring ids already present for the user."""
        added = 0
        touched = set()
        for activity in activities:
            existing = self._activities[activity.user_id]
            if any(a.id == activity.id for a in existing):
                continue
            existing.append(activity)
            touched.add(activity.user_id)
            added += 1
        for user_id in touched:
            self._invalidate_cached_metrics(user_id)
        return added

    def delete_user_activities(self, user_id: str) -> int:
        """
        Remove every activity of a user (e.g. on privacy revocation).

        Stored metrics are dropped as well, so the user stops being a
        candidate until new activities are synced.
        """
        removed = len(self._activities.pop(user_id, []))
        self._metrics.pop(user_id, None)
        self._invalidate_cached_metrics(user_id)
        logger.info(f"Deleted {removed} activities for {user_id}")
        return removed

    def activities_in_window(
        self,
        user_id: str,
        days: int,
        as_of: Optional[datetime] = None
    ) -> List[ActivityRecord]:
        """Activities that started within `days` days up to as_of."""
        as_of = as_of or datetime.now()
        since = as_of - timedelta(days=days)
        return [
            a for a in self._activities.get(user_id, [])
            if since <= a.start_date <= as_of
        ]

    def recent_activity_types(
        self,
        user_id: str,
        days: int,
        as_of: Optional[datetime] = None
    ) -> Set[str]:
        """Distinct activity types in the last `days` days."""
        return {a.type for a in self.activities_in_window(user_id, days, as_of)}

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def compute_metrics(self, user_id: str, as_of: Optional[datetime] = None) -> FitnessMetrics:
        """Compute metrics over the window ending at as_of without storing them."""
        as_of = as_of or datetime.now()

        def compute() -> FitnessMetrics:
            window = self.activities_in_window(user_id, self.window_days, as_of)
            return compute_fitness_metrics(window, self.window_days)

        if self.metrics_cache is None:
            return compute()
        key = (user_id, self.window_days, as_of.date())
        return self.metrics_cache.get_or_compute(key, compute)

    def refresh_metrics(self, user_id: str, as_of: Optional[datetime] = None) -> FitnessMetrics:
        """Recompute and store a user's metrics."""
        metrics = self.compute_metrics(user_id, as_of)
        self._metrics[user_id] = metrics
        return metrics

    def refresh_all_metrics(self, as_of: Optional[datetime] = None) -> int:
        """Refresh metrics for every user that has activities."""
        user_ids = [u for u, acts in self._activities.items() if acts]
        for user_id in user_ids:
            self.refresh_metrics(user_id, as_of)
        logger.info(f"Refreshed metrics for {len(user_ids)} users")
        return len(user_ids)

    def set_metrics(self, user_id: str, metrics: FitnessMetrics) -> None:
        self._metrics[user_id] = metrics

    def get_metrics(self, user_id: str) -> Optional[FitnessMetrics]:
        return self._metrics.get(user_id)

    def _invalidate_cached_metrics(self, user_id: str) -> None:
        if self.metrics_cache is not None:
            self.metrics_cache.invalidate_where(
                lambda key: isinstance(key, tuple) and key[0] == user_id
            )

    # ------------------------------------------------------------------
    # Preferences and matches
    # ------------------------------------------------------------------

    def get_preferences(self, user_id: str) -> Optional[MatchingPreferences]:
        return self.preferences.find(user_id)

    def matched_user_ids(self, user_id: str) -> Set[str]:
        return self.matches.matched_user_ids(user_id)
