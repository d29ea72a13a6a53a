"""
Match lifecycle: creation and archiving of user pairs.

States:
    none -> active -> archived (terminal)

Invariants:
- At most one Match per unordered pair, regardless of status
- A user can never be matched with themselves
- Only a member of the pair may archive the match

Violations are hard failures (ValidationError / ConflictError /
AuthorizationError), never silently ignored.
"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

import numpy as np

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..schema import Match, MatchStatus

logger = logging.getLogger(__name__)


class MatchRegistry:
    """
    In-memory Match store enforcing the lifecycle invariants.

    Creation checks and inserts under one lock so two concurrent
    creations for the same pair cannot both succeed.
    """

    def __init__(self, matches: Optional[Iterable[Match]] = None, clock=datetime.now):
        self.clock = clock
        self._matches: Dict[str, Match] = {}
        self._lock = threading.Lock()
        for match in matches or []:
            self._matches[match.id] = match

    def create_match(
        self,
        user1_id: str,
        user2_id: str,
        compatibility_score: int,
        matched_at: Optional[datetime] = None
    ) -> Match:
        """
        Create an active match between two users.

        Raises:
            ValidationError: If both ids are the same user or the score is out of range
            ConflictError: If a match already exists for the pair (either order)
        """
        if user1_id == user2_id:
            raise ValidationError("Cannot create a match between a user and themselves")
        if not 0 <= compatibility_score <= 100:
            raise ValidationError(
                f"Compatibility score must be between 0 and 100, got {compatibility_score}"
            )

        with self._lock:
            if self._find_pair(user1_id, user2_id) is not None:
                raise ConflictError("Match already exists between these users")
            match = Match(
                id=uuid.uuid4().hex,
                user1_id=user1_id,
                user2_id=user2_id,
                compatibility_score=int(compatibility_score),
                matched_at=matched_at or self.clock(),
                status=MatchStatus.ACTIVE,
            )
            self._matches[match.id] = match

        logger.info(f"Created match {match.id} between {user1_id} and {user2_id}")
        return match

    def archive_match(self, match_id: str, requesting_user_id: str) -> Match:
        """
        Archive a match on behalf of one of its members.

        Archiving an already archived match is not guarded here.

        Raises:
            NotFoundError: If the match does not exist
            AuthorizationError: If the requester is not part of the match
        """
        with self._lock:
            match = self._matches.get(match_id)
            if match is None:
                raise NotFoundError(f"Match not found: {match_id}")
            if not match.involves(requesting_user_id):
                raise AuthorizationError("Not authorized to archive this match")
            archived = replace(match, status=MatchStatus.ARCHIVED)
            self._matches[match_id] = archived

        logger.info(f"Archived match {match_id} by {requesting_user_id}")
        return archived

    def find_by_id(self, match_id: str) -> Optional[Match]:
        return self._matches.get(match_id)

    def find_by_user_ids(self, user1_id: str, user2_id: str) -> Optional[Match]:
        """The match for the unordered pair, in any status."""
        return self._find_pair(user1_id, user2_id)

    def find_by_user_id(
        self,
        user_id: str,
        status: Optional[MatchStatus] = None
    ) -> List[Match]:
        """Matches involving the user, newest first, optionally by status."""
        matches = [
            m for m in self._matches.values()
            if m.involves(user_id) and (status is None or m.status == status)
        ]
        return sorted(matches, key=lambda m: m.matched_at, reverse=True)

    def matched_user_ids(self, user_id: str) -> Set[str]:
        """Everyone ever paired with the user, active or archived."""
        return {m.other_user(user_id) for m in self._matches.values() if m.involves(user_id)}

    def are_users_matched(self, user1_id: str, user2_id: str) -> bool:
        """True only for an ACTIVE match between the two users."""
        match = self._find_pair(user1_id, user2_id)
        return match is not None and match.status == MatchStatus.ACTIVE

    def match_stats(self, user_id: str) -> Dict[str, float]:
        """
        Summary statistics of a user's matches.

        Returns:
            Dictionary with total, active and archived counts and the mean
            compatibility score (0 when the user has no matches)
        """
        matches = self.find_by_user_id(user_id)
        scores = np.array([m.compatibility_score for m in matches], dtype=float)
        return {
            "total_matches": len(matches),
            "active_matches": sum(1 for m in matches if m.status == MatchStatus.ACTIVE),
            "archived_matches": sum(1 for m in matches if m.status == MatchStatus.ARCHIVED),
            "average_compatibility_score": float(scores.mean()) if len(scores) else 0.0,
        }

    def _find_pair(self, user1_id: str, user2_id: str) -> Optional[Match]:
        pair = frozenset((user1_id, user2_id))
        for match in self._matches.values():
            if match.pair == pair:
                return match
        return None

    def __len__(self) -> int:
        return len(self._matches)
