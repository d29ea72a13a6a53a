"""
Fitness Compatibility Engine

This package implements the fitness-compatibility core of a social-matching
application: it turns raw activity history into fitness metrics, gates new
users against an administrator-configured fitness threshold, and ranks
candidate partners by a multi-factor compatibility score.

Key Design Decisions:
- Every scoring component is a pure function over already-fetched records
- Storage, HTTP and scheduling belong to collaborators, not to this package
- Missing pace data is modeled as None and never penalized as "worst pace"
- Threshold configuration is append-only; "current" is the latest version
"""

__version__ = "1.0.0"
