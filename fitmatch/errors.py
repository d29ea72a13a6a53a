"""
Error taxonomy for the fitness compatibility engine.

The engine performs no I/O and never retries; every failure surfaces
synchronously as one of these exceptions and the caller translates it
into a user-facing response.

An absent fitness threshold is deliberately NOT an error: the evaluator
treats it as an automatic pass.
"""


class FitMatchError(Exception):
    """Base class for all engine errors."""


class NotFoundError(FitMatchError, LookupError):
    """A required record (profile, metrics, match) does not exist."""


class ConflictError(FitMatchError):
    """The operation conflicts with existing state (e.g. duplicate match)."""


class ValidationError(FitMatchError, ValueError):
    """Input values are malformed or out of range; no state was changed."""


class AuthorizationError(FitMatchError):
    """The requesting user is not allowed to act on the record."""
