"""
Admission gate: fitness metrics vs. the administrator threshold.

Checks are evaluated in a fixed order, and the human-readable reasons
are shown verbatim to the user, so their wording and order are part of
the contract:

    weekly distance -> weekly activities -> pace (conditional)
    -> activity types (conditional) -> consistency bonus

Scoring Formula:
    earned = 25 * passed_checks + round(consistency * 0.1)
    score  = round(earned / (25 * evaluated_checks + 10) * 100)

Conditional checks:
- Pace is only checked when BOTH the threshold and the user have a pace.
  A user with no pace data is never penalized for it.
- Activity types are only checked when the threshold restricts them.

No configured threshold is an automatic pass (a leniency policy, not an
error). Administrator allow-list overrides are decided by the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..schema import FitnessMetrics, FitnessThreshold
from ..utils import format_number, format_pace, round_half_up

logger = logging.getLogger(__name__)

POINTS_PER_CHECK = 25
MAX_CONSISTENCY_BONUS = 10
CONSISTENCY_BONUS_RATE = 0.1

NO_THRESHOLD_REASON = "No fitness threshold configured"
ADMITTED_MESSAGE = (
    "Congratulations! Your fitness level meets our community standards. "
    "Score: {score}/100"
)
REJECTED_MESSAGE = (
    "Your current fitness level doesn't meet our minimum requirements. "
    "Please continue training and try again in a few weeks."
)


@dataclass
class ThresholdCheck:
    """Outcome of one evaluated threshold check."""
    name: str
    passed: bool
    actual: Any
    required: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "actual": self.actual,
            "required": self.required,
        }


@dataclass
class ThresholdEvaluation:
    """
    Result of evaluating metrics against a threshold.

    Attributes:
        meets: Whether every evaluated check passed
        score: 0-100 score including the consistency bonus
        reasons: User-facing explanation lines, in check order
        checks: Structured outcome of each evaluated check
    """
    meets: bool
    score: int
    reasons: List[str]
    checks: List[ThresholdCheck] = field(default_factory=list)

    @property
    def failed_checks(self) -> List[str]:
        return [check.name for check in self.checks if not check.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meets": self.meets,
            "score": self.score,
            "reasons": list(self.reasons),
            "checks": [check.to_dict() for check in self.checks],
        }


@dataclass
class AdmissionDecision:
    """Admission outcome with the message shown to the prospective user."""
    admitted: bool
    evaluation: ThresholdEvaluation
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admitted": self.admitted,
            "evaluation": self.evaluation.to_dict(),
            "message": self.message,
        }


def evaluate(
    metrics: FitnessMetrics,
    threshold: Optional[FitnessThreshold]
) -> ThresholdEvaluation:
    """
    Evaluate fitness metrics against the current threshold.

    Args:
        metrics: The user's fitness metrics
        threshold: Current threshold, or None if none is configured

    Returns:
        ThresholdEvaluation with decision, score and reasons
    """
    if threshold is None:
        return ThresholdEvaluation(meets=True, score=100, reasons=[NO_THRESHOLD_REASON])

    checks: List[ThresholdCheck] = []
    reasons: List[str] = []

    # Weekly distance
    distance_ok = metrics.weekly_distance >= threshold.weekly_distance
    checks.append(ThresholdCheck(
        "weekly_distance", distance_ok, metrics.weekly_distance, threshold.weekly_distance
    ))
    verdict = "meets requirement" if distance_ok else "below requirement"
    reasons.append(
        f"{_mark(distance_ok)} Weekly distance: {round_half_up(metrics.weekly_distance)}m "
        f"{verdict} ({format_number(threshold.weekly_distance)}m)"
    )

    # Weekly activities
    activities_ok = metrics.weekly_activities >= threshold.weekly_activities
    checks.append(ThresholdCheck(
        "weekly_activities", activities_ok, metrics.weekly_activities, threshold.weekly_activities
    ))
    verdict = "meets requirement" if activities_ok else "below requirement"
    reasons.append(
        f"{_mark(activities_ok)} Weekly activities: {round_half_up(metrics.weekly_activities)} "
        f"{verdict} ({format_number(threshold.weekly_activities)})"
    )

    # Average pace, only when both sides have a pace
    if threshold.average_pace is not None and metrics.average_pace is not None:
        pace_ok = metrics.average_pace <= threshold.average_pace
        checks.append(ThresholdCheck(
            "average_pace", pace_ok, metrics.average_pace, threshold.average_pace
        ))
        verdict = "meets requirement" if pace_ok else "slower than requirement"
        reasons.append(
            f"{_mark(pace_ok)} Average pace: {format_pace(metrics.average_pace)}/km "
            f"{verdict} ({format_pace(threshold.average_pace)}/km)"
        )

    # Activity types, only when the threshold restricts them
    allowed = threshold.allowed_activity_types
    if allowed:
        matching = sorted(t for t in metrics.activity_types if t in allowed)
        types_ok = bool(matching)
        checks.append(ThresholdCheck(
            "activity_types", types_ok, sorted(metrics.activity_types), list(allowed)
        ))
        if types_ok:
            reasons.append(f"✓ Activity types: {', '.join(matching)} match allowed types")
        else:
            reasons.append(f"✗ No activities match allowed types: {', '.join(allowed)}")

    bonus = min(
        MAX_CONSISTENCY_BONUS,
        round_half_up(metrics.consistency_score * CONSISTENCY_BONUS_RATE)
    )
    reasons.append(
        f"Consistency score: {metrics.consistency_score}/100 (+{bonus} bonus points)"
    )

    earned = POINTS_PER_CHECK * sum(1 for c in checks if c.passed) + bonus
    max_points = POINTS_PER_CHECK * len(checks) + MAX_CONSISTENCY_BONUS
    score = round_half_up(earned / max_points * 100)
    meets = all(c.passed for c in checks)

    logger.debug(
        f"Threshold v{threshold.version} evaluation: meets={meets}, score={score}, "
        f"checks={len(checks)}"
    )
    return ThresholdEvaluation(meets=meets, score=score, reasons=reasons, checks=checks)


def admission_decision(
    metrics: FitnessMetrics,
    threshold: Optional[FitnessThreshold]
) -> AdmissionDecision:
    """
    Decide admission for a prospective user.

    Args:
        metrics: The prospective user's fitness metrics
        threshold: Current threshold, or None

    Returns:
        AdmissionDecision with the user-facing message
    """
    evaluation = evaluate(metrics, threshold)
    if evaluation.meets:
        message = ADMITTED_MESSAGE.format(score=evaluation.score)
    else:
        message = REJECTED_MESSAGE
    return AdmissionDecision(admitted=evaluation.meets, evaluation=evaluation, message=message)


def _mark(passed: bool) -> str:
    return "✓" if passed else "✗"
