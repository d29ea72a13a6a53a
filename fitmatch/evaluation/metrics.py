"""
Batch admission evaluation and reporting.

Administrators review how the current threshold plays out across a
population of users before and after changing it. This module evaluates
many users at once and summarizes:
1. Pass rate and average admission score
2. Score distribution (mean, std, quantiles)
3. Most common failing checks

Reports are descriptive only; they do not change any threshold.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..admission.evaluator import ThresholdEvaluation, evaluate
from ..schema import FitnessMetrics, FitnessThreshold

logger = logging.getLogger(__name__)

DEFAULT_QUANTILES = (0.1, 0.25, 0.5, 0.75, 0.9)


@dataclass
class ScoreDistributionStats:
    """Statistics about admission score distribution."""
    mean: float
    std: float
    min: float
    max: float
    quantiles: Dict[str, float]  # e.g., {"p10": 42.0, "p50": 71.0, "p90": 95.0}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": float(self.mean),
            "std": float(self.std),
            "min": float(self.min),
            "max": float(self.max),
            "quantiles": {k: float(v) for k, v in self.quantiles.items()}
        }


@dataclass
class AdmissionReport:
    """
    Summary of evaluating a population against one threshold.

    Attributes:
        threshold_version: Version evaluated against (None when unconfigured)
        total_evaluations: Number of users evaluated
        pass_rate: Share of users meeting the threshold [0, 1]
        average_score: Mean admission score
        distribution_stats: Score distribution, None when nothing was evaluated
        common_failure_reasons: (check name, count) pairs, most frequent first
    """
    threshold_version: Optional[int]
    total_evaluations: int
    pass_rate: float
    average_score: float
    distribution_stats: Optional[ScoreDistributionStats] = None
    common_failure_reasons: List[Tuple[str, int]] = field(default_factory=list)
    evaluations: Dict[str, ThresholdEvaluation] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "threshold_version": self.threshold_version,
            "total_evaluations": self.total_evaluations,
            "pass_rate": float(self.pass_rate),
            "average_score": float(self.average_score),
            "common_failure_reasons": [
                {"reason": reason, "count": count}
                for reason, count in self.common_failure_reasons
            ],
        }
        if self.distribution_stats:
            result["distribution_stats"] = self.distribution_stats.to_dict()
        return result

    def to_frame(self) -> pd.DataFrame:
        """One row per evaluated user: meets, score and failed checks."""
        rows = [
            {
                "user_id": user_id,
                "meets": ev.meets,
                "score": ev.score,
                "failed_checks": ",".join(ev.failed_checks),
            }
            for user_id, ev in self.evaluations.items()
        ]
        return pd.DataFrame(rows, columns=["user_id", "meets", "score", "failed_checks"])

    def save(self, filepath: str) -> None:
        """Save report to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved admission report to {filepath}")

    def summary(self) -> str:
        """Generate text summary of the report."""
        version = self.threshold_version if self.threshold_version is not None else "none"
        lines = [
            f"Admission Report (threshold version: {version})",
            "=" * 50,
            "",
            f"Users evaluated: {self.total_evaluations}",
            f"Pass rate:       {self.pass_rate:.2%}",
            f"Average score:   {self.average_score:.1f}",
        ]

        if self.distribution_stats:
            lines.extend([
                "",
                "Score Distribution:",
                f"  Std: {self.distribution_stats.std:.2f}",
                f"  Min: {self.distribution_stats.min:.0f}",
                f"  Max: {self.distribution_stats.max:.0f}",
            ])
            for q_name, q_value in self.distribution_stats.quantiles.items():
                lines.append(f"  {q_name}: {q_value:.1f}")

        if self.common_failure_reasons:
            lines.extend(["", "Most Common Failures:"])
            for reason, count in self.common_failure_reasons:
                lines.append(f"  {reason}: {count}")

        return "\n".join(lines)


def compute_score_distribution_stats(
    scores: np.ndarray,
    quantiles: Tuple[float, ...] = DEFAULT_QUANTILES
) -> ScoreDistributionStats:
    """
    Compute distribution statistics for scores.

    Args:
        scores: Array of admission scores (non-empty)
        quantiles: Quantile values to compute (default: p10, p25, p50, p75, p90)

    Returns:
        ScoreDistributionStats instance
    """
    scores = np.asarray(scores, dtype=float)
    if scores.size == 0:
        raise ValueError("Cannot compute distribution statistics of an empty score array")

    quantile_dict = {
        f"p{int(q * 100)}": float(np.percentile(scores, q * 100))
        for q in quantiles
    }

    return ScoreDistributionStats(
        mean=float(np.mean(scores)),
        std=float(np.std(scores)),
        min=float(np.min(scores)),
        max=float(np.max(scores)),
        quantiles=quantile_dict
    )


def evaluate_users(
    metrics_by_user: Mapping[str, FitnessMetrics],
    threshold: Optional[FitnessThreshold]
) -> Dict[str, ThresholdEvaluation]:
    """
    Evaluate many users against one threshold.

    Args:
        metrics_by_user: Fitness metrics keyed by user id
        threshold: Threshold to evaluate against, or None

    Returns:
        Evaluations keyed by user id
    """
    return {user_id: evaluate(metrics, threshold) for user_id, metrics in metrics_by_user.items()}


def create_admission_report(
    evaluations: Mapping[str, ThresholdEvaluation],
    threshold: Optional[FitnessThreshold],
    quantiles: Tuple[float, ...] = DEFAULT_QUANTILES,
    top_k: int = 5
) -> AdmissionReport:
    """
    Create an admission report from batch evaluations.

    Args:
        evaluations: Evaluations keyed by user id
        threshold: Threshold the evaluations were made against
        quantiles: Quantiles to compute
        top_k: Number of failure reasons to keep

    Returns:
        AdmissionReport instance
    """
    total = len(evaluations)
    version = threshold.version if threshold is not None else None

    if total == 0:
        logger.warning("No evaluations supplied; returning an empty admission report")
        return AdmissionReport(
            threshold_version=version,
            total_evaluations=0,
            pass_rate=0.0,
            average_score=0.0,
        )

    scores = np.array([ev.score for ev in evaluations.values()], dtype=float)
    passed = sum(1 for ev in evaluations.values() if ev.meets)

    failures = Counter(
        name for ev in evaluations.values() for name in ev.failed_checks
    )

    report = AdmissionReport(
        threshold_version=version,
        total_evaluations=total,
        pass_rate=passed / total,
        average_score=float(scores.mean()),
        distribution_stats=compute_score_distribution_stats(scores, quantiles),
        common_failure_reasons=failures.most_common(top_k),
        evaluations=dict(evaluations),
    )
    logger.info(
        f"Admission report: {total} users, pass rate {report.pass_rate:.2%}, "
        f"average score {report.average_score:.1f}"
    )
    return report
