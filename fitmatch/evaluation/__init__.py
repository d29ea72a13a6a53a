"""Evaluation module for batch admission analysis."""

from .metrics import (
    compute_score_distribution_stats,
    evaluate_users,
    ScoreDistributionStats,
    AdmissionReport,
    create_admission_report
)

__all__ = [
    "compute_score_distribution_stats",
    "evaluate_users",
    "ScoreDistributionStats",
    "AdmissionReport",
    "create_admission_report"
]
