"""Admission module: threshold evaluation and versioned threshold config."""

from .evaluator import (
    evaluate,
    admission_decision,
    ThresholdCheck,
    ThresholdEvaluation,
    AdmissionDecision,
)
from .threshold_log import (
    ThresholdLog,
    latest_threshold,
    validate_threshold_update,
    validate_threshold_values,
    default_threshold_input,
)

__all__ = [
    "evaluate",
    "admission_decision",
    "ThresholdCheck",
    "ThresholdEvaluation",
    "AdmissionDecision",
    "ThresholdLog",
    "latest_threshold",
    "validate_threshold_update",
    "validate_threshold_values",
    "default_threshold_input",
]
