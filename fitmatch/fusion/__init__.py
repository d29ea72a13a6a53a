"""Fusion module for combining pairwise factors into a compatibility score."""

from .late_fusion import CompatibilityScorer, FactorWeights, COMPATIBILITY_WEIGHTS, score

__all__ = ["CompatibilityScorer", "FactorWeights", "COMPATIBILITY_WEIGHTS", "score"]
