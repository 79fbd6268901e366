"""Pure analysis logic: posture metrics, issue classification, and scoring.

This module contains NO I/O operations and NO OpenCV imports.
All functions operate on typed dataclasses and return results.
"""

from posture_tracker.analysis.classifier import (
    ClassifierState,
    IssueClassifier,
    describe_issues,
    evaluate_issues,
)
from posture_tracker.analysis.metrics import compute_metrics, compute_signals
from posture_tracker.analysis.scoring import AnalysisHistory, aggregate_score, check_visibility

__all__ = [
    "compute_metrics",
    "compute_signals",
    "evaluate_issues",
    "describe_issues",
    "IssueClassifier",
    "ClassifierState",
    "aggregate_score",
    "check_visibility",
    "AnalysisHistory",
]
