"""Score aggregation and analysis smoothing.

This module is pure logic with NO I/O and NO OpenCV imports.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable, Iterator

import numpy as np

from posture_tracker.analysis.classifier import ISSUE_MESSAGES
from posture_tracker.core.config import ScoreSettings
from posture_tracker.core.types import LandmarkFrame, MetricSet, PostureAnalysis

INITIALIZING_MESSAGE = "Initializing posture analysis..."


def aggregate_score(penalties: Iterable[float], settings: ScoreSettings | None = None) -> float:
    """Subtract accumulated issue penalties from the baseline score.

    Args:
        penalties: Penalty of every issue satisfied by the frame
        settings: Score bounds (uses defaults if None)

    Returns:
        Score clamped to [floor, ceiling]
    """
    settings = settings or ScoreSettings()
    score = settings.baseline - sum(penalties)
    return max(settings.floor, min(settings.ceiling, score))


def check_visibility(
    frame: LandmarkFrame, settings: ScoreSettings | None = None
) -> PostureAnalysis | None:
    """Visibility gate applied before any metric is computed.

    Args:
        frame: Smoothed landmark frame
        settings: Gate thresholds and degraded scores (uses defaults if None)

    Returns:
        The degraded analysis when too few key joints are visible,
        None when the frame can be analyzed normally
    """
    settings = settings or ScoreSettings()
    key_joints = (frame.nose, frame.left_shoulder, frame.right_shoulder)
    visible = sum(1 for lm in key_joints if lm.visibility > settings.gate_min_visibility)
    if visible >= settings.gate_required_visible:
        return None

    left, right = frame.left_shoulder, frame.right_shoulder
    if (
        left.visibility > settings.degraded_shoulder_visibility
        and right.visibility > settings.degraded_shoulder_visibility
        and math.hypot(left.x - right.x, left.y - right.y) < settings.degraded_too_far_distance
    ):
        key, score = "too_far_from_camera", settings.degraded_too_far_score
    else:
        key, score = "low_visibility", settings.degraded_score

    return PostureAnalysis(
        score=score,
        issues=(ISSUE_MESSAGES[key],),
        metrics=MetricSet(),
        issue_keys=(key,),
        degraded=True,
        timestamp=frame.timestamp,
    )


class AnalysisHistory:
    """Rolling window of per-frame analyses.

    Score and metrics are smoothed by arithmetic mean over the window, while
    issues always come from the most recent analysis alone.
    """

    def __init__(self, maxlen: int = 12, empty_score: float = 10.0) -> None:
        """Initialize history.

        Args:
            maxlen: Number of analyses kept for smoothing
            empty_score: Score reported before any analysis arrives
        """
        self.maxlen = maxlen
        self.empty_score = empty_score
        self._analyses: deque[PostureAnalysis] = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self._analyses)

    def __iter__(self) -> Iterator[PostureAnalysis]:
        return iter(self._analyses)

    @property
    def latest(self) -> PostureAnalysis | None:
        """Most recent per-frame analysis."""
        return self._analyses[-1] if self._analyses else None

    def append(self, analysis: PostureAnalysis) -> None:
        """Add a per-frame analysis, evicting the oldest when full."""
        self._analyses.append(analysis)

    def clear(self) -> None:
        """Drop all analyses."""
        self._analyses.clear()

    def smoothed(self) -> PostureAnalysis:
        """Average the window into a single analysis.

        Returns:
            Smoothed analysis, or a neutral placeholder when empty
        """
        latest = self.latest
        if latest is None:
            return PostureAnalysis(score=self.empty_score, issues=(INITIALIZING_MESSAGE,))

        names = MetricSet.names()
        rows = np.array(
            [[a.score, *(getattr(a.metrics, n) for n in names)] for a in self._analyses],
            dtype=np.float64,
        )
        means = rows.mean(axis=0)

        return PostureAnalysis(
            score=float(means[0]),
            issues=latest.issues,
            metrics=MetricSet(**{n: float(v) for n, v in zip(names, means[1:], strict=True)}),
            issue_keys=latest.issue_keys,
            degraded=latest.degraded,
            timestamp=latest.timestamp,
        )
