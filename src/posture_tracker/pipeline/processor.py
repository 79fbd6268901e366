"""Per-frame posture processing pipeline."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from posture_tracker.analysis.classifier import (
    ClassifierState,
    IssueClassifier,
    describe_issues,
    evaluate_issues,
)
from posture_tracker.analysis.metrics import compute_metrics, compute_signals
from posture_tracker.analysis.scoring import AnalysisHistory, aggregate_score, check_visibility
from posture_tracker.core.config import Settings, get_settings
from posture_tracker.core.logging import get_logger
from posture_tracker.core.types import Keypoint, LandmarkFrame, PostureAnalysis, SessionStats
from posture_tracker.pipeline.emitter import AnalysisCallback, OutputEmitter
from posture_tracker.vision.filters import LandmarkSmoother

logger = get_logger(__name__)


@dataclass
class ProcessedFrame:
    """Result of processing a single frame."""

    frame: LandmarkFrame
    smoothed: LandmarkFrame
    analysis: PostureAnalysis
    potential_issues: dict[str, float] = field(default_factory=dict)
    emitted: PostureAnalysis | None = None


class PostureProcessor:
    """Orchestrates the synchronous per-frame pipeline.

    Coordinates:
    - Landmark smoothing
    - Visibility gating
    - Metric calculation
    - Issue classification
    - Score aggregation and history smoothing
    - Rate-limited publication

    All state (rolling windows, consistency counters, last publication time)
    is owned by the instance; separate processors never share it.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        classifier_state: ClassifierState | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize processor with settings.

        Args:
            settings: Application settings (uses defaults if None)
            classifier_state: Hysteresis state to continue from
            clock: Monotonic clock returning seconds
        """
        self.settings = settings or get_settings()
        self._clock = clock

        # Components
        self._smoother = LandmarkSmoother(self.settings.smoothing)
        self._classifier = IssueClassifier(self.settings.classifier, classifier_state)
        self._history = AnalysisHistory(
            self.settings.smoothing.analysis_window, empty_score=self.settings.score.baseline
        )
        self._emitter = OutputEmitter(self.settings.emitter)

        # State
        self._current_analysis: PostureAnalysis | None = None
        self._stats = SessionStats(start_time=clock())
        self._frame_count = 0

    @property
    def current_analysis(self) -> PostureAnalysis | None:
        """Most recently published analysis."""
        return self._current_analysis

    @property
    def classifier(self) -> IssueClassifier:
        """Issue classifier holding the consistency counters."""
        return self._classifier

    @property
    def history(self) -> AnalysisHistory:
        """Rolling window of per-frame analyses."""
        return self._history

    @property
    def stats(self) -> SessionStats:
        """Tally of published analyses."""
        return self._stats

    @property
    def frame_count(self) -> int:
        """Frames processed since the last reset."""
        return self._frame_count

    def subscribe(self, callback: AnalysisCallback) -> Callable[[], None]:
        """Register a callback for published analyses."""
        return self._emitter.subscribe(callback)

    def now_ms(self) -> float:
        """Current clock reading in milliseconds."""
        return self._clock() * 1000.0

    def process_keypoints(
        self,
        keypoints: Sequence[Keypoint],
        timestamp: float | None = None,
        now_ms: float | None = None,
    ) -> ProcessedFrame:
        """Process one detector output.

        Args:
            keypoints: Ordered keypoints for one pose
            timestamp: Capture time in seconds (clock reading if None)
            now_ms: Publication clock in milliseconds (clock reading if None)

        Returns:
            ProcessedFrame with the per-frame and (possibly) published analysis
        """
        if timestamp is None:
            timestamp = self._clock()
        frame = LandmarkFrame.from_keypoints(keypoints, timestamp=timestamp)
        return self.process_frame(frame, now_ms=now_ms)

    def process_frame(self, frame: LandmarkFrame, now_ms: float | None = None) -> ProcessedFrame:
        """Process a single landmark frame through the full pipeline.

        Args:
            frame: Raw landmark frame
            now_ms: Publication clock in milliseconds (clock reading if None)

        Returns:
            ProcessedFrame with all results
        """
        self._frame_count += 1

        # Step 1: Smooth landmarks
        smoothed = self._smoother.update(frame)

        # Step 2: Analyze the smoothed frame
        analysis, potential = self.analyze(smoothed)
        self._history.append(analysis)

        # Step 3: Publish if the emit interval elapsed
        if now_ms is None:
            now_ms = self.now_ms()

        emitted = None
        if self._emitter.due(now_ms):
            emitted = self.smoothed_analysis()
            self._current_analysis = emitted
            self._stats.add_analysis(emitted)
            self._emitter.emit(emitted, now_ms)
            logger.debug(
                "Published posture score %.2f with %d issue(s)",
                emitted.score,
                len(emitted.issue_keys),
            )

        return ProcessedFrame(
            frame=frame,
            smoothed=smoothed,
            analysis=analysis,
            potential_issues=potential,
            emitted=emitted,
        )

    def analyze(self, frame: LandmarkFrame) -> tuple[PostureAnalysis, dict[str, float]]:
        """Produce the per-frame analysis of a smoothed frame.

        Args:
            frame: Smoothed landmark frame

        Returns:
            Per-frame analysis and the issues the frame qualified for
        """
        degraded = check_visibility(frame, self.settings.score)
        if degraded is not None:
            logger.debug("Key landmarks not visible: %s", frame.visibilities())
            return degraded, {}

        metrics = compute_metrics(frame, self.settings.metrics)
        signals = compute_signals(frame, self.settings.metrics)

        potential = evaluate_issues(metrics, signals, self.settings.classifier)
        shown = self._classifier.update(potential)
        score = aggregate_score(potential.values(), self.settings.score)

        analysis = PostureAnalysis(
            score=score,
            issues=describe_issues(shown, score, self.settings.score),
            metrics=metrics,
            issue_keys=tuple(shown),
            timestamp=frame.timestamp,
        )
        return analysis, potential

    def smoothed_analysis(self) -> PostureAnalysis:
        """Smooth the history and apply the high-score counter reset.

        Returns:
            Analysis averaged over the history window
        """
        smoothed = self._history.smoothed()
        if self._history.latest is not None:
            self._classifier.observe_smoothed_score(smoothed.score)
        return smoothed

    def reset(self, clear_consistency: bool = True) -> None:
        """Clear derived state.

        Args:
            clear_consistency: Also forget the issue consistency counters
        """
        self._smoother.reset()
        self._history.clear()
        self._emitter.reset()
        self._current_analysis = None
        self._frame_count = 0
        if clear_consistency:
            self._classifier.clear()
        logger.debug("Processor reset (consistency cleared: %s)", clear_consistency)

    def reset_session(self) -> None:
        """Reset session statistics."""
        self._stats.reset()
        self._stats.start_time = self._clock()
        logger.info("Session reset")
