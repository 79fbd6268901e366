"""Posture issue classification with hysteresis.

This module is pure logic with NO I/O and NO OpenCV imports.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from posture_tracker.core.config import ClassifierSettings, ScoreSettings, TieredRule
from posture_tracker.core.logging import get_logger
from posture_tracker.core.types import MetricSet, PostureSignals

logger = get_logger(__name__)

ISSUE_MESSAGES: dict[str, str] = {
    "forward_head": (
        "Forward head posture - Try pulling your chin back and aligning your ears "
        "over your shoulders"
    ),
    "slight_forward_head": (
        "Slight forward head - Gently tuck your chin and lengthen the back of your neck"
    ),
    "uneven_shoulders": "Uneven shoulders - Try to level your shoulders by relaxing the higher one",
    "slight_shoulder_imbalance": (
        "Slight shoulder imbalance - Focus on keeping both shoulders at the same height"
    ),
    "head_tilt": "Head tilted - Try to keep your head level and centered",
    "slight_head_tilt": "Slight head tilt - Gently straighten your head to center",
    "shoulder_height_imbalance": (
        "Shoulder height imbalance - Relax your shoulders and let them hang naturally"
    ),
    "slight_shoulder_height": (
        "Slight shoulder height difference - Focus on keeping shoulders level"
    ),
    "spine_alignment": (
        "Poor spine alignment - Sit up straight, imagine a string pulling you up from "
        "the top of your head"
    ),
    "slight_spine_deviation": (
        "Slight spine deviation - Gently straighten your back and engage your core"
    ),
    "slouching": "Slouching detected - Roll your shoulders back and down, open your chest",
    "head_neck_alignment": (
        "Poor head and neck alignment - Try to align your head directly over your shoulders"
    ),
    "slight_head_neck": "Slight head/neck misalignment - Gently adjust your head position",
    "too_close_to_camera": "Too close to camera - Move back to get better posture detection",
    "too_far_from_camera": "Too far from camera - Move closer for better posture detection",
    "low_visibility": (
        "Position yourself more clearly in front of the camera for better detection"
    ),
}

EXCELLENT_MESSAGE = "Excellent posture! Keep it up!"
GOOD_MESSAGE = "Good posture overall, minor adjustments needed"
IMPROVING_MESSAGE = "Posture is improving, keep working on it"


def _tiered_penalty(value: float, rule: TieredRule) -> tuple[str, float] | None:
    if value > rule.severe_above:
        return rule.severe_key, min(rule.severe_cap, value * rule.severe_scale)
    if value > rule.slight_above:
        return rule.slight_key, min(rule.slight_cap, value * rule.slight_scale)
    return None


def evaluate_issues(
    metrics: MetricSet,
    signals: PostureSignals,
    settings: ClassifierSettings | None = None,
) -> dict[str, float]:
    """Find the issues the current frame qualifies for.

    Args:
        metrics: Metric values for the frame
        signals: Derived boolean cues for the frame
        settings: Thresholds and penalties (uses defaults if None)

    Returns:
        Issue key → score penalty, in a fixed rule order
    """
    settings = settings or ClassifierSettings()
    potential: dict[str, float] = {}

    tiered = (
        (metrics.neck_angle, settings.neck_angle),
        (metrics.shoulder_alignment, settings.shoulder_alignment),
        (metrics.head_position, settings.head_position),
        (metrics.shoulder_height, settings.shoulder_height),
        (metrics.spine_alignment, settings.spine_alignment),
    )
    for value, rule in tiered:
        hit = _tiered_penalty(value, rule)
        if hit is not None:
            key, penalty = hit
            potential[key] = penalty

    if signals.slouching:
        potential["slouching"] = settings.slouching_penalty

    if signals.head_neck_score is not None:
        if signals.head_neck_score < settings.head_neck_severe_below:
            potential["head_neck_alignment"] = settings.head_neck_severe_penalty
        elif signals.head_neck_score < settings.head_neck_slight_below:
            potential["slight_head_neck"] = settings.head_neck_slight_penalty

    if signals.too_close:
        potential["too_close_to_camera"] = settings.too_close_penalty
    if signals.too_far:
        potential["too_far_from_camera"] = settings.too_far_penalty

    return potential


def describe_issues(
    issue_keys: Iterable[str],
    score: float,
    settings: ScoreSettings | None = None,
) -> tuple[str, ...]:
    """Map issue keys to coaching messages.

    When no negative issue is shown, one positive-feedback message is added
    according to the score band.

    Args:
        issue_keys: Keys of the shown issues, in display order
        score: Score used to pick the feedback band
        settings: Band thresholds (uses defaults if None)

    Returns:
        Messages in display order
    """
    settings = settings or ScoreSettings()
    messages = [ISSUE_MESSAGES.get(key, key) for key in issue_keys]

    if not messages:
        if score >= settings.excellent_band:
            messages.append(EXCELLENT_MESSAGE)
        elif score >= settings.good_band:
            messages.append(GOOD_MESSAGE)
        elif score >= settings.improving_band:
            messages.append(IMPROVING_MESSAGE)

    return tuple(messages)


@dataclass
class ClassifierState:
    """Per-engine hysteresis state.

    Attributes:
        counters: Consistency counter per tracked issue key (always > 0)
        frames_seen: Frames passed through the classifier
        resets: Times the counters were cleared
    """

    counters: dict[str, int] = field(default_factory=dict)
    frames_seen: int = 0
    resets: int = 0


class IssueClassifier:
    """Hysteresis filter turning per-frame issue flags into shown issues.

    Rules per frame:
        - tracked issues not flagged this frame decay by `decay_step`
          (floor 0, pruned at 0)
        - flagged issues grow by `growth_step`
        - an issue is shown only while it is flagged AND its counter has
          reached `consistency_threshold`

    Single-frame detector blips therefore never surface, while a shown issue
    disappears on the first frame it stops qualifying even if its counter
    is still positive.
    """

    def __init__(
        self,
        settings: ClassifierSettings | None = None,
        state: ClassifierState | None = None,
    ) -> None:
        """Initialize classifier.

        Args:
            settings: Classifier settings (uses defaults if None)
            state: Existing state to continue from (fresh if None)
        """
        self.settings = settings or ClassifierSettings()
        self._state = state or ClassifierState()

    @property
    def state(self) -> ClassifierState:
        """Underlying hysteresis state."""
        return self._state

    @property
    def counters(self) -> dict[str, int]:
        """Snapshot of the consistency counters."""
        return dict(self._state.counters)

    def counter(self, issue_key: str) -> int:
        """Current counter value for an issue (0 if untracked)."""
        return self._state.counters.get(issue_key, 0)

    def update(self, potential: Mapping[str, float]) -> list[str]:
        """Advance the counters by one frame.

        Args:
            potential: Issues flagged this frame (keys in display order)

        Returns:
            Keys of the issues to show, in the order of `potential`
        """
        counters = self._state.counters
        self._state.frames_seen += 1

        for key in list(counters):
            if key not in potential:
                remaining = max(0, counters[key] - self.settings.decay_step)
                if remaining == 0:
                    del counters[key]
                else:
                    counters[key] = remaining

        for key in potential:
            counters[key] = counters.get(key, 0) + self.settings.growth_step

        return [
            key for key in potential if counters[key] >= self.settings.consistency_threshold
        ]

    def observe_smoothed_score(self, score: float) -> bool:
        """Clear all counters once the smoothed score shows good posture.

        Args:
            score: Latest smoothed score

        Returns:
            True if the counters were cleared
        """
        if score > self.settings.reset_score and self._state.counters:
            logger.debug(
                "Smoothed score %.2f above %.1f, clearing issue counters",
                score,
                self.settings.reset_score,
            )
            self.clear()
            return True
        return False

    def clear(self) -> None:
        """Forget all accumulated issue evidence."""
        self._state.counters.clear()
        self._state.resets += 1
