"""Tests for issue classification and hysteresis."""

from __future__ import annotations

import pytest

from posture_tracker.analysis.classifier import (
    EXCELLENT_MESSAGE,
    GOOD_MESSAGE,
    IMPROVING_MESSAGE,
    ISSUE_MESSAGES,
    ClassifierState,
    IssueClassifier,
    describe_issues,
    evaluate_issues,
)
from posture_tracker.core.config import ClassifierSettings
from posture_tracker.core.types import MetricSet, PostureSignals


class TestEvaluateIssues:
    """Tests for per-frame issue thresholds."""

    def test_no_issues_for_neutral_metrics(self) -> None:
        assert evaluate_issues(MetricSet(), PostureSignals()) == {}

    def test_severe_forward_head(self) -> None:
        """neckAngle 35 → forward_head with penalty min(2.0, 35 * 0.08)."""
        potential = evaluate_issues(MetricSet(neck_angle=35.0), PostureSignals())
        assert potential == {"forward_head": pytest.approx(2.0)}

    def test_slight_forward_head(self) -> None:
        potential = evaluate_issues(MetricSet(neck_angle=25.0), PostureSignals())
        assert potential == {"slight_forward_head": pytest.approx(0.8)}

    def test_threshold_is_exclusive(self) -> None:
        """A metric exactly on the threshold falls into the lower tier."""
        potential = evaluate_issues(MetricSet(neck_angle=30.0), PostureSignals())
        assert "forward_head" not in potential
        assert "slight_forward_head" in potential

    def test_tier_penalties(self) -> None:
        metrics = MetricSet(
            shoulder_alignment=15.0,
            head_position=30.0,
            shoulder_height=35.0,
            spine_alignment=35.0,
        )
        potential = evaluate_issues(metrics, PostureSignals())

        assert potential["slight_shoulder_imbalance"] == pytest.approx(0.6)
        assert potential["head_tilt"] == pytest.approx(1.8)
        assert potential["shoulder_height_imbalance"] == pytest.approx(1.2)
        assert potential["slight_spine_deviation"] == pytest.approx(0.4)

    def test_signal_issues(self) -> None:
        signals = PostureSignals(slouching=True, too_close=True, head_neck_score=6.5)
        potential = evaluate_issues(MetricSet(), signals)

        assert potential == {
            "slouching": pytest.approx(1.3),
            "slight_head_neck": pytest.approx(0.5),
            "too_close_to_camera": pytest.approx(2.0),
        }

    def test_poor_head_neck(self) -> None:
        potential = evaluate_issues(MetricSet(), PostureSignals(head_neck_score=4.0))
        assert potential == {"head_neck_alignment": pytest.approx(1.0)}

    def test_unknown_head_neck_is_ignored(self) -> None:
        """An unseen head must not count as poor alignment."""
        assert evaluate_issues(MetricSet(), PostureSignals(head_neck_score=None)) == {}

    def test_fixed_rule_order(self) -> None:
        metrics = MetricSet(neck_angle=35.0, spine_alignment=45.0)
        signals = PostureSignals(slouching=True, too_far=True)
        potential = evaluate_issues(metrics, signals)

        assert list(potential) == [
            "forward_head",
            "spine_alignment",
            "slouching",
            "too_far_from_camera",
        ]


class TestDescribeIssues:
    """Tests for coaching message selection."""

    def test_issue_messages(self) -> None:
        messages = describe_issues(["forward_head", "slouching"], score=6.7)
        assert messages == (ISSUE_MESSAGES["forward_head"], ISSUE_MESSAGES["slouching"])

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (9.0, EXCELLENT_MESSAGE),
            (8.0, EXCELLENT_MESSAGE),
            (7.5, GOOD_MESSAGE),
            (6.2, IMPROVING_MESSAGE),
        ],
    )
    def test_positive_feedback_bands(self, score: float, expected: str) -> None:
        assert describe_issues([], score) == (expected,)

    def test_no_feedback_below_bands(self) -> None:
        assert describe_issues([], score=5.0) == ()


class TestIssueClassifier:
    """Tests for hysteresis counters."""

    FORWARD = {"forward_head": 2.0}

    def test_issue_appears_on_third_frame(self) -> None:
        """A persistent issue surfaces once it was flagged 3 frames in a row."""
        classifier = IssueClassifier()

        assert classifier.update(self.FORWARD) == []
        assert classifier.update(self.FORWARD) == []
        assert classifier.update(self.FORWARD) == ["forward_head"]
        assert classifier.update(self.FORWARD) == ["forward_head"]
        assert classifier.counter("forward_head") == 4

    def test_single_frame_blip_never_shows(self) -> None:
        classifier = IssueClassifier()
        classifier.update(self.FORWARD)

        assert classifier.update({}) == []
        assert classifier.counter("forward_head") == 0
        assert classifier.counters == {}

    def test_shown_issue_disappears_immediately(self) -> None:
        """Once it stops qualifying, an issue is hidden even with a positive counter."""
        classifier = IssueClassifier()
        for _ in range(5):
            classifier.update(self.FORWARD)

        assert classifier.update({}) == []
        assert classifier.counter("forward_head") == 2

    def test_decay_then_regrowth(self) -> None:
        """A decayed issue needs its counter rebuilt before showing again."""
        classifier = IssueClassifier()
        for _ in range(4):
            classifier.update(self.FORWARD)
        classifier.update({})

        assert classifier.counter("forward_head") == 1
        assert classifier.update(self.FORWARD) == []
        assert classifier.update(self.FORWARD) == ["forward_head"]

    def test_counters_pruned_at_zero(self) -> None:
        classifier = IssueClassifier()
        for _ in range(3):
            classifier.update(self.FORWARD)
        classifier.update({})

        assert "forward_head" not in classifier.counters

    def test_shown_order_follows_potential(self) -> None:
        classifier = IssueClassifier(ClassifierSettings(consistency_threshold=1))
        shown = classifier.update({"slouching": 1.3, "forward_head": 2.0})

        assert shown == ["slouching", "forward_head"]

    def test_high_smoothed_score_clears_counters(self) -> None:
        classifier = IssueClassifier()
        for _ in range(5):
            classifier.update(self.FORWARD)

        assert classifier.observe_smoothed_score(8.5)
        assert classifier.counters == {}
        assert classifier.state.resets == 1

    def test_reset_score_is_exclusive(self) -> None:
        """A smoothed score of exactly 8.0 keeps the counters."""
        classifier = IssueClassifier()
        classifier.update(self.FORWARD)

        assert not classifier.observe_smoothed_score(8.0)
        assert classifier.counter("forward_head") == 1

    def test_state_can_be_shared_across_instances(self) -> None:
        state = ClassifierState()
        IssueClassifier(state=state).update(self.FORWARD)
        IssueClassifier(state=state).update(self.FORWARD)

        assert state.counters == {"forward_head": 2}
        assert state.frames_seen == 2
