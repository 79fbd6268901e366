"""Tests for posture metric calculation."""

from __future__ import annotations

import pytest

from posture_tracker.analysis.metrics import (
    compute_metrics,
    compute_signals,
    head_neck_score,
    head_position,
    is_slouching,
    is_too_close,
    is_too_far,
    neck_angle,
    shoulder_alignment,
    shoulder_height,
    spine_alignment,
)
from posture_tracker.core.types import KeypointName, LandmarkFrame

NOSE = KeypointName.NOSE
LEFT_EAR = KeypointName.LEFT_EAR
RIGHT_EAR = KeypointName.RIGHT_EAR
LEFT_SHOULDER = KeypointName.LEFT_SHOULDER
RIGHT_SHOULDER = KeypointName.RIGHT_SHOULDER
LEFT_HIP = KeypointName.LEFT_HIP
RIGHT_HIP = KeypointName.RIGHT_HIP


class TestMetrics:
    """Tests for the five geometric metrics."""

    def test_upright_frame_is_neutral(self, upright_frame: LandmarkFrame) -> None:
        """Level shoulders and a vertical spine give zero metrics."""
        metrics = compute_metrics(upright_frame)

        assert metrics.neck_angle == 0.0
        assert metrics.shoulder_alignment == pytest.approx(0.0)
        assert metrics.spine_alignment == pytest.approx(0.0, abs=1e-6)
        assert metrics.head_position == 0.0
        assert metrics.shoulder_height == 0.0

    def test_neck_angle(self, forward_head_frame: LandmarkFrame) -> None:
        """180° minus the angle between shoulder→ear and ear→nose."""
        assert neck_angle(forward_head_frame) == pytest.approx(132.84, abs=0.05)

    def test_neck_angle_needs_ear(self, upright_frame: LandmarkFrame) -> None:
        """Faint ear should leave the neck angle unknown."""
        assert neck_angle(upright_frame) == 0.0

    def test_tilted_shoulders(self, frame_builder) -> None:
        frame = frame_builder(
            {
                LEFT_SHOULDER: (0.4, 0.4, 0.9),
                RIGHT_SHOULDER: (0.6, 0.5, 0.9),
            }
        )

        assert shoulder_alignment(frame) == pytest.approx(26.565, abs=0.01)
        assert shoulder_height(frame) == pytest.approx(1.0)

    def test_leaning_spine(self, frame_builder) -> None:
        frame = frame_builder(
            {
                LEFT_SHOULDER: (0.4, 0.4, 0.9),
                RIGHT_SHOULDER: (0.6, 0.4, 0.9),
                LEFT_HIP: (0.5, 0.7, 0.9),
                RIGHT_HIP: (0.7, 0.7, 0.9),
            }
        )

        assert spine_alignment(frame) == pytest.approx(18.435, abs=0.01)

    def test_head_tilt(self, frame_builder) -> None:
        frame = frame_builder(
            {
                NOSE: (0.5, 0.25, 0.9),
                LEFT_EAR: (0.45, 0.25, 0.9),
                RIGHT_EAR: (0.55, 0.30, 0.9),
            }
        )

        assert head_position(frame) == pytest.approx(26.565, abs=0.01)

    def test_head_tilt_needs_nose(self, frame_builder) -> None:
        frame = frame_builder(
            {
                NOSE: (0.5, 0.25, 0.2),
                LEFT_EAR: (0.45, 0.25, 0.9),
                RIGHT_EAR: (0.55, 0.30, 0.9),
            }
        )

        assert head_position(frame) == 0.0

    def test_camera_view_level_lines_read_zero(self, camera_view_frame: LandmarkFrame) -> None:
        """Left joints on the image right still give level shoulders and head."""
        assert shoulder_alignment(camera_view_frame) == pytest.approx(0.0)
        assert head_position(camera_view_frame) == pytest.approx(0.0)
        assert spine_alignment(camera_view_frame) == pytest.approx(0.0, abs=1e-6)
        assert neck_angle(camera_view_frame) == pytest.approx(132.84, abs=0.05)

    def test_tilt_reads_same_in_either_direction(self, frame_builder) -> None:
        frame = frame_builder(
            {
                NOSE: (0.5, 0.25, 0.9),
                LEFT_EAR: (0.55, 0.25, 0.9),
                RIGHT_EAR: (0.45, 0.30, 0.9),
                LEFT_SHOULDER: (0.6, 0.4, 0.9),
                RIGHT_SHOULDER: (0.4, 0.5, 0.9),
            }
        )

        assert shoulder_alignment(frame) == pytest.approx(26.565, abs=0.01)
        assert head_position(frame) == pytest.approx(26.565, abs=0.01)

    def test_visibility_threshold_is_inclusive(self, frame_builder) -> None:
        """Joints seen at exactly 0.5 still count."""
        frame = frame_builder(
            {
                LEFT_SHOULDER: (0.4, 0.4, 0.5),
                RIGHT_SHOULDER: (0.6, 0.5, 0.5),
            }
        )

        assert shoulder_height(frame) == pytest.approx(1.0)

    def test_faint_shoulders_give_zero(self, frame_builder) -> None:
        frame = frame_builder(
            {
                LEFT_SHOULDER: (0.4, 0.4, 0.49),
                RIGHT_SHOULDER: (0.6, 0.5, 0.9),
            }
        )

        assert shoulder_alignment(frame) == 0.0
        assert shoulder_height(frame) == 0.0

    def test_empty_frame(self) -> None:
        """A frame with nothing visible never raises."""
        metrics = compute_metrics(LandmarkFrame.empty())

        assert all(value == 0.0 for value in metrics.as_dict().values())


class TestSignals:
    """Tests for the derived boolean cues."""

    def test_upright_frame_fires_nothing(self, upright_frame: LandmarkFrame) -> None:
        signals = compute_signals(upright_frame)

        assert not signals.slouching
        assert not signals.too_close
        assert not signals.too_far
        assert signals.head_neck_score is None

    def test_slouching(self, frame_builder) -> None:
        """Shoulders more than 0.10 ahead of the hips."""
        frame = frame_builder(
            {
                LEFT_SHOULDER: (0.55, 0.4, 0.9),
                RIGHT_SHOULDER: (0.75, 0.4, 0.9),
                LEFT_HIP: (0.4, 0.7, 0.9),
                RIGHT_HIP: (0.6, 0.7, 0.9),
            }
        )

        assert is_slouching(frame)

    def test_too_close(self, frame_builder) -> None:
        frame = frame_builder(
            {
                NOSE: (0.5, 0.1, 0.9),
                LEFT_SHOULDER: (0.05, 0.4, 0.9),
                RIGHT_SHOULDER: (0.95, 0.4, 0.9),
            }
        )

        assert is_too_close(frame)
        assert not is_too_far(frame)

    def test_too_far(self, frame_builder) -> None:
        frame = frame_builder(
            {
                NOSE: (0.5, 0.35, 0.9),
                LEFT_SHOULDER: (0.45, 0.4, 0.9),
                RIGHT_SHOULDER: (0.55, 0.4, 0.9),
            }
        )

        assert is_too_far(frame)

    def test_coincident_shoulders_do_not_raise(self, frame_builder) -> None:
        frame = frame_builder(
            {
                NOSE: (0.5, 0.3, 0.9),
                LEFT_SHOULDER: (0.5, 0.4, 0.9),
                RIGHT_SHOULDER: (0.5, 0.4, 0.9),
            }
        )

        assert is_too_far(frame)
        assert not is_too_close(frame)


class TestHeadNeckScore:
    """Tests for the head/neck alignment score."""

    @staticmethod
    def _head(frame_builder, nose_x: float, left_ear_y: float, right_ear_y: float):
        return frame_builder(
            {
                NOSE: (nose_x, 0.25, 0.9),
                LEFT_EAR: (0.45, left_ear_y, 0.9),
                RIGHT_EAR: (0.55, right_ear_y, 0.9),
                LEFT_SHOULDER: (0.4, 0.38, 0.9),
                RIGHT_SHOULDER: (0.6, 0.38, 0.9),
            }
        )

    def test_aligned_head_scores_ten(self, forward_head_frame: LandmarkFrame) -> None:
        assert head_neck_score(forward_head_frame) == pytest.approx(10.0)

    def test_ear_tilt_penalty(self, frame_builder) -> None:
        """Ear tilt of 0.1 costs min(1.8, 0.1 * 20)."""
        frame = self._head(frame_builder, nose_x=0.5, left_ear_y=0.2, right_ear_y=0.3)
        assert head_neck_score(frame) == pytest.approx(8.2)

    def test_penalties_accumulate(self, frame_builder) -> None:
        """Ear tilt and a sideways nose offset both count."""
        frame = self._head(frame_builder, nose_x=0.75, left_ear_y=0.2, right_ear_y=0.3)
        assert head_neck_score(frame) == pytest.approx(5.7)

    def test_unknown_when_joint_missing(self, upright_frame: LandmarkFrame) -> None:
        assert head_neck_score(upright_frame) is None
