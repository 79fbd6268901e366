"""Tests for landmark smoothing."""

from __future__ import annotations

import pytest

from posture_tracker.core.config import SmoothingSettings
from posture_tracker.core.types import KeypointName, Landmark, LandmarkFrame
from posture_tracker.vision.filters import LandmarkSmoother, average_landmarks


class TestAverageLandmarks:
    """Tests for single-joint averaging."""

    def test_no_samples_gives_placeholder(self) -> None:
        result = average_landmarks([], min_visibility=0.1)
        assert result == Landmark(x=0.0, y=0.0, z=0.0, visibility=0.0)

    def test_averages_confident_samples(self) -> None:
        """Mean should cover x, y and visibility."""
        samples = [
            Landmark(x=0.4, y=0.2, visibility=0.8),
            Landmark(x=0.6, y=0.4, visibility=0.6),
        ]
        result = average_landmarks(samples, min_visibility=0.1)

        assert result.x == pytest.approx(0.5)
        assert result.y == pytest.approx(0.3)
        assert result.visibility == pytest.approx(0.7)

    def test_ignores_low_visibility_samples(self) -> None:
        """A dropped detection should not pull the joint towards the origin."""
        samples = [
            Landmark(x=0.5, y=0.5, visibility=0.9),
            Landmark(x=0.0, y=0.0, visibility=0.05),
        ]
        result = average_landmarks(samples, min_visibility=0.1)

        assert result.x == pytest.approx(0.5)
        assert result.visibility == pytest.approx(0.9)

    def test_all_low_visibility_returns_latest(self) -> None:
        """With no confident sample, the most recent one is kept as-is."""
        samples = [
            Landmark(x=0.2, y=0.2, visibility=0.05),
            Landmark(x=0.3, y=0.3, visibility=0.1),
        ]
        assert average_landmarks(samples, min_visibility=0.1) == samples[-1]


class TestLandmarkSmoother:
    """Tests for the rolling landmark window."""

    def test_empty_smoother_gives_empty_frame(self) -> None:
        smoother = LandmarkSmoother()
        assert smoother.smooth() == LandmarkFrame.empty()

    def test_window_is_bounded(self) -> None:
        """Only the last `landmark_window` frames should be kept."""
        smoother = LandmarkSmoother(SmoothingSettings(landmark_window=3))
        for i in range(5):
            smoother.update(LandmarkFrame.empty(timestamp=float(i)))

        assert len(smoother) == 3
        assert smoother.window_size == 3

    def test_averages_joint_positions(self, frame_builder) -> None:
        """Smoothed position should be the mean over the window."""
        smoother = LandmarkSmoother(SmoothingSettings(landmark_window=2))
        smoother.update(frame_builder({KeypointName.NOSE: (0.4, 0.2, 0.9)}, timestamp=1.0))
        smoothed = smoother.update(
            frame_builder({KeypointName.NOSE: (0.6, 0.2, 0.9)}, timestamp=2.0)
        )

        assert smoothed.nose.x == pytest.approx(0.5)
        assert smoothed.timestamp == 2.0

    def test_old_frames_fall_out(self, frame_builder) -> None:
        """Frames older than the window no longer contribute."""
        smoother = LandmarkSmoother(SmoothingSettings(landmark_window=2))
        smoother.update(frame_builder({KeypointName.NOSE: (0.1, 0.2, 0.9)}))
        smoother.update(frame_builder({KeypointName.NOSE: (0.5, 0.2, 0.9)}))
        smoothed = smoother.update(frame_builder({KeypointName.NOSE: (0.5, 0.2, 0.9)}))

        assert smoothed.nose.x == pytest.approx(0.5)

    def test_reset(self, upright_frame: LandmarkFrame) -> None:
        smoother = LandmarkSmoother()
        smoother.update(upright_frame)
        smoother.reset()

        assert len(smoother) == 0
