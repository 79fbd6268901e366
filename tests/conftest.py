"""Pytest fixtures for Posture Tracker tests."""

from __future__ import annotations

import pytest

from posture_tracker.core.config import (
    EmitterSettings,
    Settings,
    SmoothingSettings,
)
from posture_tracker.core.types import (
    KEYPOINT_COUNT,
    Keypoint,
    KeypointName,
    Landmark,
    LandmarkFrame,
)


def make_frame(
    points: dict[KeypointName, tuple[float, float, float]],
    timestamp: float = 0.0,
) -> LandmarkFrame:
    """Build a frame from (x, y, visibility) per keypoint; the rest are unseen."""
    landmarks = [Landmark(x=0.0, y=0.0, z=0.0, visibility=0.0)] * KEYPOINT_COUNT
    for name, (x, y, visibility) in points.items():
        landmarks[name.value] = Landmark(x=x, y=y, z=0.0, visibility=visibility)
    return LandmarkFrame(landmarks=tuple(landmarks), timestamp=timestamp)


def _seated_points(ear_visibility: float) -> dict[KeypointName, tuple[float, float, float]]:
    """Square-on seated subject; ears level with each other."""
    return {
        KeypointName.NOSE: (0.5, 0.25, 0.9),
        KeypointName.LEFT_EAR: (0.45, 0.27, ear_visibility),
        KeypointName.RIGHT_EAR: (0.55, 0.27, ear_visibility),
        KeypointName.LEFT_SHOULDER: (0.40, 0.40, 0.9),
        KeypointName.RIGHT_SHOULDER: (0.60, 0.40, 0.9),
        KeypointName.LEFT_HIP: (0.42, 0.70, 0.9),
        KeypointName.RIGHT_HIP: (0.58, 0.70, 0.9),
    }


@pytest.fixture
def upright_frame() -> LandmarkFrame:
    """Level shoulders, vertical spine, ears seen too faintly for head metrics.

    Every metric is 0 and no signal fires, so the frame scores 10.
    """
    return make_frame(_seated_points(ear_visibility=0.3))


@pytest.fixture
def forward_head_frame() -> LandmarkFrame:
    """Ordinary upright head, ears level and clearly seen.

    Not an actual forward-head pose: the neck angle metric reports 180° minus
    the angle between shoulder→ear and ear→nose, which is about 133° for this
    plain frontal head. That is above the forward-head threshold, so the frame
    raises `forward_head` (penalty 2.0) and nothing else.
    """
    return make_frame(_seated_points(ear_visibility=0.9))


@pytest.fixture
def hidden_frame() -> LandmarkFrame:
    """Subject barely seen: every joint below the visibility gate."""
    points = {name: (0.5, 0.5, 0.05) for name in KeypointName}
    return make_frame(points)


@pytest.fixture
def distant_frame() -> LandmarkFrame:
    """Subject far away: faint, closely spaced shoulders."""
    return make_frame(
        {
            KeypointName.NOSE: (0.5, 0.45, 0.15),
            KeypointName.LEFT_SHOULDER: (0.48, 0.5, 0.15),
            KeypointName.RIGHT_SHOULDER: (0.52, 0.5, 0.15),
        }
    )


@pytest.fixture
def settings() -> Settings:
    """Default settings, built fresh so tests never share the cached instance."""
    return Settings()


@pytest.fixture
def unsmoothed_settings() -> Settings:
    """Settings with no landmark smoothing and no publish throttling."""
    return Settings(
        smoothing=SmoothingSettings(landmark_window=1),
        emitter=EmitterSettings(interval_ms=0),
    )


@pytest.fixture
def frame_builder():
    """Factory building frames from (x, y, visibility) per keypoint."""
    return make_frame


@pytest.fixture
def upright_keypoints(upright_frame: LandmarkFrame) -> list[Keypoint]:
    """Detector output for the upright frame."""
    return [Keypoint(x=lm.x, y=lm.y, confidence=lm.visibility) for lm in upright_frame.landmarks]


@pytest.fixture
def camera_view_frame() -> LandmarkFrame:
    """`forward_head_frame` as an unmirrored webcam sees it.

    A subject facing the camera has their left side on the image right, so
    every left joint has the larger x.
    """
    points = _seated_points(ear_visibility=0.9)
    return make_frame({name: (1.0 - x, y, v) for name, (x, y, v) in points.items()})
