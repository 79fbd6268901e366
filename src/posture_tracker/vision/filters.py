"""Signal filtering utilities for landmark smoothing."""

from __future__ import annotations

from collections import deque

import numpy as np

from posture_tracker.core.config import SmoothingSettings
from posture_tracker.core.logging import get_logger
from posture_tracker.core.types import KEYPOINT_COUNT, Landmark, LandmarkFrame

logger = get_logger(__name__)


def average_landmarks(samples: list[Landmark], min_visibility: float) -> Landmark:
    """Average the confidently seen samples of a single joint.

    Args:
        samples: Observations of one joint, oldest first
        min_visibility: Samples at or below this visibility are ignored

    Returns:
        Mean landmark, the most recent sample when none pass the
        visibility floor, or a zero placeholder when there are no samples
    """
    if not samples:
        return Landmark(x=0.0, y=0.0, z=0.0, visibility=0.0)

    valid = [lm for lm in samples if lm.visibility > min_visibility]
    if not valid:
        return samples[-1]

    values = np.array([[lm.x, lm.y, lm.z, lm.visibility] for lm in valid], dtype=np.float64)
    x, y, z, visibility = values.mean(axis=0)
    return Landmark(x=float(x), y=float(y), z=float(z), visibility=float(visibility))


class LandmarkSmoother:
    """Moving average over the last few landmark frames.

    Damps detector jitter with a lag of at most a few frames. Joints seen
    with very low confidence are left out of the average so a dropped
    detection does not drag the joint towards the origin.
    """

    def __init__(self, settings: SmoothingSettings | None = None) -> None:
        """Initialize landmark smoother.

        Args:
            settings: Smoothing settings (uses defaults if None)
        """
        self.settings = settings or SmoothingSettings()
        self._frames: deque[LandmarkFrame] = deque(maxlen=self.settings.landmark_window)

    @property
    def window_size(self) -> int:
        """Maximum number of frames averaged."""
        return self.settings.landmark_window

    def __len__(self) -> int:
        return len(self._frames)

    def reset(self) -> None:
        """Drop all buffered frames."""
        self._frames.clear()

    def update(self, frame: LandmarkFrame) -> LandmarkFrame:
        """Add a frame and return the smoothed result.

        Args:
            frame: Newest raw landmark frame

        Returns:
            Smoothed frame stamped with the newest frame's timestamp
        """
        self._frames.append(frame)
        return self.smooth()

    def smooth(self) -> LandmarkFrame:
        """Smoothed frame for the current window contents."""
        if not self._frames:
            return LandmarkFrame.empty()

        frames = list(self._frames)
        landmarks = tuple(
            average_landmarks(
                [f.landmarks[idx] for f in frames],
                self.settings.landmark_min_visibility,
            )
            for idx in range(KEYPOINT_COUNT)
        )
        return LandmarkFrame(landmarks=landmarks, timestamp=frames[-1].timestamp)
