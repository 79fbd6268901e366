"""Pose detector interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from posture_tracker.core.types import Keypoint


class PoseDetector(ABC):
    """Model adapter interface.

    Implementations return the 17 keypoints of the most prominent person,
    in KeypointName order, with normalized coordinates.
    """

    name = "base"

    def initialize(self) -> None:
        """Load the model.

        Raises:
            DetectorInitializationError: If the model cannot be loaded
        """
        return None

    @abstractmethod
    async def estimate(self) -> Sequence[Keypoint] | None:
        """Run one detection.

        Returns:
            Keypoints of the detected pose, or None if nobody was found

        Raises:
            PoseEstimationError: If inference fails for this frame
        """

    def close(self) -> None:
        """Release model resources."""
        return None
