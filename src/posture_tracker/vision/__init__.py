"""Landmark signal conditioning."""

from posture_tracker.vision.filters import LandmarkSmoother, average_landmarks

__all__ = ["LandmarkSmoother", "average_landmarks"]
