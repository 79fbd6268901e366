"""Pose detector adapters.

Only the interface is imported here; `mediapipe_pose` needs the optional
`vision` dependencies and is imported explicitly by callers.
"""

from posture_tracker.detectors.base import PoseDetector

__all__ = ["PoseDetector"]
