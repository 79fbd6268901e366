"""Core infrastructure: config, types, exceptions, and logging."""

from posture_tracker.core.config import Settings, get_settings
from posture_tracker.core.exceptions import (
    CameraError,
    DetectorInitializationError,
    PoseEstimationError,
    PostureTrackerError,
)
from posture_tracker.core.logging import get_logger, setup_logging
from posture_tracker.core.types import (
    EngineState,
    Keypoint,
    KeypointName,
    Landmark,
    LandmarkFrame,
    MetricSet,
    PostureAnalysis,
    PostureSignals,
    SessionStats,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "Keypoint",
    "KeypointName",
    "Landmark",
    "LandmarkFrame",
    "MetricSet",
    "PostureSignals",
    "PostureAnalysis",
    "EngineState",
    "SessionStats",
    # Exceptions
    "PostureTrackerError",
    "PoseEstimationError",
    "DetectorInitializationError",
    "CameraError",
    # Logging
    "setup_logging",
    "get_logger",
]
