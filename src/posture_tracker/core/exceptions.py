"""Custom exceptions for Posture Tracker."""


class PostureTrackerError(Exception):
    """Base exception for all Posture Tracker errors."""

    pass


class PoseEstimationError(PostureTrackerError):
    """Pose estimation failed for a single frame."""

    def __init__(self, message: str = "Pose estimation failed") -> None:
        self.message = message
        super().__init__(self.message)


class DetectorInitializationError(PostureTrackerError):
    """Pose detector could not be loaded; the engine cannot start."""

    def __init__(self, message: str = "Pose detector failed to initialize") -> None:
        self.message = message
        super().__init__(self.message)


class CameraError(PostureTrackerError):
    """Error opening or reading the capture device."""

    def __init__(self, message: str = "Camera error") -> None:
        self.message = message
        super().__init__(self.message)
