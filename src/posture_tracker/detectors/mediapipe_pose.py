"""MediaPipe pose detector using the Tasks API."""

from __future__ import annotations

import asyncio
import time
import urllib.request
from collections.abc import Callable
from pathlib import Path

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python
from mediapipe.tasks.python import vision
from numpy.typing import NDArray

from posture_tracker.core.config import PoseSettings
from posture_tracker.core.exceptions import DetectorInitializationError, PoseEstimationError
from posture_tracker.core.logging import get_logger
from posture_tracker.core.types import Keypoint, KeypointName
from posture_tracker.detectors.base import PoseDetector

logger = get_logger(__name__)

MODEL_URL_TEMPLATE = (
    "https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
    "pose_landmarker_{variant}/float16/latest/pose_landmarker_{variant}.task"
)
MODEL_DIR = Path(__file__).resolve().parents[3] / "data" / "models"

# MediaPipe's 33-landmark topology → the 17 keypoints used here
MEDIAPIPE_INDEX: dict[KeypointName, int] = {
    KeypointName.NOSE: 0,
    KeypointName.LEFT_EYE: 2,
    KeypointName.RIGHT_EYE: 5,
    KeypointName.LEFT_EAR: 7,
    KeypointName.RIGHT_EAR: 8,
    KeypointName.LEFT_SHOULDER: 11,
    KeypointName.RIGHT_SHOULDER: 12,
    KeypointName.LEFT_ELBOW: 13,
    KeypointName.RIGHT_ELBOW: 14,
    KeypointName.LEFT_WRIST: 15,
    KeypointName.RIGHT_WRIST: 16,
    KeypointName.LEFT_HIP: 23,
    KeypointName.RIGHT_HIP: 24,
    KeypointName.LEFT_KNEE: 25,
    KeypointName.RIGHT_KNEE: 26,
    KeypointName.LEFT_ANKLE: 27,
    KeypointName.RIGHT_ANKLE: 28,
}

FrameSource = Callable[[], NDArray[np.uint8] | None]


def _resolve_model(settings: PoseSettings) -> Path:
    """Locate the pose landmarker model, downloading it if needed.

    Raises:
        DetectorInitializationError: If download fails
    """
    if settings.model_path:
        model_path = Path(settings.model_path)
        if not model_path.exists():
            raise DetectorInitializationError(f"Pose model not found at: {model_path}")
        return model_path

    model_path = MODEL_DIR / f"pose_landmarker_{settings.model_variant}.task"
    if model_path.exists():
        return model_path

    logger.info("Downloading MediaPipe pose landmarker model (%s)...", settings.model_variant)
    MODEL_DIR.mkdir(parents=True, exist_ok=True)

    try:
        urllib.request.urlretrieve(
            MODEL_URL_TEMPLATE.format(variant=settings.model_variant), model_path
        )
    except Exception as e:
        raise DetectorInitializationError(f"Failed to download model: {e}") from e

    logger.info("Model downloaded to %s", model_path)
    return model_path


def to_keypoints(pose_landmarks: list) -> list[Keypoint]:
    """Convert one MediaPipe pose to the 17 keypoints, in KeypointName order."""
    keypoints = []
    for name in KeypointName:
        lm = pose_landmarks[MEDIAPIPE_INDEX[name]]
        visibility = getattr(lm, "visibility", None)
        keypoints.append(
            Keypoint(
                x=float(lm.x),
                y=float(lm.y),
                confidence=1.0 if visibility is None else float(visibility),
            )
        )
    return keypoints


class MediaPipePoseDetector(PoseDetector):
    """Pose detector backed by MediaPipe's PoseLandmarker.

    Pulls BGR frames from `frame_source` and converts MediaPipe results to
    Keypoint lists so MediaPipe objects never leak into the pipeline.
    Frame reads and inference both run in a worker thread, off the event loop.
    """

    name = "mediapipe"

    def __init__(self, frame_source: FrameSource, settings: PoseSettings | None = None) -> None:
        """Initialize detector.

        Args:
            frame_source: Returns the latest BGR frame, or None when unavailable
            settings: Pose estimation settings (uses defaults if None)
        """
        self.settings = settings or PoseSettings()
        self._frame_source = frame_source
        self._landmarker: vision.PoseLandmarker | None = None
        self._start = time.monotonic()
        self._last_timestamp_ms = -1

    @property
    def is_initialized(self) -> bool:
        """Check if the MediaPipe model is loaded."""
        return self._landmarker is not None

    def initialize(self) -> None:
        """Load the MediaPipe pose model.

        Raises:
            DetectorInitializationError: If the model fails to load
        """
        if self._landmarker is not None:
            return

        try:
            model_path = _resolve_model(self.settings)

            options = vision.PoseLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=vision.RunningMode.VIDEO,
                num_poses=1,
                min_pose_detection_confidence=self.settings.min_detection_confidence,
                min_pose_presence_confidence=self.settings.min_tracking_confidence,
                min_tracking_confidence=self.settings.min_tracking_confidence,
            )
            self._landmarker = vision.PoseLandmarker.create_from_options(options)
            logger.info("MediaPipe PoseLandmarker initialized (%s)", model_path.name)

        except DetectorInitializationError:
            raise
        except Exception as e:
            raise DetectorInitializationError(f"Failed to initialize MediaPipe: {e}") from e

    def close(self) -> None:
        """Release MediaPipe resources."""
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None

    async def estimate(self) -> list[Keypoint] | None:
        """Detect the pose in the latest frame.

        Raises:
            PoseEstimationError: If no model is loaded or inference fails
        """
        return await asyncio.to_thread(self._detect)

    def _detect(self) -> list[Keypoint] | None:
        landmarker = self._landmarker
        if landmarker is None:
            raise PoseEstimationError("Pose detector not initialized")

        image = self._frame_source()
        if image is None:
            return None

        # VIDEO mode requires strictly increasing timestamps
        elapsed_ms = int((time.monotonic() - self._start) * 1000)
        timestamp_ms = max(elapsed_ms, self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        try:
            rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
            mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_image)
            results = landmarker.detect_for_video(mp_image, timestamp_ms)
        except Exception as e:
            raise PoseEstimationError(f"Estimation failed: {e}") from e

        if not results.pose_landmarks:
            return None

        return to_keypoints(results.pose_landmarks[0])
