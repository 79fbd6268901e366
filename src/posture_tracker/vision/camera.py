"""Webcam frame source backed by OpenCV."""

from __future__ import annotations

import platform

import cv2
import numpy as np
from numpy.typing import NDArray

from posture_tracker.core.config import CameraSettings
from posture_tracker.core.exceptions import CameraError
from posture_tracker.core.logging import get_logger

logger = get_logger(__name__)


class CameraFrameSource:
    """Reads frames from a local capture device on demand.

    Instances are callables returning the next BGR frame (or None on a
    failed read) so they can feed a pose detector directly.
    """

    def __init__(self, settings: CameraSettings | None = None) -> None:
        """Initialize frame source.

        Args:
            settings: Camera settings (uses defaults if None)
        """
        self.settings = settings or CameraSettings()
        self._cap: cv2.VideoCapture | None = None
        self._frame_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the capture device is open."""
        return self._cap is not None and self._cap.isOpened()

    @property
    def frame_count(self) -> int:
        """Number of frames read so far."""
        return self._frame_count

    def open(self) -> None:
        """Open the capture device.

        Raises:
            CameraError: If the device cannot be opened
        """
        if self.is_open:
            return

        device_id = self.settings.device_id
        if platform.system() == "Darwin":
            cap = cv2.VideoCapture(device_id, cv2.CAP_AVFOUNDATION)
        else:
            cap = cv2.VideoCapture(device_id)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Could not open webcam device_id={device_id}")

        if self.settings.width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.settings.width)
        if self.settings.height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.settings.height)

        self._cap = cap
        logger.info("Opened webcam device %d", device_id)

    def read(self) -> NDArray[np.uint8] | None:
        """Read the next frame, or None if the read failed."""
        if self._cap is None:
            return None

        ok, image = self._cap.read()
        if not ok:
            logger.warning("Failed to read frame from webcam")
            return None

        self._frame_count += 1
        return np.asarray(image, dtype=np.uint8)

    def __call__(self) -> NDArray[np.uint8] | None:
        return self.read()

    def close(self) -> None:
        """Release the capture device."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> CameraFrameSource:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()
