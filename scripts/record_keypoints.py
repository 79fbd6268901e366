#!/usr/bin/env python3
"""Record webcam keypoints for offline replay.

Runs the MediaPipe detector on the webcam and writes every detected pose
to a JSON Lines recording readable by replay_session.py.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from datetime import datetime
from pathlib import Path

from posture_tracker.core.config import get_settings
from posture_tracker.core.exceptions import CameraError, PostureTrackerError
from posture_tracker.core.logging import get_logger, setup_logging
from posture_tracker.detectors.mediapipe_pose import MediaPipePoseDetector
from posture_tracker.recording import write_tick
from posture_tracker.vision.camera import CameraFrameSource

logger = get_logger(__name__)

DEFAULT_OUTPUT_DIR = Path("data/recordings")


async def record(output_path: Path, duration_seconds: float, camera_id: int) -> int:
    """Record keypoints from the webcam.

    Args:
        output_path: Output recording path
        duration_seconds: Recording duration
        camera_id: Webcam device ID

    Returns:
        Number of ticks recorded
    """
    settings = get_settings()
    camera_settings = settings.camera.model_copy(update={"device_id": camera_id})

    tick_count = 0
    with CameraFrameSource(camera_settings) as camera:
        detector = MediaPipePoseDetector(camera, settings.pose)
        await asyncio.to_thread(detector.initialize)
        try:
            start = time.monotonic()
            with open(output_path, "w", encoding="utf-8") as f:
                while (elapsed := time.monotonic() - start) < duration_seconds:
                    keypoints = await detector.estimate()
                    if keypoints:
                        write_tick(f, elapsed, keypoints)
                        tick_count += 1
        finally:
            detector.close()

    logger.info("Recorded %d ticks to %s", tick_count, output_path)
    return tick_count


def main() -> int:
    """Run recording script."""
    parser = argparse.ArgumentParser(description="Record keypoints for offline replay")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output recording path (default: auto-generated)",
    )
    parser.add_argument(
        "--duration",
        "-d",
        type=float,
        default=30.0,
        help="Recording duration in seconds (default: 30)",
    )
    parser.add_argument(
        "--camera",
        type=int,
        default=0,
        help="Webcam device ID (default: 0)",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging)

    if args.output is None:
        DEFAULT_OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        args.output = DEFAULT_OUTPUT_DIR / f"keypoints_{timestamp}.jsonl"

    args.output.parent.mkdir(parents=True, exist_ok=True)

    try:
        tick_count = asyncio.run(record(args.output, args.duration, args.camera))
    except CameraError as e:
        logger.error("Camera unavailable: %s", e)
        return 1
    except PostureTrackerError as e:
        logger.error("Recording failed: %s", e)
        return 1

    return 0 if tick_count > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
