"""Main entry point for Posture Tracker application."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from posture_tracker.core.config import Settings, get_settings
from posture_tracker.core.exceptions import (
    CameraError,
    DetectorInitializationError,
    PostureTrackerError,
)
from posture_tracker.core.logging import get_logger, setup_logging
from posture_tracker.core.types import PostureAnalysis, SessionStats
from posture_tracker.pipeline.engine import PostureEngine

logger = get_logger(__name__)


def log_analysis(analysis: PostureAnalysis) -> None:
    """Log a published analysis."""
    metrics = ", ".join(
        f"{name}={value:.1f}" for name, value in analysis.metrics.as_dict().items()
    )
    logger.info("Posture score %.1f/10 | %s", analysis.score, metrics)
    for message in analysis.issues:
        logger.info("  - %s", message)


def log_summary(stats: SessionStats) -> None:
    """Log the session summary."""
    if stats.avg_score is None:
        logger.info("Session: no analyses published")
        return

    logger.info(
        "Session: %d analyses, average score %.1f, lowest %.1f",
        stats.analysis_count,
        stats.avg_score,
        stats.min_score,
    )
    common = stats.common_issues()
    if common:
        logger.info("Most common issues: %s", ", ".join(common))


async def run_monitoring_session(
    settings: Settings,
    duration_s: float | None = None,
    background: bool = False,
) -> int:
    """Run the webcam monitoring session.

    Args:
        settings: Application settings
        duration_s: Stop after this many seconds (None = until interrupted)
        background: Pace the loop with background ticks from the start

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from posture_tracker.detectors.mediapipe_pose import MediaPipePoseDetector
    from posture_tracker.vision.camera import CameraFrameSource

    camera = CameraFrameSource(settings.camera)
    detector = MediaPipePoseDetector(camera, settings.pose)
    engine = PostureEngine(detector, settings)
    engine.subscribe(log_analysis)
    engine.on_error(lambda message: logger.error("Engine error: %s", message))
    engine.set_visible(not background)

    try:
        with camera:
            async with engine:
                logger.info("Monitoring posture (press Ctrl+C to stop)")
                if duration_s is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration_s)
        log_summary(engine.stats)
        return 0

    except CameraError as e:
        logger.error("Camera unavailable: %s", e)
        return 1

    except DetectorInitializationError as e:
        logger.error("Detector unavailable: %s", e)
        return 2

    except PostureTrackerError as e:
        logger.error("Tracking error: %s", e)
        return 3


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Posture Tracker - Real-time posture analysis from a webcam"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after N seconds (default: run until Ctrl+C)",
    )
    parser.add_argument(
        "--background",
        action="store_true",
        help="Use the low-rate background tick source",
    )
    parser.add_argument(
        "--keep-consistency",
        action="store_true",
        help="Keep issue consistency counters across engine restarts",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    if args.debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
    if args.keep_consistency:
        os.environ["ENGINE_KEEP_CONSISTENCY_ON_RESTART"] = "true"

    get_settings.cache_clear()
    settings = get_settings()
    setup_logging(settings.logging)

    try:
        exit_code = asyncio.run(
            run_monitoring_session(settings, duration_s=args.duration, background=args.background)
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 0

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
