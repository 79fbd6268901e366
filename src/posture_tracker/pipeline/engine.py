"""Detection loop driving the posture pipeline."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable

from posture_tracker.core.config import Settings, get_settings
from posture_tracker.core.exceptions import DetectorInitializationError
from posture_tracker.core.logging import get_logger
from posture_tracker.core.types import EngineState, PostureAnalysis, SessionStats
from posture_tracker.detectors.base import PoseDetector
from posture_tracker.pipeline.emitter import AnalysisCallback
from posture_tracker.pipeline.processor import PostureProcessor, ProcessedFrame
from posture_tracker.pipeline.scheduler import TickScheduler

logger = get_logger(__name__)

ErrorCallback = Callable[[str], None]


class PostureEngine:
    """Runs detection and analysis on a single asyncio task.

    Each iteration awaits the detector, runs the synchronous pipeline, then
    waits for the next tick of the scheduler. Every piece of mutable state
    is touched only from that task, so no locking is needed. A failing frame
    is logged and skipped; the loop always carries on.
    """

    def __init__(
        self,
        detector: PoseDetector,
        settings: Settings | None = None,
        scheduler: TickScheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize engine.

        Args:
            detector: Pose detector feeding the pipeline
            settings: Application settings (uses defaults if None)
            scheduler: Loop pacing (built from settings if None)
            clock: Monotonic clock returning seconds
        """
        self.settings = settings or get_settings()
        self._detector = detector
        self._scheduler = scheduler or TickScheduler(self.settings.scheduler)
        self._processor = PostureProcessor(self.settings, clock=clock)
        self._error_callbacks: list[ErrorCallback] = []
        self._task: asyncio.Task[None] | None = None
        self._state = EngineState.IDLE
        self._failed_frames = 0

    @property
    def state(self) -> EngineState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the detection loop is active."""
        return self._state == EngineState.RUNNING

    @property
    def current_analysis(self) -> PostureAnalysis | None:
        """Most recently published analysis."""
        return self._processor.current_analysis

    @property
    def stats(self) -> SessionStats:
        """Tally of published analyses."""
        return self._processor.stats

    @property
    def processor(self) -> PostureProcessor:
        """Underlying per-frame pipeline."""
        return self._processor

    @property
    def scheduler(self) -> TickScheduler:
        """Loop pacing."""
        return self._scheduler

    @property
    def failed_frames(self) -> int:
        """Frames skipped because detection or analysis failed."""
        return self._failed_frames

    def subscribe(self, callback: AnalysisCallback) -> Callable[[], None]:
        """Register a callback for published analyses.

        Returns:
            Function that removes the subscription
        """
        return self._processor.subscribe(callback)

    def on_error(self, callback: ErrorCallback) -> Callable[[], None]:
        """Register a callback receiving human-readable failure reports.

        Returns:
            Function that removes the callback
        """
        self._error_callbacks.append(callback)

        def remove() -> None:
            if callback in self._error_callbacks:
                self._error_callbacks.remove(callback)

        return remove

    def set_visible(self, visible: bool) -> None:
        """Report a foreground/background change of the host app."""
        self._scheduler.set_visible(visible)

    async def start(self) -> None:
        """Load the detector and start the detection loop.

        Raises:
            DetectorInitializationError: If the detector fails to load; the
                loop is not started and the engine enters FAILED
        """
        if self._task is not None and not self._task.done():
            return

        try:
            await asyncio.to_thread(self._detector.initialize)
        except Exception as e:
            self._state = EngineState.FAILED
            message = f"Pose detector initialization failed: {e}"
            logger.error(message)
            self._report_error(message)
            if isinstance(e, DetectorInitializationError):
                raise
            raise DetectorInitializationError(message) from e

        self._state = EngineState.RUNNING
        self._scheduler.current.reset()
        self._task = asyncio.create_task(self._run(), name="posture-detection-loop")
        logger.info("Posture engine started (detector: %s)", self._detector.name)

    async def stop(self) -> None:
        """Cancel the detection loop and clear derived state.

        Consistency counters survive only when
        `engine.keep_consistency_on_restart` is set.
        """
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._processor.reset(
            clear_consistency=not self.settings.engine.keep_consistency_on_restart
        )
        if self._state != EngineState.FAILED:
            self._state = EngineState.STOPPED
        logger.info("Posture engine stopped")

    async def close(self) -> None:
        """Stop the loop and release the detector."""
        await self.stop()
        self._detector.close()

    async def step(self) -> ProcessedFrame | None:
        """Run one detection and pipeline pass.

        Returns:
            Pipeline result, or None when the frame was skipped
        """
        try:
            keypoints = await self._detector.estimate()
        except Exception as e:
            self._failed_frames += 1
            logger.warning("Pose detection failed, skipping frame: %s", e)
            return None

        if not keypoints:
            logger.debug("No poses detected")
            return None

        try:
            return self._processor.process_keypoints(keypoints)
        except Exception:
            self._failed_frames += 1
            logger.exception("Posture pipeline failed, skipping frame")
            return None

    async def _run(self) -> None:
        while True:
            await self.step()
            await self._scheduler.wait()

    def _report_error(self, message: str) -> None:
        for callback in list(self._error_callbacks):
            try:
                callback(message)
            except Exception:
                logger.exception("Error callback %r failed", callback)

    async def __aenter__(self) -> PostureEngine:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self.close()
