"""Frame processing pipeline orchestration."""

from posture_tracker.pipeline.emitter import OutputEmitter
from posture_tracker.pipeline.engine import PostureEngine
from posture_tracker.pipeline.processor import PostureProcessor, ProcessedFrame
from posture_tracker.pipeline.scheduler import (
    FixedDelayTicks,
    FrameSyncedTicks,
    TickScheduler,
    TickSource,
)

__all__ = [
    "PostureEngine",
    "PostureProcessor",
    "ProcessedFrame",
    "OutputEmitter",
    "TickScheduler",
    "TickSource",
    "FrameSyncedTicks",
    "FixedDelayTicks",
]
