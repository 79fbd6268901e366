"""Tick sources pacing the detection loop.

The loop runs at display rate while the app is in the foreground and falls
back to a fixed, slower delay in the background so monitoring never stops.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from posture_tracker.core.config import SchedulerSettings
from posture_tracker.core.logging import get_logger

logger = get_logger(__name__)


class TickSource(ABC):
    """Something the detection loop can wait on between iterations."""

    name = "base"

    @abstractmethod
    async def wait(self) -> None:
        """Suspend until the next tick."""

    def reset(self) -> None:
        """Forget timing state accumulated so far."""
        return None


class FrameSyncedTicks(TickSource):
    """Ticks aligned to a fixed frame grid (foreground mode).

    Each tick lands on the next frame boundary after the previous one, so
    time spent in detection counts against the frame period instead of being
    added on top of it. When an iteration overruns, the grid re-anchors on the
    current time rather than firing a burst of catch-up ticks.
    """

    name = "frame-synced"

    def __init__(self, fps: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.period = 1.0 / fps
        self._clock = clock
        self._next_deadline: float | None = None

    async def wait(self) -> None:
        now = self._clock()
        if self._next_deadline is None or self._next_deadline <= now:
            self._next_deadline = now + self.period
        delay = self._next_deadline - now
        self._next_deadline += self.period
        await asyncio.sleep(delay)

    def reset(self) -> None:
        self._next_deadline = None


class FixedDelayTicks(TickSource):
    """Constant delay after every iteration (background mode)."""

    name = "fixed-delay"

    def __init__(self, delay_ms: float = 100.0) -> None:
        self.delay = delay_ms / 1000.0

    async def wait(self) -> None:
        await asyncio.sleep(self.delay)


class TickScheduler:
    """Selects the tick source according to app visibility."""

    def __init__(
        self,
        settings: SchedulerSettings | None = None,
        foreground: TickSource | None = None,
        background: TickSource | None = None,
    ) -> None:
        """Initialize scheduler.

        Args:
            settings: Scheduler settings (uses defaults if None)
            foreground: Tick source while visible (frame-synced if None)
            background: Tick source while hidden (fixed delay if None)
        """
        self.settings = settings or SchedulerSettings()
        self.foreground = foreground or FrameSyncedTicks(self.settings.foreground_fps)
        self.background = background or FixedDelayTicks(self.settings.background_delay_ms)
        self._visible = True

    @property
    def visible(self) -> bool:
        """Whether the app is currently in the foreground."""
        return self._visible

    @property
    def current(self) -> TickSource:
        """Tick source in effect."""
        return self.foreground if self._visible else self.background

    def set_visible(self, visible: bool) -> None:
        """Switch tick source on a foreground/background change."""
        if visible == self._visible:
            return
        self._visible = visible
        self.current.reset()
        logger.info(
            "App %s, pacing detection with %s ticks",
            "visible" if visible else "hidden",
            self.current.name,
        )

    async def wait(self) -> None:
        """Wait for the next tick of the current source."""
        await self.current.wait()
