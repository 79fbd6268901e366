"""Rate-limited publication of posture analyses."""

from __future__ import annotations

from collections.abc import Callable

from posture_tracker.core.config import EmitterSettings
from posture_tracker.core.logging import get_logger
from posture_tracker.core.types import PostureAnalysis

logger = get_logger(__name__)

AnalysisCallback = Callable[[PostureAnalysis], None]


class OutputEmitter:
    """Publishes analyses to subscribers at most once per interval.

    Decouples the publish rate from the detector frame rate: callers ask
    `due()` after every per-frame analysis and only build and `emit()` a
    smoothed analysis when it returns True.
    """

    def __init__(self, settings: EmitterSettings | None = None) -> None:
        """Initialize emitter.

        Args:
            settings: Emitter settings (uses defaults if None)
        """
        self.settings = settings or EmitterSettings()
        self._subscribers: list[AnalysisCallback] = []
        self._last_emit_ms: float | None = None
        self._last_analysis: PostureAnalysis | None = None

    @property
    def interval_ms(self) -> float:
        """Minimum time between publications."""
        return self.settings.interval_ms

    @property
    def last_emit_ms(self) -> float | None:
        """Time of the last publication, None before the first."""
        return self._last_emit_ms

    @property
    def last_analysis(self) -> PostureAnalysis | None:
        """Most recently published analysis."""
        return self._last_analysis

    def subscribe(self, callback: AnalysisCallback) -> Callable[[], None]:
        """Register a subscriber.

        Args:
            callback: Called with every published analysis

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def due(self, now_ms: float) -> bool:
        """Check whether enough time passed since the last publication."""
        if self._last_emit_ms is None:
            return True
        return now_ms - self._last_emit_ms >= self.settings.interval_ms

    def emit(self, analysis: PostureAnalysis, now_ms: float) -> None:
        """Publish an analysis to every subscriber.

        Subscriber failures are logged and never interrupt the caller.

        Args:
            analysis: Analysis to publish
            now_ms: Current time in milliseconds
        """
        self._last_emit_ms = now_ms
        self._last_analysis = analysis

        for callback in list(self._subscribers):
            try:
                callback(analysis)
            except Exception:
                logger.exception("Posture analysis subscriber %r failed", callback)

    def reset(self) -> None:
        """Forget the last publication so the next analysis is due at once."""
        self._last_emit_ms = None
        self._last_analysis = None
