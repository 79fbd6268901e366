"""Keypoint recordings for offline replay.

A recording is a JSON Lines file with one detector tick per line:
``{"timestamp": <seconds>, "keypoints": [[x, y, confidence], ...]}``.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from posture_tracker.core.config import Settings
from posture_tracker.core.types import Keypoint, PostureAnalysis
from posture_tracker.pipeline.processor import PostureProcessor


@dataclass(frozen=True, slots=True)
class RecordedTick:
    """One recorded detector output."""

    timestamp: float
    keypoints: tuple[Keypoint, ...]


def encode_tick(timestamp: float, keypoints: Sequence[Keypoint]) -> str:
    """Serialize one tick as a JSON line (without newline)."""
    return json.dumps(
        {
            "timestamp": timestamp,
            "keypoints": [[kp.x, kp.y, kp.confidence] for kp in keypoints],
        }
    )


def write_tick(f: TextIO, timestamp: float, keypoints: Sequence[Keypoint]) -> None:
    """Append one tick to an open recording."""
    f.write(encode_tick(timestamp, keypoints) + "\n")


def read_ticks(path: Path) -> Iterator[RecordedTick]:
    """Read ticks from a recording, skipping blank lines.

    Raises:
        ValueError: If a line is not a valid tick
    """
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
                keypoints = tuple(
                    Keypoint(x=float(x), y=float(y), confidence=float(c))
                    for x, y, c in data["keypoints"]
                )
                yield RecordedTick(timestamp=float(data["timestamp"]), keypoints=keypoints)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: invalid tick: {e}") from e


def replay(
    ticks: Iterable[RecordedTick],
    settings: Settings | None = None,
) -> list[PostureAnalysis]:
    """Run recorded ticks through a fresh processor.

    The recording's timestamps drive the emit interval, so the result is the
    same sequence of analyses a live engine would have published.

    Args:
        ticks: Recorded ticks in time order
        settings: Application settings (uses defaults if None)

    Returns:
        Published analyses in order
    """
    processor = PostureProcessor(settings, clock=lambda: 0.0)
    published: list[PostureAnalysis] = []
    processor.subscribe(published.append)

    for tick in ticks:
        processor.process_keypoints(
            tick.keypoints, timestamp=tick.timestamp, now_ms=tick.timestamp * 1000.0
        )

    return published
