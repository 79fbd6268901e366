#!/usr/bin/env python3
"""Replay a keypoint recording through the posture pipeline.

Useful for tuning thresholds offline: the same recording always yields the
same published analyses.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from posture_tracker.core.config import get_settings
from posture_tracker.core.logging import get_logger, setup_logging
from posture_tracker.core.types import SessionStats
from posture_tracker.recording import read_ticks, replay

logger = get_logger(__name__)


def main() -> int:
    """Run replay script."""
    parser = argparse.ArgumentParser(description="Replay recorded keypoints offline")
    parser.add_argument("recording", type=Path, help="Keypoint recording (.jsonl)")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print each published analysis as a JSON line",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging)

    if not args.recording.exists():
        logger.error("Recording not found: %s", args.recording)
        return 1

    try:
        analyses = replay(read_ticks(args.recording), settings)
    except ValueError as e:
        logger.error("Could not read recording: %s", e)
        return 1

    stats = SessionStats()
    for analysis in analyses:
        stats.add_analysis(analysis)
        if args.json:
            print(
                json.dumps(
                    {
                        "timestamp": analysis.timestamp,
                        "score": analysis.score,
                        "issues": list(analysis.issues),
                        "metrics": analysis.metrics.as_dict(),
                    }
                )
            )
        else:
            logger.info(
                "t=%.1fs score=%.1f %s",
                analysis.timestamp,
                analysis.score,
                "; ".join(analysis.issues),
            )

    if stats.avg_score is not None:
        logger.info(
            "Replayed %d analyses, average score %.2f, common issues: %s",
            stats.analysis_count,
            stats.avg_score,
            ", ".join(stats.common_issues()) or "none",
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
