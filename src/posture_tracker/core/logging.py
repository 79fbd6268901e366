"""Logging setup for the posture_tracker namespace."""

import logging
import sys
from pathlib import Path

from posture_tracker.core.config import LoggingSettings

NAMESPACE = "posture_tracker"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """Attach console and optional file handlers to the package logger.

    Console output goes to stderr so tools can keep stdout for data.
    Calling this again replaces the handlers installed before.

    Args:
        settings: Logging settings (uses defaults if None)

    Returns:
        The package logger
    """
    settings = settings or LoggingSettings()
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    package_logger = logging.getLogger(NAMESPACE)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    package_logger.addHandler(console)

    if settings.file:
        path = Path(settings.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    for name in settings.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Module logger under the package namespace.

    Args:
        name: Module name (typically __name__)
    """
    if name != NAMESPACE and not name.startswith(f"{NAMESPACE}."):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)
