"""Posture Tracker: real-time posture analysis from body-landmark detections."""

__version__ = "0.1.0"
