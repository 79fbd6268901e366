"""Geometric posture metrics.

This module is pure logic with NO I/O and NO OpenCV imports. Every
function gates on landmark visibility and returns a neutral value (0, False
or None) instead of raising when the joints it needs were not seen.
"""

from __future__ import annotations

import math

import numpy as np

from posture_tracker.core.config import MetricSettings
from posture_tracker.core.types import Landmark, LandmarkFrame, MetricSet, PostureSignals

_DEFAULT_SETTINGS = MetricSettings()


def _visible(threshold: float, *landmarks: Landmark) -> bool:
    return all(lm.visibility >= threshold for lm in landmarks)


def _midpoint(a: Landmark, b: Landmark) -> tuple[float, float]:
    return (a.x + b.x) / 2, (a.y + b.y) / 2


def _line_angle_deg(dy: float, dx: float) -> float:
    """Angle in degrees [0, 90] between a line and the axis `dx` runs along.

    Direction-free: a line drawn right-to-left reads the same as left-to-right,
    so mirrored and unmirrored camera frames give the same value.
    """
    return float(np.degrees(np.arctan2(abs(dy), abs(dx))))


def neck_angle(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> float:
    """Forward-head angle from the shoulder→ear and ear→nose vectors.

    Uses the left-side joints and reports 180° minus the angle between the
    two vectors, floored at 0.
    """
    nose, ear, shoulder = frame.nose, frame.left_ear, frame.left_shoulder
    if not _visible(settings.min_visibility, nose, ear, shoulder):
        return 0.0

    shoulder_to_ear = np.array([ear.x - shoulder.x, ear.y - shoulder.y])
    ear_to_nose = np.array([nose.x - ear.x, nose.y - ear.y])

    mag1 = float(np.linalg.norm(shoulder_to_ear))
    mag2 = float(np.linalg.norm(ear_to_nose))
    if mag1 == 0 or mag2 == 0:
        return 0.0

    cos_angle = np.clip(np.dot(shoulder_to_ear, ear_to_nose) / (mag1 * mag2), -1.0, 1.0)
    angle_deg = float(np.degrees(np.arccos(cos_angle)))
    return max(0.0, 180.0 - angle_deg)


def shoulder_alignment(
    frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS
) -> float:
    """Angle of the shoulder line relative to horizontal."""
    left, right = frame.left_shoulder, frame.right_shoulder
    if not _visible(settings.min_visibility, left, right):
        return 0.0
    return _line_angle_deg(right.y - left.y, right.x - left.x)


def spine_alignment(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> float:
    """Angle of the shoulder-midpoint→hip-midpoint line relative to vertical."""
    joints = (frame.left_shoulder, frame.right_shoulder, frame.left_hip, frame.right_hip)
    if not _visible(settings.min_visibility, *joints):
        return 0.0

    shoulder_x, shoulder_y = _midpoint(frame.left_shoulder, frame.right_shoulder)
    hip_x, hip_y = _midpoint(frame.left_hip, frame.right_hip)
    # dx and dy swapped: measured from the vertical axis
    return _line_angle_deg(hip_x - shoulder_x, hip_y - shoulder_y)


def head_position(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> float:
    """Head tilt: angle of the ear-to-ear line relative to horizontal."""
    left, right = frame.left_ear, frame.right_ear
    if not _visible(settings.min_visibility, left, right, frame.nose):
        return 0.0
    return _line_angle_deg(right.y - left.y, right.x - left.x)


def shoulder_height(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> float:
    """Vertical shoulder offset, scaled by 10 to sit alongside the angle metrics."""
    left, right = frame.left_shoulder, frame.right_shoulder
    if not _visible(settings.min_visibility, left, right):
        return 0.0
    return abs(left.y - right.y) * 10


def compute_metrics(
    frame: LandmarkFrame, settings: MetricSettings | None = None
) -> MetricSet:
    """Compute every posture metric for a frame.

    Args:
        frame: Smoothed landmark frame
        settings: Metric settings (uses defaults if None)

    Returns:
        MetricSet with unknown metrics reported as 0
    """
    settings = settings or _DEFAULT_SETTINGS
    return MetricSet(
        neck_angle=neck_angle(frame, settings),
        shoulder_alignment=shoulder_alignment(frame, settings),
        spine_alignment=spine_alignment(frame, settings),
        head_position=head_position(frame, settings),
        shoulder_height=shoulder_height(frame, settings),
    )


def is_slouching(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> bool:
    """Whether the shoulder midpoint sits well ahead of the hip midpoint."""
    joints = (frame.left_shoulder, frame.right_shoulder, frame.left_hip, frame.right_hip)
    if not _visible(settings.min_visibility, *joints):
        return False

    shoulder_x, _ = _midpoint(frame.left_shoulder, frame.right_shoulder)
    hip_x, _ = _midpoint(frame.left_hip, frame.right_hip)
    return shoulder_x > hip_x + settings.slouch_forward_offset


def _camera_distance_cues(
    frame: LandmarkFrame, settings: MetricSettings
) -> tuple[float, float] | None:
    """Shoulder width and nose-to-shoulder-center / shoulder width ratio."""
    left, right, nose = frame.left_shoulder, frame.right_shoulder, frame.nose
    if not _visible(settings.min_visibility, left, right, nose):
        return None

    shoulder_width = math.hypot(left.x - right.x, left.y - right.y)
    center_x, center_y = _midpoint(left, right)
    nose_distance = math.hypot(nose.x - center_x, nose.y - center_y)
    if shoulder_width == 0:
        ratio = math.inf if nose_distance > 0 else 0.0
    else:
        ratio = nose_distance / shoulder_width
    return shoulder_width, ratio


def is_too_close(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> bool:
    """Subject fills most of the frame or the nose sits nearly on the shoulders."""
    cues = _camera_distance_cues(frame, settings)
    if cues is None:
        return False
    shoulder_width, ratio = cues
    return (
        shoulder_width > settings.too_close_shoulder_width
        or ratio < settings.too_close_nose_ratio
    )


def is_too_far(frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS) -> bool:
    """Subject is small in the frame or the nose sits far above the shoulders."""
    cues = _camera_distance_cues(frame, settings)
    if cues is None:
        return False
    shoulder_width, ratio = cues
    return shoulder_width < settings.too_far_shoulder_width or ratio > settings.too_far_nose_ratio


def head_neck_score(
    frame: LandmarkFrame, settings: MetricSettings = _DEFAULT_SETTINGS
) -> float | None:
    """Score head/neck alignment from 0 (poor) to 10 (aligned).

    Penalizes vertical ear/shoulder misalignment, ear tilt and a nose that
    drifts sideways from the shoulder center. Returns None when any of the
    five joints involved is not visible.
    """
    nose = frame.nose
    left_ear, right_ear = frame.left_ear, frame.right_ear
    left_shoulder, right_shoulder = frame.left_shoulder, frame.right_shoulder
    if not _visible(
        settings.min_visibility, nose, left_ear, right_ear, left_shoulder, right_shoulder
    ):
        return None

    score = settings.head_neck_base

    ear_center_y = (left_ear.y + right_ear.y) / 2
    shoulder_center_x, shoulder_center_y = _midpoint(left_shoulder, right_shoulder)
    head_shoulder_offset = abs(ear_center_y - shoulder_center_y)
    if head_shoulder_offset > settings.head_shoulder_offset_limit:
        score -= min(
            settings.head_shoulder_offset_cap,
            head_shoulder_offset * settings.head_shoulder_offset_scale,
        )

    ear_tilt = abs(left_ear.y - right_ear.y)
    if ear_tilt > settings.ear_tilt_limit:
        score -= min(settings.ear_tilt_cap, ear_tilt * settings.ear_tilt_scale)

    nose_offset = abs(nose.x - shoulder_center_x)
    if nose_offset > settings.nose_forward_limit:
        score -= min(settings.nose_forward_cap, nose_offset * settings.nose_forward_scale)

    return max(0.0, score)


def compute_signals(
    frame: LandmarkFrame, settings: MetricSettings | None = None
) -> PostureSignals:
    """Compute the derived boolean posture cues for a frame.

    Args:
        frame: Smoothed landmark frame
        settings: Metric settings (uses defaults if None)

    Returns:
        PostureSignals with unknown cues reported as False / None
    """
    settings = settings or _DEFAULT_SETTINGS
    return PostureSignals(
        slouching=is_slouching(frame, settings),
        too_close=is_too_close(frame, settings),
        too_far=is_too_far(frame, settings),
        head_neck_score=head_neck_score(frame, settings),
    )
