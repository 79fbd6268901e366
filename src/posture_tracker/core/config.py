"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TieredRule(BaseModel):
    """Two-severity threshold rule for one metric.

    A metric above `severe_above` raises the severe issue; otherwise a metric
    above `slight_above` raises the slight one. Each tier subtracts
    min(cap, metric * scale) from the score.
    """

    severe_key: str
    severe_above: float
    severe_cap: float
    severe_scale: float
    slight_key: str
    slight_above: float
    slight_cap: float
    slight_scale: float


class SmoothingSettings(BaseSettings):
    """Rolling window sizes for landmark and analysis smoothing."""

    model_config = SettingsConfigDict(env_prefix="SMOOTHING_")

    landmark_window: int = Field(default=6, ge=1)
    landmark_min_visibility: float = 0.1
    analysis_window: int = Field(default=12, ge=1)


class MetricSettings(BaseSettings):
    """Geometry thresholds for metric and signal computation."""

    model_config = SettingsConfigDict(env_prefix="METRIC_")

    min_visibility: float = 0.5
    slouch_forward_offset: float = 0.10

    too_close_shoulder_width: float = 0.8
    too_close_nose_ratio: float = 0.3
    too_far_shoulder_width: float = 0.15
    too_far_nose_ratio: float = 0.8

    head_neck_base: float = 10.0
    head_shoulder_offset_limit: float = 0.15
    head_shoulder_offset_cap: float = 2.0
    head_shoulder_offset_scale: float = 15.0
    ear_tilt_limit: float = 0.08
    ear_tilt_cap: float = 1.8
    ear_tilt_scale: float = 20.0
    nose_forward_limit: float = 0.2
    nose_forward_cap: float = 2.5
    nose_forward_scale: float = 10.0


class ClassifierSettings(BaseSettings):
    """Issue thresholds, penalties and hysteresis constants."""

    model_config = SettingsConfigDict(env_prefix="CLASSIFIER_", env_nested_delimiter="__")

    consistency_threshold: int = Field(default=3, ge=1)
    growth_step: int = 1
    decay_step: int = 3
    reset_score: float = 8.0

    neck_angle: TieredRule = TieredRule(
        severe_key="forward_head",
        severe_above=30.0,
        severe_cap=2.0,
        severe_scale=0.08,
        slight_key="slight_forward_head",
        slight_above=20.0,
        slight_cap=0.8,
        slight_scale=0.04,
    )
    shoulder_alignment: TieredRule = TieredRule(
        severe_key="uneven_shoulders",
        severe_above=20.0,
        severe_cap=1.5,
        severe_scale=0.08,
        slight_key="slight_shoulder_imbalance",
        slight_above=12.0,
        slight_cap=0.6,
        slight_scale=0.04,
    )
    head_position: TieredRule = TieredRule(
        severe_key="head_tilt",
        severe_above=25.0,
        severe_cap=1.8,
        severe_scale=0.08,
        slight_key="slight_head_tilt",
        slight_above=15.0,
        slight_cap=0.7,
        slight_scale=0.04,
    )
    shoulder_height: TieredRule = TieredRule(
        severe_key="shoulder_height_imbalance",
        severe_above=30.0,
        severe_cap=1.2,
        severe_scale=0.05,
        slight_key="slight_shoulder_height",
        slight_above=22.0,
        slight_cap=0.4,
        slight_scale=0.015,
    )
    spine_alignment: TieredRule = TieredRule(
        severe_key="spine_alignment",
        severe_above=40.0,
        severe_cap=1.0,
        severe_scale=0.04,
        slight_key="slight_spine_deviation",
        slight_above=32.0,
        slight_cap=0.4,
        slight_scale=0.015,
    )

    slouching_penalty: float = 1.3
    head_neck_severe_below: float = 6.0
    head_neck_severe_penalty: float = 1.0
    head_neck_slight_below: float = 7.0
    head_neck_slight_penalty: float = 0.5
    too_close_penalty: float = 2.0
    too_far_penalty: float = 2.0


class ScoreSettings(BaseSettings):
    """Score bounds, visibility gate and feedback bands."""

    model_config = SettingsConfigDict(env_prefix="SCORE_")

    baseline: float = 10.0
    floor: float = 2.0
    ceiling: float = 10.0

    gate_min_visibility: float = 0.2
    gate_required_visible: int = 2
    degraded_shoulder_visibility: float = 0.1
    degraded_too_far_distance: float = 0.1
    degraded_too_far_score: float = 5.0
    degraded_score: float = 7.5

    excellent_band: float = 8.0
    good_band: float = 7.0
    improving_band: float = 6.0


class EmitterSettings(BaseSettings):
    """Publication rate limiting."""

    model_config = SettingsConfigDict(env_prefix="EMIT_")

    interval_ms: float = Field(default=2000.0, ge=0)


class SchedulerSettings(BaseSettings):
    """Detection loop tick sources."""

    model_config = SettingsConfigDict(env_prefix="LOOP_")

    foreground_fps: float = Field(default=60.0, gt=0)
    background_delay_ms: float = Field(default=100.0, ge=0)


class EngineSettings(BaseSettings):
    """Engine lifecycle options."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_")

    keep_consistency_on_restart: bool = False


class PoseSettings(BaseSettings):
    """MediaPipe pose estimation settings."""

    model_config = SettingsConfigDict(env_prefix="POSE_")

    model_variant: Literal["lite", "full", "heavy"] = "lite"
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    model_path: str | None = None


class CameraSettings(BaseSettings):
    """Webcam capture settings."""

    model_config = SettingsConfigDict(env_prefix="CAMERA_")

    device_id: int = 0
    width: int | None = None
    height: int | None = None


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: str | None = None
    quiet_loggers: list[str] = Field(default_factory=lambda: ["mediapipe", "absl"])


class Settings(BaseSettings):
    """Root settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    smoothing: SmoothingSettings = Field(default_factory=SmoothingSettings)
    metrics: MetricSettings = Field(default_factory=MetricSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    score: ScoreSettings = Field(default_factory=ScoreSettings)
    emitter: EmitterSettings = Field(default_factory=EmitterSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    pose: PoseSettings = Field(default_factory=PoseSettings)
    camera: CameraSettings = Field(default_factory=CameraSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings instance."""
    return Settings()
