"""Core data types and structures."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from enum import Enum, auto


@dataclass(frozen=True, slots=True)
class Keypoint:
    """A raw keypoint as produced by a pose detector.

    Coordinates are normalized [0, 1] relative to frame dimensions.
    """

    x: float
    y: float
    confidence: float


@dataclass(frozen=True, slots=True)
class Landmark:
    """A single body landmark with coordinates and visibility score.

    Coordinates are normalized [0, 1] relative to frame dimensions. The z
    coordinate is carried for completeness but detectors used here report 0.
    A low visibility means "not confidently seen", not "absent".
    """

    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0


PLACEHOLDER_LANDMARK = Landmark(x=0.0, y=0.0, z=0.0, visibility=0.0)


class KeypointName(Enum):
    """The 17 keypoints, in detector output order."""

    NOSE = 0
    LEFT_EYE = 1
    RIGHT_EYE = 2
    LEFT_EAR = 3
    RIGHT_EAR = 4
    LEFT_SHOULDER = 5
    RIGHT_SHOULDER = 6
    LEFT_ELBOW = 7
    RIGHT_ELBOW = 8
    LEFT_WRIST = 9
    RIGHT_WRIST = 10
    LEFT_HIP = 11
    RIGHT_HIP = 12
    LEFT_KNEE = 13
    RIGHT_KNEE = 14
    LEFT_ANKLE = 15
    RIGHT_ANKLE = 16


KEYPOINT_COUNT = len(KeypointName)


@dataclass(frozen=True, slots=True)
class LandmarkFrame:
    """All 17 body landmarks for a single detector tick.

    Attributes:
        landmarks: One Landmark per KeypointName, in KeypointName order
        timestamp: Capture time in seconds
    """

    landmarks: tuple[Landmark, ...]
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if len(self.landmarks) != KEYPOINT_COUNT:
            raise ValueError(
                f"LandmarkFrame needs {KEYPOINT_COUNT} landmarks, got {len(self.landmarks)}"
            )

    @classmethod
    def from_keypoints(cls, keypoints: Sequence[Keypoint], timestamp: float = 0.0) -> LandmarkFrame:
        """Build a frame from an ordered detector keypoint list.

        Keypoints past the 17th are ignored; missing ones become
        zero-visibility placeholders.
        """
        landmarks = [
            Landmark(x=float(kp.x), y=float(kp.y), z=0.0, visibility=float(kp.confidence))
            for kp in keypoints[:KEYPOINT_COUNT]
        ]
        landmarks.extend([PLACEHOLDER_LANDMARK] * (KEYPOINT_COUNT - len(landmarks)))
        return cls(landmarks=tuple(landmarks), timestamp=timestamp)

    @classmethod
    def empty(cls, timestamp: float = 0.0) -> LandmarkFrame:
        """Frame where every landmark is a zero-visibility placeholder."""
        return cls(landmarks=(PLACEHOLDER_LANDMARK,) * KEYPOINT_COUNT, timestamp=timestamp)

    def __getitem__(self, name: KeypointName) -> Landmark:
        return self.landmarks[name.value]

    @property
    def nose(self) -> Landmark:
        return self[KeypointName.NOSE]

    @property
    def left_ear(self) -> Landmark:
        return self[KeypointName.LEFT_EAR]

    @property
    def right_ear(self) -> Landmark:
        return self[KeypointName.RIGHT_EAR]

    @property
    def left_shoulder(self) -> Landmark:
        return self[KeypointName.LEFT_SHOULDER]

    @property
    def right_shoulder(self) -> Landmark:
        return self[KeypointName.RIGHT_SHOULDER]

    @property
    def left_hip(self) -> Landmark:
        return self[KeypointName.LEFT_HIP]

    @property
    def right_hip(self) -> Landmark:
        return self[KeypointName.RIGHT_HIP]

    def visibilities(self) -> dict[str, float]:
        """Visibility per keypoint name, for debug logging."""
        return {name.name.lower(): self[name].visibility for name in KeypointName}


@dataclass(frozen=True, slots=True)
class MetricSet:
    """Geometric posture metrics derived from one LandmarkFrame.

    All values are degree-like scalars >= 0. A value of 0 also means the
    joints needed for that metric were not visible enough.
    """

    neck_angle: float = 0.0
    shoulder_alignment: float = 0.0
    spine_alignment: float = 0.0
    head_position: float = 0.0
    shoulder_height: float = 0.0

    @classmethod
    def names(cls) -> tuple[str, ...]:
        """Metric field names in declaration order."""
        return tuple(f.name for f in fields(cls))

    def as_dict(self) -> dict[str, float]:
        """Metrics as a plain dictionary."""
        return {name: getattr(self, name) for name in self.names()}


@dataclass(frozen=True, slots=True)
class PostureSignals:
    """Boolean and auxiliary posture cues derived alongside the metrics.

    Attributes:
        slouching: Shoulders are well ahead of the hips
        too_close: Subject fills too much of the frame
        too_far: Subject is too small in the frame
        head_neck_score: 0-10 head/neck alignment score, None when unknown
    """

    slouching: bool = False
    too_close: bool = False
    too_far: bool = False
    head_neck_score: float | None = None


@dataclass(frozen=True, slots=True)
class PostureAnalysis:
    """The unit of output: a scored posture assessment.

    Attributes:
        score: Posture quality in [2, 10]
        issues: Human-readable coaching messages, in display order
        metrics: Metric values the score was derived from
        issue_keys: Machine-readable keys of the shown issues
        degraded: True when produced by the low-visibility fallback
        timestamp: Time of the frame (or last frame) this analysis covers
    """

    score: float
    issues: tuple[str, ...] = ()
    metrics: MetricSet = field(default_factory=MetricSet)
    issue_keys: tuple[str, ...] = ()
    degraded: bool = False
    timestamp: float = 0.0

    @property
    def has_issues(self) -> bool:
        """Whether any negative issue is shown."""
        return bool(self.issue_keys)


class EngineState(Enum):
    """Lifecycle states of the detection engine."""

    IDLE = auto()
    RUNNING = auto()
    STOPPED = auto()
    FAILED = auto()


@dataclass(slots=True)
class SessionStats:
    """Tally of analyses published during an engine session.

    Attributes:
        scores: Score of every published analysis
        issue_counts: Number of published analyses showing each issue key
        start_time: Session start timestamp
    """

    scores: list[float] = field(default_factory=list)
    issue_counts: dict[str, int] = field(default_factory=dict)
    start_time: float = 0.0

    @property
    def analysis_count(self) -> int:
        """Number of analyses recorded."""
        return len(self.scores)

    @property
    def avg_score(self) -> float | None:
        """Average published score."""
        if not self.scores:
            return None
        return sum(self.scores) / len(self.scores)

    @property
    def min_score(self) -> float | None:
        """Lowest published score."""
        return min(self.scores) if self.scores else None

    def add_analysis(self, analysis: PostureAnalysis) -> None:
        """Record a published analysis."""
        self.scores.append(analysis.score)
        for key in analysis.issue_keys:
            self.issue_counts[key] = self.issue_counts.get(key, 0) + 1

    def common_issues(self, count: int = 3) -> list[str]:
        """Most frequently shown issue keys, most frequent first."""
        ranked = sorted(self.issue_counts.items(), key=lambda item: (-item[1], item[0]))
        return [key for key, _ in ranked[:count]]

    def reset(self) -> None:
        """Clear all recorded analyses."""
        self.scores.clear()
        self.issue_counts.clear()
