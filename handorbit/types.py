"""
Type definitions for the gesture-to-camera pipeline.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Protocol, Tuple, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21
MAX_HANDS = 2


@dataclass(frozen=True)
class Landmark:
    """A single normalized hand joint; x/y in [0..1], y grows downward."""
    x: float
    y: float
    z: float = 0.0


Hand = Tuple[Landmark, ...]


def to_landmark(entry: Any) -> Landmark:
    """Convert a MediaPipe landmark, dict or (x, y[, z]) sequence into a Landmark."""
    if isinstance(entry, Landmark):
        return entry
    if hasattr(entry, "x") and hasattr(entry, "y"):
        return Landmark(float(entry.x), float(entry.y), float(getattr(entry, "z", 0.0) or 0.0))
    if isinstance(entry, dict):
        return Landmark(float(entry["x"]), float(entry["y"]), float(entry.get("z", 0.0)))
    if not isinstance(entry, (str, bytes)) and np.ndim(entry) == 1 and len(entry) in (2, 3):
        return Landmark(*(float(v) for v in entry))
    raise ValueError(f"Unsupported landmark format: {entry!r}")


def to_hand(points: Iterable[Any]) -> Hand:
    """Build a Hand from exactly 21 landmark-like entries."""
    hand = tuple(to_landmark(p) for p in points)
    if len(hand) != NUM_LANDMARKS:
        raise ValueError(f"A hand needs {NUM_LANDMARKS} landmarks, got {len(hand)}")
    return hand


@dataclass(frozen=True)
class LandmarkFrame:
    """All hands detected in one video frame."""
    hands: Tuple[Hand, ...]
    timestamp_ms: float

    @classmethod
    def from_hands(cls, hands: Iterable[Iterable[Any]], timestamp_ms: float) -> "LandmarkFrame":
        """Build a frame from at most MAX_HANDS hands; extra hands are dropped."""
        hands = list(hands)
        if len(hands) > MAX_HANDS:
            logger.debug("Dropping %d hands beyond the first %d", len(hands) - MAX_HANDS, MAX_HANDS)
            hands = hands[:MAX_HANDS]
        return cls(hands=tuple(to_hand(h) for h in hands), timestamp_ms=float(timestamp_ms))

    @classmethod
    def empty(cls, timestamp_ms: float) -> "LandmarkFrame":
        return cls(hands=(), timestamp_ms=float(timestamp_ms))

    @property
    def hand_count(self) -> int:
        return len(self.hands)

    @property
    def primary(self) -> Hand:
        """The first detected hand; the only one used for feature extraction."""
        return self.hands[0]


@dataclass(frozen=True)
class ContinuousFeatures:
    """Continuous features of the primary hand."""
    pinch_strength: float = 0.0  # 0 = apart, 1 = touching
    palm_rotation: float = 0.0   # -1..1
    palm_tilt: float = 0.0       # -1..1, positive = tilted up


class FingerGesture(str, Enum):
    OPEN_PALM = "open_palm"
    CLOSED_FIST = "closed_fist"
    ONE_FINGER = "one_finger"
    TWO_FINGERS = "two_fingers"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FingerGestureState:
    """Stability-gated finger gesture of the primary hand."""
    gesture: FingerGesture = FingerGesture.UNKNOWN
    finger_count: int = 0
    confidence: float = 0.0
    hand_visible: bool = False


class GestureMode(str, Enum):
    IDLE = "Idle"
    ZOOM = "Zoom"
    ORBIT = "Orbit"


@dataclass(frozen=True)
class GestureSnapshot:
    """Interpreted gesture state, replaced wholesale on every ingest."""
    timestamp: float
    mode: GestureMode = GestureMode.IDLE
    pinch: float = 0.0        # 0..1, filtered
    pinch_delta: float = 0.0  # positive = zoom in
    yaw: float = 0.0          # rad/s
    pitch: float = 0.0        # rad/s
    roll: float = 0.0
    hand_count: int = 0
    quality: float = 0.0      # 0..1


@dataclass(frozen=True)
class GestureEvent:
    """One-shot event derived from a gesture (e.g. the listen toggle)."""
    name: str
    timestamp_ms: float
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CalibrationData:
    """Neutral hand pose captured by calibrate_neutral()."""
    neutral_yaw: float = 0.0
    neutral_pitch: float = 0.0
    neutral_roll: float = 0.0
    hand_baseline: float = 0.1  # wrist to index MCP distance


@runtime_checkable
class OrbitCameraProto(Protocol):
    """Externally owned orbit camera: a spherical offset from a target."""

    target: np.ndarray
    min_distance: float
    max_distance: float

    def get_distance(self) -> float:
        """Current distance between camera and target."""
        ...

    def set_distance(self, distance: float) -> None:
        """Move the camera along its current direction to the given distance."""
        ...

    def get_offset(self) -> np.ndarray:
        """Camera position minus target."""
        ...

    def set_offset(self, offset: np.ndarray) -> None:
        """Place the camera at target + offset, looking at the target."""
        ...

    def update(self) -> None:
        """Commit pending changes (damping, matrices, ...)."""
        ...
