"""
Gesture classification: continuous hand features and stability-gated finger gestures.
"""
import logging
import math
from collections import Counter, deque
from typing import Deque, Optional, Tuple

from .config import ClassifierConfig
from .landmarks import (
    INDEX_MCP,
    INDEX_TIP,
    MIDDLE_MCP,
    PINKY_MCP,
    THUMB_TIP,
    WRIST,
    distance_2d,
    fingers_extended,
    hand_scale,
)
from .types import ContinuousFeatures, FingerGesture, FingerGestureState, Hand, LandmarkFrame

logger = logging.getLogger(__name__)

IDLE_FEATURES = ContinuousFeatures()
IDLE_FINGER_STATE = FingerGestureState()

GESTURE_BY_COUNT = {
    0: FingerGesture.CLOSED_FIST,
    1: FingerGesture.ONE_FINGER,
    2: FingerGesture.TWO_FINGERS,
    5: FingerGesture.OPEN_PALM,
}

# Normalized thumb-index distance mapped linearly onto pinch strength:
# PINCH_FAR or more -> 0, PINCH_FAR - PINCH_RANGE or less -> 1.
PINCH_FAR = 0.8
PINCH_RANGE = 0.6
# Reported pinch while latched open / closed.
PINCH_RELEASED_CAP = 0.4
PINCH_LATCHED_FLOOR = 0.6

ROTATION_GAIN = 1.5
TILT_GAIN = 3.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def classify_count(finger_count: int) -> FingerGesture:
    """Map an extended-finger count onto a gesture; 3 and 4 have none."""
    return GESTURE_BY_COUNT.get(finger_count, FingerGesture.UNKNOWN)


class GestureHistory:
    """Fixed-capacity ring buffer of raw gestures with a majority vote."""

    def __init__(self, capacity: int = 8):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._buffer: Deque[FingerGesture] = deque(maxlen=capacity)

    def push(self, gesture: FingerGesture) -> None:
        self._buffer.append(gesture)

    def majority(self) -> Tuple[FingerGesture, float]:
        """Most frequent gesture and its share of the buffer."""
        if not self._buffer:
            return FingerGesture.UNKNOWN, 0.0
        gesture, votes = Counter(self._buffer).most_common(1)[0]
        return gesture, votes / len(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)


class GestureClassifier:
    """
    Turns the primary hand of a LandmarkFrame into continuous features and a
    discrete finger gesture.

    Features:
    - Pinch strength normalized by hand size, with median smoothing and
      latched hysteresis
    - Palm rotation and tilt in [-1, 1]
    - Finger counting with a thumb-specific extension test
    - Majority vote over recent frames so single misclassifications never
      reach the controls
    """

    def __init__(self, cfg: Optional[ClassifierConfig] = None):
        self.cfg = cfg or ClassifierConfig()
        if not 0 <= self.cfg.pinch_open_threshold < self.cfg.pinch_closed_threshold <= 1:
            raise ValueError("pinch thresholds must satisfy 0 <= open < closed <= 1")

        self.hand_scale: Optional[float] = None
        self.pinch_history: Deque[float] = deque(maxlen=self.cfg.pinch_history_size)
        self.pinch_latched = False

        self.history = GestureHistory(self.cfg.history_size)
        self.stable_gesture = FingerGesture.UNKNOWN

    def recognize(self, frame: LandmarkFrame) -> Tuple[ContinuousFeatures, FingerGestureState]:
        """Continuous features and finger gesture of the frame's primary hand."""
        return self.recognize_features(frame), self.recognize_finger_gesture(frame)

    def recognize_features(self, frame: LandmarkFrame) -> ContinuousFeatures:
        if not frame.hands:
            return IDLE_FEATURES

        hand = frame.primary
        return ContinuousFeatures(
            pinch_strength=self._pinch_strength(hand),
            palm_rotation=self._palm_rotation(hand),
            palm_tilt=self._palm_tilt(hand),
        )

    def recognize_finger_gesture(self, frame: LandmarkFrame) -> FingerGestureState:
        if not frame.hands:
            return IDLE_FINGER_STATE

        finger_count = fingers_extended(frame.primary)
        self.history.push(classify_count(finger_count))

        majority, confidence = self.history.majority()
        if confidence > self.cfg.stability_ratio:
            if majority != self.stable_gesture:
                logger.debug("Stable gesture %s -> %s (%.2f)",
                             self.stable_gesture.value, majority.value, confidence)
            self.stable_gesture = majority

        return FingerGestureState(
            gesture=self.stable_gesture,
            finger_count=finger_count,
            confidence=confidence,
            hand_visible=True,
        )

    def set_hand_scale(self, scale: float) -> None:
        """Use a calibrated hand size instead of the first one seen."""
        if scale <= 0:
            raise ValueError(f"hand scale must be positive, got {scale}")
        self.hand_scale = scale

    def reset(self) -> None:
        """Clear all per-session history (the hand scale is kept)."""
        self.pinch_history.clear()
        self.pinch_latched = False
        self.history.clear()
        self.stable_gesture = FingerGesture.UNKNOWN

    def _pinch_strength(self, hand: Hand) -> float:
        if self.hand_scale is None:
            scale = hand_scale(hand)
            if scale <= 0:
                return 0.0
            self.hand_scale = scale

        distance = distance_2d(hand[THUMB_TIP], hand[INDEX_TIP]) / self.hand_scale
        raw = _clamp((PINCH_FAR - distance) / PINCH_RANGE, 0.0, 1.0)

        self.pinch_history.append(raw)
        ordered = sorted(self.pinch_history)
        median = ordered[len(ordered) // 2]

        if self.pinch_latched:
            if median < self.cfg.pinch_open_threshold:
                self.pinch_latched = False
        elif median > self.cfg.pinch_closed_threshold:
            self.pinch_latched = True

        if self.pinch_latched:
            return max(PINCH_LATCHED_FLOOR, median)
        return min(PINCH_RELEASED_CAP, median)

    @staticmethod
    def _palm_rotation(hand: Hand) -> float:
        wrist, index_mcp, pinky_mcp = hand[WRIST], hand[INDEX_MCP], hand[PINKY_MCP]
        hx, hy = index_mcp.x - wrist.x, index_mcp.y - wrist.y
        px, py = pinky_mcp.x - index_mcp.x, pinky_mcp.y - index_mcp.y

        cross = hx * py - hy * px
        rotation = math.sin(math.atan2(hy, hx)) * ROTATION_GAIN
        if cross < 0:
            rotation = -rotation
        return _clamp(rotation, -1.0, 1.0)

    @staticmethod
    def _palm_tilt(hand: Hand) -> float:
        # Image y grows downward, so a hand pointing up has a negative dy.
        dy = hand[MIDDLE_MCP].y - hand[WRIST].y
        return _clamp(-dy * TILT_GAIN, -1.0, 1.0)
