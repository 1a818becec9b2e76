"""
Gesture engine: turns landmark frames into immutable gesture snapshots.
"""
import logging
import math
from dataclasses import replace
from typing import List, Optional, Tuple

from .classifier import IDLE_FINGER_STATE, GestureClassifier
from .config import Cfg
from .events import LISTEN_TOGGLE
from .filters import GestureFilter
from .landmarks import INDEX_TIP, hand_scale, palm_orientation
from .state_machine import ModeStateMachine
from .types import (
    CalibrationData,
    ContinuousFeatures,
    FingerGesture,
    FingerGestureState,
    GestureEvent,
    GestureMode,
    GestureSnapshot,
    LandmarkFrame,
)

logger = logging.getLogger(__name__)

MIN_SLIDE_DT_S = 0.001
HAND_QUALITY_WEIGHT = 0.7


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _wrap_angle(angle: float) -> float:
    """Wrap an angle to [-pi, pi)."""
    return (angle + math.pi) % (2 * math.pi) - math.pi


class GestureEngine:
    """
    Orchestrates classification, filtering and mode debouncing for each
    landmark frame, and owns the neutral-pose calibration.

    The engine is the only writer of its snapshot and calibration. ingest()
    replaces the snapshot wholesale; read() hands it out unchanged.

    Two control schemes are supported:
    - "finger" (default): discrete finger gestures. Open palm zooms out,
      closed fist zooms in, one finger orbits from the index fingertip's
      horizontal velocity, two fingers emit a debounced listen-toggle event
      and leave the camera alone.
    - "continuous": pinch strength drives zoom speed and the calibrated palm
      orientation drives orbit.
    """

    def __init__(self, cfg: Optional[Cfg] = None):
        self.cfg = cfg or Cfg()
        self.filter = GestureFilter(self.cfg.filters)
        self.classifier = GestureClassifier(self.cfg.classifier)
        self.state_machine = ModeStateMachine(self.cfg.state_machine)

        self._calibration = CalibrationData()
        self._snapshot = GestureSnapshot(timestamp=0.0)
        self._finger_state = IDLE_FINGER_STATE
        self._features = ContinuousFeatures()
        self._last_ingest_ms: Optional[float] = None

        # One-finger slide tracking
        self._last_tip_x: Optional[float] = None
        self._last_tip_ms: Optional[float] = None

        # Two-fingers toggle debounce
        self._last_toggle_ms: Optional[float] = None

        # Continuous scheme orientation tracking
        self._last_orientation: Optional[Tuple[float, float]] = None
        self._palm_active = False

    @property
    def last_finger_gesture(self) -> FingerGestureState:
        return self._finger_state

    @property
    def last_features(self) -> ContinuousFeatures:
        return self._features

    def read(self) -> GestureSnapshot:
        """Latest gesture snapshot."""
        return self._snapshot

    def ingest(self, frame: LandmarkFrame) -> List[GestureEvent]:
        """
        Process one landmark frame and replace the snapshot.

        The snapshot mode is the debounced mode, so it lags the gesture by the
        state machine's enter/exit delay. While the two disagree (for example
        Zoom still reported after the fist turned into an unknown gesture),
        pinch_delta and yaw are zero.

        Args:
            frame: Hands detected in the newest video frame

        Returns:
            Events derived from this frame, to be published by the caller
        """
        t_ms = frame.timestamp_ms
        dt_ms = 0.0 if self._last_ingest_ms is None else max(0.0, t_ms - self._last_ingest_ms)
        self._last_ingest_ms = t_ms

        if not frame.hands:
            self._snapshot = GestureSnapshot(timestamp=t_ms)
            self._finger_state = IDLE_FINGER_STATE
            self._features = ContinuousFeatures()
            self.state_machine.reset()
            self._reset_trackers()
            return []

        features, finger_state = self.classifier.recognize(frame)
        self._features = features
        self._finger_state = finger_state
        pinch = self.filter.filter_pinch(features.pinch_strength, t_ms / 1000.0)

        if self.cfg.engine.control_scheme == "continuous":
            self._snapshot = self._continuous_snapshot(frame, pinch, dt_ms)
            return []

        snapshot, events = self._finger_snapshot(frame, finger_state, pinch, dt_ms)
        self._snapshot = snapshot
        return events

    def calibrate_neutral(self, frame: LandmarkFrame) -> bool:
        """
        Capture the current palm pose as neutral.

        Args:
            frame: The most recent raw landmark frame

        Returns:
            False (and nothing changes) if no usable hand is present
        """
        if not frame.hands:
            logger.info("Calibration skipped: no hand detected")
            return False

        hand = frame.primary
        baseline = hand_scale(hand)
        if baseline <= 0:
            logger.info("Calibration skipped: degenerate hand landmarks")
            return False

        orientation = palm_orientation(hand)
        self._calibration = CalibrationData(
            neutral_yaw=orientation["yaw"],
            neutral_pitch=orientation["pitch"],
            neutral_roll=orientation["roll"],
            hand_baseline=baseline,
        )
        self.classifier.set_hand_scale(baseline)

        self.filter.reset()
        self.state_machine.reset()
        self._reset_trackers()

        logger.info("Neutral pose calibrated: %s", self._calibration)
        return True

    def get_calibration(self) -> CalibrationData:
        return replace(self._calibration)

    def set_calibration(self, calibration: CalibrationData) -> None:
        if calibration.hand_baseline <= 0:
            raise ValueError(f"hand_baseline must be positive, got {calibration.hand_baseline}")
        self._calibration = replace(calibration)
        self.classifier.set_hand_scale(calibration.hand_baseline)

    def _finger_snapshot(self, frame: LandmarkFrame, finger_state: FingerGestureState,
                         pinch: float, dt_ms: float) -> Tuple[GestureSnapshot, List[GestureEvent]]:
        engine_cfg = self.cfg.engine
        t_ms = frame.timestamp_ms
        events: List[GestureEvent] = []

        wanted = GestureMode.IDLE
        pinch_delta = 0.0
        yaw = 0.0
        gesture = finger_state.gesture
        acted = finger_state.confidence > engine_cfg.confidence_threshold

        if acted and gesture == FingerGesture.OPEN_PALM:
            wanted, pinch_delta = GestureMode.ZOOM, -engine_cfg.zoom_delta
        elif acted and gesture == FingerGesture.CLOSED_FIST:
            wanted, pinch_delta = GestureMode.ZOOM, engine_cfg.zoom_delta
        elif acted and gesture == FingerGesture.ONE_FINGER:
            wanted, yaw = GestureMode.ORBIT, self._slide_yaw(frame.primary[INDEX_TIP].x, t_ms)
        elif acted and gesture == FingerGesture.TWO_FINGERS:
            # Not a camera gesture: toggles an external listening mode.
            if self._last_toggle_ms is None or t_ms - self._last_toggle_ms > engine_cfg.toggle_cooldown_ms:
                self._last_toggle_ms = t_ms
                events.append(GestureEvent(name=LISTEN_TOGGLE, timestamp_ms=t_ms))
                logger.info("Two fingers: %s", LISTEN_TOGGLE)

        if wanted != GestureMode.ORBIT:
            self._last_tip_x = None
            self._last_tip_ms = None

        mode = self.state_machine.update(
            1.0 if wanted == GestureMode.ZOOM else 0.0,
            wanted == GestureMode.ORBIT,
            dt_ms,
        )
        # Deltas only flow once the debounced mode agrees with the gesture.
        if mode != wanted:
            pinch_delta = 0.0
            yaw = 0.0

        snapshot = GestureSnapshot(
            timestamp=t_ms,
            mode=mode,
            pinch=pinch,
            pinch_delta=pinch_delta,
            yaw=yaw,
            pitch=0.0,
            roll=0.0,
            hand_count=frame.hand_count,
            quality=finger_state.confidence,
        )
        return snapshot, events

    def _slide_yaw(self, tip_x: float, t_ms: float) -> float:
        """Yaw rate (rad/s) from the index fingertip's horizontal velocity."""
        yaw = 0.0
        if self._last_tip_x is not None and self._last_tip_ms is not None:
            dt = max(MIN_SLIDE_DT_S, (t_ms - self._last_tip_ms) / 1000.0)
            vx = (tip_x - self._last_tip_x) / dt
            max_rate = self.cfg.engine.max_yaw_rate
            yaw = _clamp(vx * self.cfg.engine.slide_gain, -max_rate, max_rate)
        self._last_tip_x = tip_x
        self._last_tip_ms = t_ms
        return yaw

    def _continuous_snapshot(self, frame: LandmarkFrame, pinch: float, dt_ms: float) -> GestureSnapshot:
        engine_cfg = self.cfg.engine
        t_s = frame.timestamp_ms / 1000.0

        orientation = palm_orientation(frame.primary)
        yaw, pitch, roll = self.filter.filter_orientation(
            _wrap_angle(orientation["yaw"] - self._calibration.neutral_yaw),
            _wrap_angle(orientation["pitch"] - self._calibration.neutral_pitch),
            _wrap_angle(orientation["roll"] - self._calibration.neutral_roll),
            t_s,
        )
        yaw, pitch = self._limit_orientation_rate(yaw, pitch, dt_ms / 1000.0)

        threshold = engine_cfg.palm_exit_threshold if self._palm_active else engine_cfg.palm_active_threshold
        self._palm_active = max(abs(yaw), abs(pitch)) > threshold

        mode = self.state_machine.update(pinch, self._palm_active, dt_ms)
        return GestureSnapshot(
            timestamp=frame.timestamp_ms,
            mode=mode,
            pinch=pinch,
            pinch_delta=(pinch - 0.5) * 2 if mode == GestureMode.ZOOM else 0.0,
            yaw=yaw if mode == GestureMode.ORBIT else 0.0,
            pitch=pitch if mode == GestureMode.ORBIT else 0.0,
            roll=roll,
            hand_count=frame.hand_count,
            quality=min(1.0, frame.hand_count * HAND_QUALITY_WEIGHT),
        )

    def _limit_orientation_rate(self, yaw: float, pitch: float, dt_s: float) -> Tuple[float, float]:
        if self._last_orientation is not None and dt_s > 0:
            max_step = self.cfg.engine.max_velocity_clamp * dt_s
            prev_yaw, prev_pitch = self._last_orientation
            yaw = prev_yaw + _clamp(yaw - prev_yaw, -max_step, max_step)
            pitch = prev_pitch + _clamp(pitch - prev_pitch, -max_step, max_step)
        self._last_orientation = (yaw, pitch)
        return yaw, pitch

    def _reset_trackers(self) -> None:
        self._last_tip_x = None
        self._last_tip_ms = None
        self._last_orientation = None
        self._palm_active = False
