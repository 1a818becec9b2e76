"""
Test cases for the gesture engine with synthetic landmark streams.
"""
import dataclasses
import math
import unittest

from handorbit.config import Cfg, EngineConfig
from handorbit.engine import GestureEngine
from handorbit.events import LISTEN_TOGGLE
from handorbit.types import (
    CalibrationData,
    FingerGesture,
    GestureMode,
    GestureSnapshot,
    LandmarkFrame,
)

from tests import hands


class EngineTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = GestureEngine()

    def stream(self, points, n, t0=0.0, dt=16.0):
        """Ingest n frames of the same hand; returns all emitted events."""
        events = []
        for i in range(n):
            events.extend(self.engine.ingest(hands.frame(t0 + i * dt, points)))
        return events


class TestIdle(EngineTestCase):
    """Test the canonical idle snapshot."""

    def test_initial_snapshot(self):
        snapshot = self.engine.read()
        self.assertEqual(snapshot.mode, GestureMode.IDLE)
        self.assertEqual(snapshot.hand_count, 0)

    def test_no_hands(self):
        self.stream(hands.fist(), 8)
        events = self.engine.ingest(LandmarkFrame.empty(500.0))

        self.assertEqual(events, [])
        self.assertEqual(self.engine.read(), GestureSnapshot(timestamp=500.0))
        self.assertFalse(self.engine.last_finger_gesture.hand_visible)
        self.assertEqual(self.engine.state_machine.mode, GestureMode.IDLE)

    def test_unknown_gesture_is_idle(self):
        self.stream(hands.three_fingers(), 10)
        snapshot = self.engine.read()

        self.assertEqual(self.engine.last_finger_gesture.gesture, FingerGesture.UNKNOWN)
        self.assertEqual(snapshot.mode, GestureMode.IDLE)
        self.assertEqual((snapshot.pinch_delta, snapshot.yaw, snapshot.pitch), (0.0, 0.0, 0.0))

    def test_low_confidence_is_ignored(self):
        """A gesture at 50% confidence is not acted on."""
        self.engine.ingest(hands.frame(0, hands.fist()))
        self.engine.ingest(hands.frame(16, hands.open_palm()))
        snapshot = self.engine.read()

        self.assertEqual(self.engine.last_finger_gesture.confidence, 0.5)
        self.assertEqual(snapshot.mode, GestureMode.IDLE)
        self.assertEqual(snapshot.pinch_delta, 0.0)


class TestZoomGestures(EngineTestCase):
    """Test fist / open palm zoom mapping."""

    def test_closed_fist_zooms_in(self):
        self.stream(hands.fist(), 8)
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.ZOOM)
        self.assertEqual(snapshot.pinch_delta, 0.8)
        self.assertEqual(snapshot.hand_count, 1)
        self.assertEqual(snapshot.quality, 1.0)
        self.assertEqual(snapshot.timestamp, 112.0)

    def test_open_palm_zooms_out(self):
        self.stream(hands.open_palm(), 8)
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.ZOOM)
        self.assertEqual(snapshot.pinch_delta, -0.8)

    def test_mode_waits_for_enter_delay(self):
        """The first frames of a new gesture do not move the camera yet."""
        self.stream(hands.fist(), 3)
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.IDLE)
        self.assertEqual(snapshot.pinch_delta, 0.0)

    def test_mode_lags_gesture_on_exit(self):
        """After the fist turns unknown, Zoom is held for the exit delay with zero deltas."""
        self.stream(hands.fist(), 8)

        lagging = 0
        for i in range(20):
            self.engine.ingest(hands.frame(128.0 + i * 16.0, hands.three_fingers()))
            snapshot = self.engine.read()
            if self.engine.last_finger_gesture.gesture == FingerGesture.UNKNOWN:
                self.assertEqual(snapshot.pinch_delta, 0.0)
                if snapshot.mode == GestureMode.ZOOM:
                    lagging += 1

        self.assertGreater(lagging, 0)
        self.assertEqual(self.engine.read().mode, GestureMode.IDLE)

    def test_two_hands_reported(self):
        for i in range(8):
            self.engine.ingest(hands.frame(i * 16, hands.fist(), hands.open_palm()))
        snapshot = self.engine.read()

        self.assertEqual(snapshot.hand_count, 2)
        self.assertEqual(snapshot.pinch_delta, 0.8)


class TestOneFingerSlide(EngineTestCase):
    """Test fingertip velocity to yaw mapping."""

    def test_slide_scenario(self):
        """0.40 -> 0.45 over 100 ms at gain 2.0 gives 1 rad/s."""
        self.engine.ingest(hands.one_finger_at(0.40, 0.0))
        self.engine.ingest(hands.one_finger_at(0.45, 100.0))
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.ORBIT)
        self.assertAlmostEqual(snapshot.yaw, 1.0)
        self.assertEqual(snapshot.pinch_delta, 0.0)

    def test_slide_left_is_negative(self):
        self.engine.ingest(hands.one_finger_at(0.50, 0.0))
        self.engine.ingest(hands.one_finger_at(0.48, 100.0))
        self.assertAlmostEqual(self.engine.read().yaw, -0.4)

    def test_yaw_is_capped(self):
        self.engine.ingest(hands.one_finger_at(0.10, 0.0))
        self.engine.ingest(hands.one_finger_at(0.90, 100.0))
        self.assertAlmostEqual(self.engine.read().yaw, math.pi)

    def test_tracker_resets_on_other_gestures(self):
        self.stream(hands.one_finger(), 3)
        self.assertIsNotNone(self.engine._last_tip_x)

        # Fist becomes the stable gesture after enough frames
        self.stream(hands.fist(), 8, t0=100.0)
        self.assertIsNone(self.engine._last_tip_x)

    def test_tracker_resets_on_hand_loss(self):
        self.engine.ingest(hands.one_finger_at(0.40, 0.0))
        self.engine.ingest(hands.one_finger_at(0.45, 100.0))
        self.engine.ingest(LandmarkFrame.empty(133.0))
        self.assertIsNone(self.engine._last_tip_x)

        # The first frame after the loss has no velocity to report
        self.engine.ingest(hands.one_finger_at(0.90, 166.0))
        self.assertEqual(self.engine.read().yaw, 0.0)


class TestTwoFingersToggle(EngineTestCase):
    """Test the debounced listen-toggle event."""

    def test_emits_event_without_camera_motion(self):
        events = self.engine.ingest(hands.frame(0.0, hands.two_fingers()))
        snapshot = self.engine.read()

        self.assertEqual([e.name for e in events], [LISTEN_TOGGLE])
        self.assertEqual(events[0].timestamp_ms, 0.0)
        self.assertEqual(snapshot.mode, GestureMode.IDLE)
        self.assertEqual((snapshot.pinch_delta, snapshot.yaw), (0.0, 0.0))

    def test_debounce_within_cooldown(self):
        events = self.engine.ingest(hands.frame(0.0, hands.two_fingers()))
        events += self.engine.ingest(hands.frame(500.0, hands.two_fingers()))
        self.assertEqual(len(events), 1)

    def test_fires_again_after_cooldown(self):
        events = self.engine.ingest(hands.frame(0.0, hands.two_fingers()))
        events += self.engine.ingest(hands.frame(1300.0, hands.two_fingers()))
        self.assertEqual(len(events), 2)

    def test_continuous_hold_toggles_once_per_cooldown(self):
        events = self.stream(hands.two_fingers(), 75, dt=33.0)  # ~2.5 s
        self.assertEqual(len(events), 3)


class TestCalibration(EngineTestCase):
    """Test neutral pose calibration."""

    def test_requires_hand(self):
        before = self.engine.get_calibration()
        self.assertFalse(self.engine.calibrate_neutral(LandmarkFrame.empty(0.0)))
        self.assertEqual(self.engine.get_calibration(), before)

    def test_success_resets_filter_and_state_machine(self):
        self.stream(hands.fist(), 8)
        self.assertEqual(self.engine.state_machine.mode, GestureMode.ZOOM)

        self.assertTrue(self.engine.calibrate_neutral(hands.frame(200.0, hands.open_palm())))

        self.assertEqual(self.engine.state_machine.mode, GestureMode.IDLE)
        self.assertEqual(self.engine.filter.filter_pinch(0.37, 999.0), 0.37)
        self.assertEqual(self.engine.filter.filter_orientation(0.1, 0.2, 0.3, 999.0), (0.1, 0.2, 0.3))

    def test_values(self):
        self.engine.calibrate_neutral(hands.frame(0.0, hands.open_palm()))
        calibration = self.engine.get_calibration()

        # Index MCP (0.44, 0.60) to pinky MCP (0.58, 0.62)
        self.assertAlmostEqual(calibration.neutral_yaw, math.atan2(0.02, 0.14))
        self.assertAlmostEqual(calibration.neutral_pitch, 0.0)
        self.assertAlmostEqual(calibration.hand_baseline, math.hypot(0.06, 0.20))
        self.assertAlmostEqual(self.engine.classifier.hand_scale, calibration.hand_baseline)

    def test_get_calibration_returns_copy(self):
        calibration = self.engine.get_calibration()
        calibration.neutral_yaw = 99.0
        self.assertEqual(self.engine.get_calibration().neutral_yaw, 0.0)

    def test_set_calibration(self):
        self.engine.set_calibration(CalibrationData(0.1, 0.2, 0.3, 0.25))
        self.assertEqual(self.engine.get_calibration(), CalibrationData(0.1, 0.2, 0.3, 0.25))
        self.assertEqual(self.engine.classifier.hand_scale, 0.25)

        with self.assertRaises(ValueError):
            self.engine.set_calibration(CalibrationData(hand_baseline=0.0))


class TestSnapshot(EngineTestCase):
    """Test snapshot immutability and replacement."""

    def test_snapshot_is_frozen(self):
        snapshot = self.engine.read()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            snapshot.mode = GestureMode.ZOOM

    def test_ingest_replaces_snapshot(self):
        self.engine.ingest(hands.frame(0.0, hands.fist()))
        first = self.engine.read()
        self.assertIs(self.engine.read(), first)

        self.engine.ingest(hands.frame(16.0, hands.fist()))
        self.assertIsNot(self.engine.read(), first)
        self.assertEqual(first.timestamp, 0.0)


class TestContinuousScheme(unittest.TestCase):
    """Test the pinch / palm orientation control scheme."""

    def setUp(self):
        self.engine = GestureEngine(Cfg(engine=EngineConfig(control_scheme="continuous")))

    def test_pinch_zooms(self):
        for i in range(8):
            self.engine.ingest(hands.frame(i * 16.0, hands.pinching()))
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.ZOOM)
        self.assertAlmostEqual(snapshot.pinch, 1.0)
        self.assertAlmostEqual(snapshot.pinch_delta, 1.0)
        self.assertAlmostEqual(snapshot.quality, 0.7)

    def test_neutral_palm_is_idle(self):
        self.engine.calibrate_neutral(hands.frame(0.0, hands.open_palm()))
        for i in range(10):
            self.engine.ingest(hands.frame(i * 16.0, hands.open_palm()))
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.IDLE)
        self.assertAlmostEqual(snapshot.yaw, 0.0)

    def test_rotated_palm_orbits(self):
        self.engine.calibrate_neutral(hands.frame(0.0, hands.open_palm()))
        for i in range(10):
            self.engine.ingest(hands.frame(i * 16.0, hands.open_palm(rotate=0.35)))
        snapshot = self.engine.read()

        self.assertEqual(snapshot.mode, GestureMode.ORBIT)
        self.assertGreater(abs(snapshot.yaw), 0.08)
        self.assertEqual(snapshot.pinch_delta, 0.0)


if __name__ == '__main__':
    unittest.main()
