"""
Demo application: webcam hand gestures driving a simulated orbit camera.
"""
import argparse
import logging
import math
import time
from typing import Optional

import cv2

from .camera import CameraMapper, OrbitCamera, to_spherical
from .config import load_config
from .engine import GestureEngine
from .events import LISTEN_TOGGLE, EventBus
from .tracker import HandsTracker
from .types import FingerGesture, FingerGestureState, LandmarkFrame

logger = logging.getLogger(__name__)

GESTURE_LABELS = {
    FingerGesture.OPEN_PALM: "Open palm - zoom out",
    FingerGesture.CLOSED_FIST: "Closed fist - zoom in",
    FingerGesture.ONE_FINGER: "One finger - slide to orbit",
    FingerGesture.TWO_FINGERS: "Two fingers - toggle listening",
    FingerGesture.UNKNOWN: "Show gesture to camera",
}


def describe_gesture(state: FingerGestureState) -> str:
    """Human readable status line for a finger gesture."""
    if not state.hand_visible:
        return "No hand detected"
    label = GESTURE_LABELS[state.gesture]
    return f"{label} ({state.confidence * 100:.0f}%) [{state.finger_count} fingers]"


class GestureCameraApp:
    """Main application class for gesture camera control."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.tracker = HandsTracker(self.config.mediapipe)
        self.engine = GestureEngine(self.config)
        self.orbit_camera = OrbitCamera(position=(0.0, 3.0, 12.0), min_distance=2.0, max_distance=60.0)
        self.mapper = CameraMapper(self.orbit_camera, self.config.mapper)

        self.events = EventBus()
        self.listening = False
        self.events.on(LISTEN_TOGGLE, self._toggle_listening)

        self.last_frame: Optional[LandmarkFrame] = None

        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    def _toggle_listening(self, payload) -> None:
        self.listening = not self.listening
        logger.info("Listening %s", "started" if self.listening else "stopped")

    def _on_mouse(self, event, x, y, flags, param) -> None:
        self.mapper.notify_pointer_activity()

    def calibrate(self) -> None:
        if self.last_frame is None or not self.engine.calibrate_neutral(self.last_frame):
            logger.warning("Calibration failed: show one hand to the camera and try again")

    def run(self) -> None:
        """Run the main application loop."""
        window = self.config.display.window_name
        cv2.namedWindow(window)
        cv2.setMouseCallback(window, self._on_mouse)

        logger.info("Starting %s", window)
        logger.info("Keys: c = calibrate, g = toggle gestures, q = quit")

        last_render = time.monotonic()
        while True:
            ret, frame = self.cap.read()
            if not ret:
                logger.error("Failed to read frame from camera")
                break

            now = time.monotonic()
            landmarks = self.tracker.process(frame, now * 1000.0)
            self.last_frame = landmarks
            self.events.publish(self.engine.ingest(landmarks))

            self.mapper.apply(self.engine.read(), now - last_render)
            last_render = now

            if landmarks.hands and self.config.display.show_landmarks:
                frame = self.tracker.draw_landmarks(frame, landmarks)
            self._draw_status(frame)

            cv2.imshow(window, frame)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            if key == ord('c'):
                self.calibrate()
            elif key == ord('g'):
                self.mapper.set_enabled(not self.mapper.enabled)

    def _draw_status(self, frame) -> None:
        snapshot = self.engine.read()
        radius, theta, phi = to_spherical(self.orbit_camera.get_offset())
        lines = [
            describe_gesture(self.engine.last_finger_gesture),
            f"Mode: {snapshot.mode.value}  zoom: {snapshot.pinch_delta:+.1f}  yaw: {snapshot.yaw:+.2f}",
            f"Camera: dist={radius:.2f} az={math.degrees(theta):.0f} polar={math.degrees(phi):.0f}",
            f"Gestures: {'on' if self.mapper.enabled else 'off'}  Listening: {'on' if self.listening else 'off'}",
        ]
        for i, text in enumerate(lines):
            cv2.putText(frame, text, (10, 30 + i * 25), cv2.FONT_HERSHEY_SIMPLEX, 0.55, (255, 255, 255), 1)
        cv2.putText(frame, "c: calibrate  g: gestures on/off  q: quit", (10, frame.shape[0] - 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

    def close(self) -> None:
        """Cleanup resources."""
        self.cap.release()
        self.tracker.close()
        cv2.destroyAllWindows()


def main(argv=None) -> None:
    """Entry point for the application."""
    parser = argparse.ArgumentParser(description="Control an orbit camera with hand gestures")
    parser.add_argument("--config", help="YAML config merged over the defaults")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    app = GestureCameraApp(config_path=args.config)
    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    finally:
        app.close()


if __name__ == "__main__":
    main()
