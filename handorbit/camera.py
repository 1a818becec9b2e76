"""
Camera mapping: applies gesture snapshots to an orbit camera.
"""
import logging
import math
import time
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .config import MapperConfig
from .types import GestureMode, GestureSnapshot, OrbitCameraProto

logger = logging.getLogger(__name__)

MIN_ZOOM_DELTA = 0.01
MIN_SENSITIVITY = 0.1
MAX_SENSITIVITY = 5.0


def to_spherical(offset: Sequence[float]) -> Tuple[float, float, float]:
    """
    Convert a y-up offset vector to (radius, theta, phi).

    theta is the azimuth around the y axis measured from +z, phi the polar
    angle from +y.
    """
    x, y, z = (float(v) for v in offset)
    radius = math.sqrt(x * x + y * y + z * z)
    if radius == 0:
        return 0.0, 0.0, 0.0
    theta = math.atan2(x, z)
    phi = math.acos(max(-1.0, min(1.0, y / radius)))
    return radius, theta, phi


def from_spherical(radius: float, theta: float, phi: float) -> np.ndarray:
    sin_phi = math.sin(phi)
    return np.array([
        radius * sin_phi * math.sin(theta),
        radius * math.cos(phi),
        radius * sin_phi * math.cos(theta),
    ])


class OrbitCamera:
    """
    Minimal orbit camera: a position orbiting a target within distance bounds.

    Used by the demo app and tests; a renderer's own orbit controls can be
    used instead as long as they satisfy OrbitCameraProto.
    """

    def __init__(self, position: Sequence[float] = (0.0, 0.0, 10.0),
                 target: Sequence[float] = (0.0, 0.0, 0.0),
                 min_distance: float = 1.0, max_distance: float = 100.0):
        if not 0 < min_distance <= max_distance:
            raise ValueError("distance bounds must satisfy 0 < min_distance <= max_distance")
        self.position = np.array(position, dtype=float)
        self.target = np.array(target, dtype=float)
        self.min_distance = float(min_distance)
        self.max_distance = float(max_distance)
        self.update_count = 0

    def get_distance(self) -> float:
        return float(np.linalg.norm(self.position - self.target))

    def set_distance(self, distance: float) -> None:
        offset = self.get_offset()
        length = np.linalg.norm(offset)
        direction = offset / length if length > 0 else np.array([0.0, 0.0, 1.0])
        self.position = self.target + direction * distance

    def get_offset(self) -> np.ndarray:
        return self.position - self.target

    def set_offset(self, offset: Sequence[float]) -> None:
        self.position = self.target + np.asarray(offset, dtype=float)

    def update(self) -> None:
        self.update_count += 1


class CameraMapper:
    """
    Applies zoom and orbit deltas from gesture snapshots to an orbit camera.

    Features:
    - Frame-time normalized deltas
    - Per-frame caps on zoom scale and rotation step
    - Pointer input always wins within a trailing arbitration window
    - Only the camera's public distance/offset accessors are used
    """

    def __init__(self, camera: OrbitCameraProto, cfg: Optional[MapperConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the mapper.

        Args:
            camera: Externally owned orbit camera
            cfg: Gains and rate limits
            clock: Monotonic clock in seconds, used for pointer arbitration
        """
        self.camera = camera
        self.cfg = cfg or MapperConfig()
        self.clock = clock
        self.enabled = True

        self.zoom_gain = self.cfg.zoom_gain
        self.yaw_gain = self.cfg.yaw_gain
        self.pitch_gain = self.cfg.pitch_gain

        self._last_pointer_s: Optional[float] = None
        self.last_zoom_scale = 1.0
        self.last_rotation: Tuple[float, float] = (0.0, 0.0)

    def apply(self, snapshot: GestureSnapshot, dt: float) -> None:
        """
        Apply one snapshot to the camera.

        Args:
            snapshot: Latest gesture snapshot
            dt: Seconds since the previous rendered frame
        """
        self.last_zoom_scale = 1.0
        self.last_rotation = (0.0, 0.0)

        if not self.enabled or not self.accepting_gestures() or dt <= 0:
            return

        if snapshot.mode == GestureMode.ZOOM:
            self._apply_zoom(snapshot, dt)
        elif snapshot.mode == GestureMode.ORBIT:
            self._apply_rotation(snapshot, dt)

        self.camera.update()

    def _apply_zoom(self, snapshot: GestureSnapshot, dt: float) -> None:
        if abs(snapshot.pinch_delta) < MIN_ZOOM_DELTA:
            return

        limit = self.cfg.max_zoom_delta
        scaled = max(-limit, min(limit, snapshot.pinch_delta * self.zoom_gain * dt))
        scale = min(self.cfg.max_zoom_scale_per_frame, 1 + abs(scaled))

        distance = self.camera.get_distance()
        # Positive delta zooms in (closer to the target)
        distance = distance / scale if scaled > 0 else distance * scale
        distance = max(self.camera.min_distance, min(self.camera.max_distance, distance))

        self.camera.set_distance(distance)
        self.last_zoom_scale = scale

    def _apply_rotation(self, snapshot: GestureSnapshot, dt: float) -> None:
        step = self.cfg.max_rotation_per_frame
        rate_scale = self.cfg.rotation_rate_scale
        yaw = max(-step, min(step, snapshot.yaw * self.yaw_gain * dt * rate_scale))
        pitch = max(-step, min(step, snapshot.pitch * self.pitch_gain * dt * rate_scale))
        if yaw == 0 and pitch == 0:
            return

        radius, theta, phi = to_spherical(self.camera.get_offset())
        if radius == 0:
            return

        eps = self.cfg.polar_epsilon
        theta += yaw
        phi = max(eps, min(math.pi - eps, phi + pitch))

        self.camera.set_offset(from_spherical(radius, theta, phi))
        self.last_rotation = (yaw, pitch)

    def notify_pointer_activity(self) -> None:
        """Record a pointer, touch or wheel event; gestures pause for the priority window."""
        self._last_pointer_s = self.clock()

    def pause(self, duration_ms: float = 1000.0) -> None:
        """Ignore gestures for duration_ms from now."""
        window_s = self.cfg.pointer_priority_window_ms / 1000.0
        self._last_pointer_s = self.clock() + duration_ms / 1000.0 - window_s

    def accepting_gestures(self) -> bool:
        if self._last_pointer_s is None:
            return True
        elapsed_ms = (self.clock() - self._last_pointer_s) * 1000.0
        return elapsed_ms > self.cfg.pointer_priority_window_ms

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        logger.info("Hand gesture controls %s", "enabled" if enabled else "disabled")

    def set_sensitivity(self, zoom: Optional[float] = None, yaw: Optional[float] = None,
                        pitch: Optional[float] = None) -> None:
        if zoom is not None:
            self.zoom_gain = max(MIN_SENSITIVITY, min(MAX_SENSITIVITY, zoom))
        if yaw is not None:
            self.yaw_gain = max(MIN_SENSITIVITY, min(MAX_SENSITIVITY, yaw))
        if pitch is not None:
            self.pitch_gain = max(MIN_SENSITIVITY, min(MAX_SENSITIVITY, pitch))
        logger.info("Sensitivity: %s", self.get_sensitivity())

    def get_sensitivity(self) -> Dict[str, float]:
        return {"zoom": self.zoom_gain, "yaw": self.yaw_gain, "pitch": self.pitch_gain}

    def debug_info(self) -> Dict[str, object]:
        return {
            "enabled": self.enabled,
            "accepting_gestures": self.accepting_gestures(),
            "sensitivity": self.get_sensitivity(),
            "distance": self.camera.get_distance(),
            "min_distance": self.camera.min_distance,
            "max_distance": self.camera.max_distance,
            "target": list(np.asarray(self.camera.target, dtype=float)),
        }
