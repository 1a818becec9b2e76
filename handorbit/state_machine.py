"""
Interaction mode state machine with asymmetric hysteresis.
"""
import logging
import math
from typing import Optional

from .config import StateMachineConfig
from .types import GestureMode

logger = logging.getLogger(__name__)


class ModeStateMachine:
    """
    Debounces Idle / Zoom / Orbit transitions.

    A candidate mode must be observed continuously for the enter delay (when
    leaving Idle) or the exit delay (when leaving Zoom or Orbit) before it is
    committed, and no two transitions happen within the minimum mode duration.
    Time only advances through the dt passed to update().
    """

    def __init__(self, cfg: Optional[StateMachineConfig] = None):
        self.cfg = cfg or StateMachineConfig()
        if self.cfg.enter_delay_ms < 0 or self.cfg.exit_delay_ms < 0 or self.cfg.min_mode_duration_ms < 0:
            raise ValueError("state machine delays must be non-negative")
        self.reset()

    @property
    def mode(self) -> GestureMode:
        return self._mode

    def update(self, pinch: float, palm_active: bool, dt: float) -> GestureMode:
        """
        Advance the machine by one frame.

        Args:
            pinch: Filtered pinch strength (0..1)
            palm_active: Whether the palm is rotated far enough to orbit
            dt: Milliseconds since the previous update

        Returns:
            The current (possibly unchanged) mode
        """
        dt = max(0.0, dt)
        self._since_transition_ms += dt

        candidate = self._candidate(pinch, palm_active)
        if candidate == self._mode:
            self._pending = None
            self._pending_ms = 0.0
            return self._mode

        if candidate != self._pending:
            self._pending = candidate
            self._pending_ms = 0.0
        else:
            self._pending_ms += dt

        if self._since_transition_ms < self.cfg.min_mode_duration_ms:
            return self._mode

        required = self.cfg.enter_delay_ms if self._mode == GestureMode.IDLE else self.cfg.exit_delay_ms
        if self._pending_ms >= required:
            logger.debug("Mode %s -> %s after %.0f ms", self._mode.value, candidate.value, self._pending_ms)
            self._mode = candidate
            self._pending = None
            self._pending_ms = 0.0
            self._since_transition_ms = 0.0

        return self._mode

    def reset(self) -> None:
        """Force Idle and clear all timers."""
        self._mode = GestureMode.IDLE
        self._pending: Optional[GestureMode] = None
        self._pending_ms = 0.0
        self._since_transition_ms = math.inf

    def _candidate(self, pinch: float, palm_active: bool) -> GestureMode:
        # Priority: Zoom > Orbit > Idle
        if pinch > self.cfg.zoom_threshold:
            return GestureMode.ZOOM
        if palm_active:
            return GestureMode.ORBIT
        return GestureMode.IDLE
