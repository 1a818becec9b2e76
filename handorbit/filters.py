"""
One Euro filter (Casiez et al., 2012) for gesture signals.

A low-pass filter whose cutoff rises with the estimated signal speed: slow
movements are smoothed heavily, fast movements pass through with little lag.
"""
import math
from typing import List, Optional, Sequence, Tuple

from .config import FiltersConfig, OneEuroConfig


def _smoothing_factor(dt: float, cutoff: float) -> float:
    tau = 1.0 / (2 * math.pi * cutoff)
    return 1.0 / (1.0 + tau / dt)


def _low_pass(x: float, x_prev: float, alpha: float) -> float:
    return alpha * x + (1 - alpha) * x_prev


class OneEuroFilter:
    """
    Speed-adaptive low-pass filter for a single scalar channel.

    Timestamps are in seconds.
    """

    def __init__(self, min_cutoff: float = 1.0, beta: float = 0.007, d_cutoff: float = 1.0):
        """
        Initialize the filter.

        Args:
            min_cutoff: Minimum cutoff frequency (Hz)
            beta: Speed coefficient; how much velocity widens the cutoff
            d_cutoff: Cutoff frequency (Hz) for the derivative signal
        """
        self.min_cutoff = 1.0
        self.beta = 0.007
        self.d_cutoff = 1.0
        self.set_params(min_cutoff, beta, d_cutoff)

        self.x_prev = 0.0
        self.dx_prev = 0.0
        self.t_prev = 0.0
        self.initialized = False

    @classmethod
    def from_config(cls, cfg: OneEuroConfig) -> "OneEuroFilter":
        return cls(cfg.min_cutoff, cfg.beta, cfg.d_cutoff)

    def filter(self, x: float, t: float) -> float:
        """
        Filter a new sample.

        Args:
            x: Raw input value
            t: Timestamp in seconds

        Returns:
            Filtered value. A sample whose timestamp does not advance returns
            the previous output and leaves the state untouched.
        """
        if not self.initialized:
            self.x_prev = x
            self.dx_prev = 0.0
            self.t_prev = t
            self.initialized = True
            return x

        dt = t - self.t_prev
        if dt <= 0:
            return self.x_prev

        dx = (x - self.x_prev) / dt
        dx_filtered = _low_pass(dx, self.dx_prev, _smoothing_factor(dt, self.d_cutoff))

        cutoff = self.min_cutoff + self.beta * abs(dx_filtered)
        x_filtered = _low_pass(x, self.x_prev, _smoothing_factor(dt, cutoff))

        self.x_prev = x_filtered
        self.dx_prev = dx_filtered
        self.t_prev = t
        return x_filtered

    def reset(self) -> None:
        """Forget all history; the next sample passes through unchanged."""
        self.initialized = False
        self.x_prev = 0.0
        self.dx_prev = 0.0
        self.t_prev = 0.0

    def set_params(self, min_cutoff: Optional[float] = None, beta: Optional[float] = None,
                   d_cutoff: Optional[float] = None) -> None:
        """Update any subset of the filter parameters."""
        if min_cutoff is not None:
            if min_cutoff <= 0:
                raise ValueError(f"min_cutoff must be positive, got {min_cutoff}")
            self.min_cutoff = float(min_cutoff)
        if beta is not None:
            if beta < 0:
                raise ValueError(f"beta must be non-negative, got {beta}")
            self.beta = float(beta)
        if d_cutoff is not None:
            if d_cutoff <= 0:
                raise ValueError(f"d_cutoff must be positive, got {d_cutoff}")
            self.d_cutoff = float(d_cutoff)


class OneEuroFilterVector:
    """Independent One Euro filters, one per dimension."""

    def __init__(self, dimensions: int, min_cutoff: float = 1.0, beta: float = 0.007,
                 d_cutoff: float = 1.0):
        if dimensions < 1:
            raise ValueError(f"dimensions must be at least 1, got {dimensions}")
        self.filters = [OneEuroFilter(min_cutoff, beta, d_cutoff) for _ in range(dimensions)]

    def filter(self, values: Sequence[float], t: float) -> List[float]:
        if len(values) != len(self.filters):
            raise ValueError(f"Expected {len(self.filters)} values, got {len(values)}")
        return [f.filter(v, t) for f, v in zip(self.filters, values)]

    def reset(self) -> None:
        for f in self.filters:
            f.reset()

    def set_params(self, min_cutoff: Optional[float] = None, beta: Optional[float] = None,
                   d_cutoff: Optional[float] = None) -> None:
        for f in self.filters:
            f.set_params(min_cutoff, beta, d_cutoff)


class GestureFilter:
    """
    Named filter channels for the gesture engine.

    Pinch uses a low beta for stable zoom; orientation (yaw, pitch, roll) uses
    a lower minimum cutoff for responsive rotation.
    """

    def __init__(self, cfg: Optional[FiltersConfig] = None):
        cfg = cfg or FiltersConfig()
        self.pinch_filter = OneEuroFilter.from_config(cfg.pinch)
        self.orientation_filter = OneEuroFilterVector(
            3, cfg.orientation.min_cutoff, cfg.orientation.beta, cfg.orientation.d_cutoff
        )

    def filter_pinch(self, pinch: float, t: float) -> float:
        return self.pinch_filter.filter(pinch, t)

    def filter_orientation(self, yaw: float, pitch: float, roll: float,
                           t: float) -> Tuple[float, float, float]:
        f_yaw, f_pitch, f_roll = self.orientation_filter.filter((yaw, pitch, roll), t)
        return f_yaw, f_pitch, f_roll

    def reset(self) -> None:
        self.pinch_filter.reset()
        self.orientation_filter.reset()

    def set_pinch_params(self, min_cutoff: Optional[float] = None,
                         beta: Optional[float] = None) -> None:
        self.pinch_filter.set_params(min_cutoff, beta)

    def set_orientation_params(self, min_cutoff: Optional[float] = None,
                               beta: Optional[float] = None) -> None:
        self.orientation_filter.set_params(min_cutoff, beta)
