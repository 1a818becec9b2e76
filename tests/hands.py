"""
Synthetic hand landmarks for tests.

Hands are upright in image coordinates (y grows downward): wrist at the
bottom, fingers pointing up. Each digit is either extended or curled.
"""
import math
from typing import List, Optional, Sequence, Tuple

from handorbit.types import LandmarkFrame

Point = Tuple[float, float, float]

WRIST = (0.50, 0.80)
THUMB_CMC = (0.44, 0.75)
THUMB_MCP = (0.40, 0.70)
THUMB_OUT = ((0.35, 0.66), (0.30, 0.62))
THUMB_TUCKED = ((0.43, 0.66), (0.48, 0.64))

# MCP joints of index, middle, ring, pinky
FINGER_MCPS = ((0.44, 0.60), (0.49, 0.58), (0.54, 0.60), (0.58, 0.62))
# (pip, dip, tip) y offsets from the MCP
EXTENDED = (-0.08, -0.13, -0.17)
CURLED = (-0.05, -0.02, 0.02)


def make_hand(thumb: bool = False, index: bool = False, middle: bool = False,
              ring: bool = False, pinky: bool = False, shift_x: float = 0.0,
              thumb_tip: Optional[Tuple[float, float]] = None,
              rotate: float = 0.0) -> List[Point]:
    """
    Build 21 landmarks.

    Args:
        thumb..pinky: Which digits are extended
        shift_x: Horizontal offset applied to every landmark
        thumb_tip: Override the thumb tip position (before shift/rotation)
        rotate: In-plane rotation (radians) around the wrist
    """
    points: List[Tuple[float, float]] = [WRIST, THUMB_CMC, THUMB_MCP]
    points.extend(THUMB_OUT if thumb else THUMB_TUCKED)
    if thumb_tip is not None:
        points[4] = thumb_tip

    for (mx, my), extended in zip(FINGER_MCPS, (index, middle, ring, pinky)):
        points.append((mx, my))
        for dy in (EXTENDED if extended else CURLED):
            points.append((mx, my + dy))

    if rotate:
        cos_a, sin_a = math.cos(rotate), math.sin(rotate)
        wx, wy = WRIST
        points = [
            (wx + (x - wx) * cos_a - (y - wy) * sin_a, wy + (x - wx) * sin_a + (y - wy) * cos_a)
            for x, y in points
        ]

    return [(x + shift_x, y, 0.0) for x, y in points]


def fist(**kwargs) -> List[Point]:
    return make_hand(**kwargs)


def open_palm(**kwargs) -> List[Point]:
    return make_hand(thumb=True, index=True, middle=True, ring=True, pinky=True, **kwargs)


def one_finger(**kwargs) -> List[Point]:
    return make_hand(index=True, **kwargs)


def two_fingers(**kwargs) -> List[Point]:
    return make_hand(index=True, middle=True, **kwargs)


def three_fingers(**kwargs) -> List[Point]:
    return make_hand(index=True, middle=True, ring=True, **kwargs)


def pinching(**kwargs) -> List[Point]:
    """Open hand with the thumb tip resting on the index tip."""
    index_mcp_x, index_mcp_y = FINGER_MCPS[0]
    return open_palm(thumb_tip=(index_mcp_x, index_mcp_y + EXTENDED[2]), **kwargs)


def frame(t_ms: float, *hands: Sequence[Point]) -> LandmarkFrame:
    return LandmarkFrame.from_hands(hands, t_ms)


def one_finger_at(tip_x: float, t_ms: float) -> LandmarkFrame:
    """One-finger hand positioned so its index tip sits at tip_x."""
    return frame(t_ms, one_finger(shift_x=tip_x - FINGER_MCPS[0][0]))
