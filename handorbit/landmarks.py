"""
Hand landmark indices and geometry helpers.
"""
import math
from typing import Dict, Tuple

import numpy as np

from .types import Hand, Landmark

WRIST = 0
THUMB_MCP = 2
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_TIP = 8
MIDDLE_MCP = 9
PINKY_MCP = 17

# (tip, pip, mcp) per digit, thumb first. The thumb "pip" is its IP joint.
FINGERS: Tuple[Tuple[int, int, int], ...] = (
    (4, 3, 2),
    (8, 6, 5),
    (12, 10, 9),
    (16, 14, 13),
    (20, 18, 17),
)

THUMB_EXTENSION_RATIO = 1.2
CURL_COS_THRESHOLD = 0.5
TIP_HEIGHT_TOLERANCE = 1.05
TIP_ABOVE_PIP_RATIO = 0.3


def distance_2d(a: Landmark, b: Landmark) -> float:
    """Euclidean distance in the image plane."""
    return math.hypot(a.x - b.x, a.y - b.y)


def as_vector(lm: Landmark) -> np.ndarray:
    return np.array([lm.x, lm.y, lm.z], dtype=float)


def hand_scale(hand: Hand) -> float:
    """Intrinsic hand size: wrist to index MCP distance in the image plane."""
    return distance_2d(hand[WRIST], hand[INDEX_MCP])


def palm_center(hand: Hand) -> Tuple[float, float]:
    """
    Calculate the center of the palm.

    Args:
        hand: 21 hand landmarks

    Returns:
        (x, y) midpoint between the index and pinky MCP joints
    """
    index_mcp, pinky_mcp = hand[INDEX_MCP], hand[PINKY_MCP]
    return ((index_mcp.x + pinky_mcp.x) / 2, (index_mcp.y + pinky_mcp.y) / 2)


def thumb_extended(hand: Hand) -> bool:
    """Thumb tip clearly farther from the palm center than the thumb MCP."""
    cx, cy = palm_center(hand)
    tip, mcp = hand[THUMB_TIP], hand[THUMB_MCP]
    tip_to_palm = math.hypot(tip.x - cx, tip.y - cy)
    mcp_to_palm = math.hypot(mcp.x - cx, mcp.y - cy)
    return tip_to_palm > mcp_to_palm * THUMB_EXTENSION_RATIO


def finger_extended(hand: Hand, tip_idx: int, pip_idx: int, mcp_idx: int) -> bool:
    """
    Curl test for index, middle, ring and pinky.

    A finger is extended when its MCP->PIP and PIP->TIP segments are close to
    straight and the tip is above the MCP, or when the tip clearly rises above
    the PIP joint.
    """
    tip, pip, mcp = hand[tip_idx], hand[pip_idx], hand[mcp_idx]

    mcp_to_pip = (pip.x - mcp.x, pip.y - mcp.y)
    pip_to_tip = (tip.x - pip.x, tip.y - pip.y)
    len_a = math.hypot(*mcp_to_pip)
    len_b = math.hypot(*pip_to_tip)

    if len_a > 0 and len_b > 0:
        cos_angle = (mcp_to_pip[0] * pip_to_tip[0] + mcp_to_pip[1] * pip_to_tip[1]) / (len_a * len_b)
        if cos_angle > CURL_COS_THRESHOLD and tip.y < mcp.y * TIP_HEIGHT_TOLERANCE:
            return True

    return (pip.y - tip.y) > abs(pip.y - mcp.y) * TIP_ABOVE_PIP_RATIO


def fingers_extended(hand: Hand) -> int:
    """
    Count the number of extended fingers.

    Args:
        hand: 21 hand landmarks

    Returns:
        Number of extended fingers (0-5)
    """
    count = 1 if thumb_extended(hand) else 0
    for tip_idx, pip_idx, mcp_idx in FINGERS[1:]:
        if finger_extended(hand, tip_idx, pip_idx, mcp_idx):
            count += 1
    return count


def _unit(v: np.ndarray) -> np.ndarray:
    length = np.linalg.norm(v)
    if length == 0:
        return np.zeros(3)
    return v / length


def palm_orientation(hand: Hand) -> Dict[str, float]:
    """
    Estimate palm yaw, pitch and roll (radians) from the palm frame.

    The x axis runs from index MCP to pinky MCP, the y axis from wrist to
    middle MCP, and the palm normal is their cross product.
    """
    wrist = as_vector(hand[WRIST])
    x_palm = _unit(as_vector(hand[PINKY_MCP]) - as_vector(hand[INDEX_MCP]))
    y_palm = _unit(as_vector(hand[MIDDLE_MCP]) - wrist)
    z_palm = _unit(np.cross(x_palm, y_palm))

    yaw = math.atan2(x_palm[1], x_palm[0])
    pitch = math.asin(float(np.clip(-y_palm[2], -1.0, 1.0)))
    roll = math.atan2(z_palm[1], z_palm[2])
    return {"yaw": yaw, "pitch": pitch, "roll": roll}
