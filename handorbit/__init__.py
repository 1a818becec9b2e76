"""
Hand Gesture Camera Control

Turns a stream of hand-landmark detections into smooth, bounded orbit-camera
motion: One-Euro filtering, finger gesture classification, debounced
interaction modes and rate-limited camera mapping.
"""

__version__ = "0.1.0"

from .types import (
    CalibrationData,
    ContinuousFeatures,
    FingerGesture,
    FingerGestureState,
    GestureEvent,
    GestureMode,
    GestureSnapshot,
    Landmark,
    LandmarkFrame,
    OrbitCameraProto,
)
from .config import load_config, Cfg
from .filters import OneEuroFilter, OneEuroFilterVector, GestureFilter
from .classifier import GestureClassifier
from .state_machine import ModeStateMachine
from .engine import GestureEngine
from .events import EventBus, LISTEN_TOGGLE
from .camera import CameraMapper, OrbitCamera

__all__ = [
    "CalibrationData",
    "ContinuousFeatures",
    "FingerGesture",
    "FingerGestureState",
    "GestureEvent",
    "GestureMode",
    "GestureSnapshot",
    "Landmark",
    "LandmarkFrame",
    "OrbitCameraProto",
    "load_config",
    "Cfg",
    "OneEuroFilter",
    "OneEuroFilterVector",
    "GestureFilter",
    "GestureClassifier",
    "ModeStateMachine",
    "GestureEngine",
    "EventBus",
    "LISTEN_TOGGLE",
    "CameraMapper",
    "OrbitCamera",
]
