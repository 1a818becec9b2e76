"""
Configuration management for the gesture-to-camera pipeline.
"""
import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.default.yaml"

T = TypeVar("T")


@dataclass
class CameraConfig:
    """Webcam capture settings."""
    index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass
class OneEuroConfig:
    """One-Euro filter parameters for a single channel."""
    min_cutoff: float = 1.0
    beta: float = 0.007
    d_cutoff: float = 1.0


@dataclass
class FiltersConfig:
    """Per-channel filter settings."""
    pinch: OneEuroConfig = field(default_factory=lambda: OneEuroConfig(1.2, 0.01, 1.0))
    orientation: OneEuroConfig = field(default_factory=lambda: OneEuroConfig(0.8, 0.007, 1.0))


@dataclass
class ClassifierConfig:
    """Finger gesture classification and pinch hysteresis."""
    history_size: int = 8
    stability_ratio: float = 0.6
    pinch_history_size: int = 5
    pinch_open_threshold: float = 0.25
    pinch_closed_threshold: float = 0.70


@dataclass
class StateMachineConfig:
    """Mode hysteresis timing (milliseconds)."""
    zoom_threshold: float = 0.4
    enter_delay_ms: float = 80.0
    exit_delay_ms: float = 120.0
    min_mode_duration_ms: float = 100.0


@dataclass
class EngineConfig:
    """Gesture to control mapping."""
    control_scheme: str = "finger"
    confidence_threshold: float = 0.5
    zoom_delta: float = 0.8
    slide_gain: float = 2.0
    max_yaw_rate: float = math.pi  # rad/s
    toggle_cooldown_ms: float = 1200.0
    palm_active_threshold: float = 0.08  # rad
    palm_exit_threshold: float = 0.05    # rad
    max_velocity_clamp: float = 5.0      # rad/s


@dataclass
class MapperConfig:
    """Camera mapper gains and rate limits."""
    zoom_gain: float = 0.8
    yaw_gain: float = 1.2
    pitch_gain: float = 1.0
    rotation_rate_scale: float = 10.0
    pointer_priority_window_ms: float = 300.0
    max_rotation_per_frame: float = math.pi / 60
    max_zoom_scale_per_frame: float = 1.08
    max_zoom_delta: float = 0.5
    polar_epsilon: float = 0.01


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool = True
    window_name: str = "handorbit"


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    filters: FiltersConfig = field(default_factory=FiltersConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    state_machine: StateMachineConfig = field(default_factory=StateMachineConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    mapper: MapperConfig = field(default_factory=MapperConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


CONTROL_SCHEMES = ("finger", "continuous")


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to a user config file. Its values are merged over the
            packaged config.default.yaml. If None, only the defaults are used.

    Returns:
        Configuration object with all settings
    """
    data = _read_yaml(DEFAULT_CONFIG_PATH)

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.info("Loading config from %s", config_path)
        data = _merge(data, _read_yaml(config_path))

    return _dict_to_config(data)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _section(cls: Type[T], data: Optional[Dict[str, Any]], name: str) -> T:
    """Build a flat config dataclass, rejecting unknown keys."""
    data = data or {}
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' config: {', '.join(sorted(unknown))}")
    return cls(**data)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    known = {f.name for f in fields(Cfg)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config sections: {', '.join(sorted(unknown))}")

    filters_data = dict(data.get("filters") or {})
    filters = FiltersConfig(
        pinch=_section(OneEuroConfig, filters_data.pop("pinch", None), "filters.pinch"),
        orientation=_section(OneEuroConfig, filters_data.pop("orientation", None), "filters.orientation"),
    )
    if filters_data:
        raise ValueError(f"Unknown keys in 'filters' config: {', '.join(sorted(filters_data))}")

    engine = _section(EngineConfig, data.get("engine"), "engine")
    if engine.control_scheme not in CONTROL_SCHEMES:
        raise ValueError(
            f"engine.control_scheme must be one of {CONTROL_SCHEMES}, got {engine.control_scheme!r}"
        )

    return Cfg(
        camera=_section(CameraConfig, data.get("camera"), "camera"),
        mediapipe=_section(MediaPipeConfig, data.get("mediapipe"), "mediapipe"),
        filters=filters,
        classifier=_section(ClassifierConfig, data.get("classifier"), "classifier"),
        state_machine=_section(StateMachineConfig, data.get("state_machine"), "state_machine"),
        engine=engine,
        mapper=_section(MapperConfig, data.get("mapper"), "mapper"),
        display=_section(DisplayConfig, data.get("display"), "display"),
    )
