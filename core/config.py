# core/config.py
"""
App configuration utilities (Single Source of Truth).

- DEFAULT_SETTINGS
- load_settings / save_settings
- TrackingConfig: validated, immutable view of the tracking constants
"""
from __future__ import annotations
import json, os
import logging
from dataclasses import dataclass, fields
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# --- project root (absolute) ---
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
CONFIG_PATH  = os.path.join(PROJECT_ROOT, "utils", "config.json")

DEFAULT_SETTINGS: Dict[str, Any] = {
    # detection
    "min_contour_area": 100,
    "min_inertia_ratio": 0.0,
    "max_inertia_ratio": 0.1,
    # tracking
    "search_region_buffer_px": 15,
    "fixed_axis_angle_degrees": 5.0,
    "displacement_recognition_threshold_px": 10,
    "mass_recognition_threshold_px": 1000,
    "history_window_length": 20,
    # analysis frame size
    "frame_width": 320,
    "frame_height": 180,
    # preprocessing (mixture of gaussians + opening)
    "mog_history": 300,
    "mog_mixtures": 5,
    "mog_background_ratio": 0.7,
    "mog_noise_sigma": 0.0,
    "morph_kernel_size": 5,
    # logging
    "status_interval": 100,
}

def _ensure_parent_dir(p: str):
    d = os.path.dirname(p)
    if d:
        os.makedirs(d, exist_ok=True)

def _deep_merge(base: dict, extra: dict) -> dict:
    out = base.copy()
    for k, v in extra.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Defaults, overridden by whatever the JSON file at `path` provides."""
    path = path or CONFIG_PATH
    s = DEFAULT_SETTINGS.copy()
    if not os.path.isfile(path):
        return s
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable settings file %s (%s)", path, e)
        return s
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return s
    return _deep_merge(s, data)

def save_settings(s: Dict[str, Any], path: Optional[str] = None) -> None:
    path = path or CONFIG_PATH
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(s, f, ensure_ascii=False, indent=2)


@dataclass(frozen=True)
class TrackingConfig:
    """Constants shared by the shape filter, the waves and the tracker."""
    min_contour_area: float = 100.0
    min_inertia_ratio: float = 0.0
    max_inertia_ratio: float = 0.1
    search_region_buffer_px: int = 15
    fixed_axis_angle_degrees: float = 5.0
    displacement_recognition_threshold_px: float = 10.0
    mass_recognition_threshold_px: int = 1000
    history_window_length: int = 20
    frame_width: int = 320
    frame_height: int = 180

    @classmethod
    def from_settings(cls, s: Dict[str, Any]) -> "TrackingConfig":
        """Pick the tracking keys out of a settings dict; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):
            if f.name not in s:
                continue
            kind, value = type(f.default), s[f.name]
            if kind is int and isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{f.name} must be an integer, got {value}")
            kwargs[f.name] = kind(value)
        return cls(**kwargs)

    def validate(self) -> "TrackingConfig":
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError(f"frame size must be positive, got {self.frame_width}x{self.frame_height}")
        if self.history_window_length < 1:
            raise ValueError(f"history_window_length must be >= 1, got {self.history_window_length}")
        if self.search_region_buffer_px < 0:
            raise ValueError(f"search_region_buffer_px must be >= 0, got {self.search_region_buffer_px}")
        if self.min_contour_area < 0:
            raise ValueError(f"min_contour_area must be >= 0, got {self.min_contour_area}")
        if not self.min_inertia_ratio < self.max_inertia_ratio:
            raise ValueError(
                f"inertia ratio band [{self.min_inertia_ratio}, {self.max_inertia_ratio}) is empty"
            )
        if not -90.0 < self.fixed_axis_angle_degrees < 90.0:
            raise ValueError(f"fixed_axis_angle_degrees must be in (-90, 90), got {self.fixed_axis_angle_degrees}")
        return self
