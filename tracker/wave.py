# wave.py
# A single tracked wave: identity, search band, representation in the
# current mask, and the kinematic evidence used to recognize it.
# Waves are born from filtered contours (see core/detection.py) and are
# advanced once per frame by the WaveTracker.

import copy
import itertools
import logging
from collections import deque
from typing import Optional

import cv2
import numpy as np

from core.config import TrackingConfig
from core import geometry

logger = logging.getLogger(__name__)


class WaveIdSequence:
    """Hands out wave ids: strictly increasing, never reused."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(int(start))

    def next_id(self) -> int:
        return next(self._counter)


def _nonzero_points(img: np.ndarray) -> np.ndarray:
    """(x, y) coordinates of the non-zero pixels of `img` as an N x 2 array."""
    pts = cv2.findNonZero(img)
    if pts is None:
        return np.empty((0, 2), dtype=np.int32)
    return pts.reshape(-1, 2)


def as_mask(mask) -> np.ndarray:
    """Single-channel uint8 view of a binary mask (foreground = non-zero)."""
    mask = np.asarray(mask)
    if mask.dtype == np.uint8:
        return mask
    return np.where(mask != 0, 255, 0).astype(np.uint8)


class Wave:
    def __init__(self, contour, frame_number: int, wave_id: int, config: TrackingConfig,
                 mask: Optional[np.ndarray] = None):
        """
        Args:
            contour: OpenCV contour (N x 1 x 2 or N x 2) of the detected section
            frame_number: frame in which the section was detected
            wave_id: unique id, drawn from a WaveIdSequence
            config: tracking constants
            mask: binary mask the contour was traced in; when given, only its
                  foreground pixels inside the contour become the representation
        """
        self.id = int(wave_id)
        self.config = config
        self.birth_frame = int(frame_number)
        # None while alive; set exactly once.
        self.death_frame: Optional[int] = None
        self.axis_angle = float(config.fixed_axis_angle_degrees)

        self.points = self._fill_contour(contour, mask)
        if not len(self.points):
            raise ValueError("contour encloses no pixels of the analysis frame")
        self.centroid = None
        self.centroid_history = deque(maxlen=config.history_window_length)
        self.search_region = None
        self.bounding_polygon = None
        self.bounding_polygon_history = deque(maxlen=config.history_window_length)

        self.displacement = 0.0
        self.max_displacement = 0.0
        self.displacement_history = deque(maxlen=config.history_window_length)
        self.mass = 0
        self.max_mass = 0
        self.recognized = False

        self.update_centroid()
        self.original_axis = geometry.axis_through(self.centroid, self.axis_angle)
        self.update_search_region()
        self.update_bounding_polygon()
        self.update_mass()

    def _fill_contour(self, contour, mask=None) -> np.ndarray:
        if mask is not None:
            mask = as_mask(mask)
            shape = mask.shape[:2]
        else:
            shape = (self.config.frame_height, self.config.frame_width)
        canvas = np.zeros(shape, dtype=np.uint8)
        cnt = np.asarray(contour, dtype=np.int32).reshape(-1, 1, 2)
        cv2.drawContours(canvas, [cnt], -1, 255, thickness=cv2.FILLED)
        if mask is not None:
            # holes inside the contour are not part of the wave
            canvas = cv2.bitwise_and(mask, canvas)
        return _nonzero_points(canvas)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def is_alive(self) -> bool:
        return self.death_frame is None

    def copy(self) -> "Wave":
        """Independent copy: histories and points are not shared."""
        clone = copy.copy(self)
        clone.points = self.points.copy()
        maxlen = self.config.history_window_length
        clone.centroid_history = deque(self.centroid_history, maxlen=maxlen)
        clone.bounding_polygon_history = deque(self.bounding_polygon_history, maxlen=maxlen)
        clone.displacement_history = deque(self.displacement_history, maxlen=maxlen)
        return clone

    # ------------------------------------------------------------------
    # Per-frame updates, called in this order by advance()
    # ------------------------------------------------------------------
    def update_search_region(self):
        """Band around the heading line through the current centroid."""
        if self.centroid is None:
            return
        self.search_region = geometry.search_region(
            self.centroid, self.axis_angle,
            self.config.frame_width, self.config.search_region_buffer_px,
        )

    def update_points(self, mask: np.ndarray):
        """Representation = foreground pixels of `mask` inside the search region."""
        mask = as_mask(mask)
        roi = np.zeros(mask.shape[:2], dtype=np.uint8)
        cv2.fillPoly(roi, [geometry.polygon_array(self.search_region)], 255)
        self.points = _nonzero_points(cv2.bitwise_and(mask, roi))

    def update_death(self, frame_number: int, is_final_frame: bool = False):
        # Dies on the first empty frame; everything dies on the last frame.
        if self.death_frame is not None:
            return
        if len(self.points) == 0 or is_final_frame:
            self.death_frame = int(frame_number)

    def update_centroid(self):
        self.centroid = None
        n = len(self.points)
        if n:
            sums = self.points.sum(axis=0, dtype=np.int64)
            self.centroid = (int(sums[0]) // n, int(sums[1]) // n)
        self.centroid_history.append(self.centroid)

    def update_bounding_polygon(self):
        # Kept stale when there is nothing to bound.
        if len(self.points):
            self.bounding_polygon = geometry.robust_bounding_polygon(self.points)
        self.bounding_polygon_history.append(self.bounding_polygon)

    def update_displacement(self):
        if self.centroid is not None:
            self.displacement = geometry.distance_to_line(self.centroid, self.original_axis)
        if self.displacement > self.max_displacement:
            self.max_displacement = self.displacement
        self.displacement_history.append(self.displacement)

    def update_mass(self):
        self.mass = int(len(self.points))
        if self.mass > self.max_mass:
            self.max_mass = self.mass

    def update_recognized(self):
        if (not self.recognized
                and self.max_displacement >= self.config.displacement_recognition_threshold_px
                and self.max_mass >= self.config.mass_recognition_threshold_px):
            self.recognized = True
            logger.debug("Wave %d recognized (max_disp=%.1f, max_mass=%d)",
                         self.id, self.max_displacement, self.max_mass)

    # ------------------------------------------------------------------
    def summary(self) -> str:
        return (f"id={self.id} birth={self.birth_frame} death={self.death_frame} "
                f"centroids={len(self.centroid_history)} "
                f"max_disp={self.max_displacement:.2f} mass={self.mass} "
                f"max_mass={self.max_mass} recognized={self.recognized}")

    def __repr__(self):
        return f"Wave({self.summary()})"


def advance(wave: Wave, mask: np.ndarray, frame_number: int,
            is_final_frame: bool = False) -> Wave:
    """
    One frame of tracking: returns the next state of `wave` given `mask`.
    The input wave is not modified. All steps run even if the wave dies in
    this frame; death only matters for removal.
    """
    nxt = wave.copy()
    nxt.update_search_region()
    nxt.update_points(mask)
    nxt.update_death(frame_number, is_final_frame)
    nxt.update_centroid()
    nxt.update_bounding_polygon()
    nxt.update_displacement()
    nxt.update_mass()
    nxt.update_recognized()
    return nxt
