# core/geometry.py
"""
Geometry helpers shared by detection and tracking.

- axis_through / distance_to_line: the fixed-heading reference line of a wave
- search_region: the 4-vertex band a wave searches in the next frame
- leading_edge / in_capture_band: the overlap test used for merging waves
- robust_bounding_polygon: outlier-tolerant min-area rectangle (display only)

Coordinates are image pixels: x to the right, y downward. Angles are degrees.
"""
from __future__ import annotations
import math
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

Point = Tuple[int, int]
Line = Tuple[float, float, float]
Quad = Tuple[Point, Point, Point, Point]

# Vertex indices of a search region. Order matters to cv2.fillPoly and to the
# capture band lookups below.
UPPER_LEFT, UPPER_RIGHT, LOWER_RIGHT, LOWER_LEFT = 0, 1, 2, 3

OUTLIER_STD_FACTOR = 3.0


def _slope(angle_deg: float) -> float:
    return math.tan(math.radians(angle_deg))


def axis_through(point: Point, angle_deg: float) -> Line:
    """
    Line (A, B, C) with A*x + B*y = C through `point` at `angle_deg`.
    A positive angle rises to the right in image coordinates.
    """
    a = -_slope(angle_deg)
    b = -1.0
    c = a * point[0] + b * point[1]
    return a, b, c


def distance_to_line(point: Point, line: Line) -> float:
    a, b, c = line
    return abs(a * point[0] + b * point[1] - c) / math.sqrt(a * a + b * b)


def leading_edge(centroid: Point, angle_deg: float) -> int:
    """Project the centroid along the heading onto the left frame edge (x = 0)."""
    return int(centroid[1] + int(centroid[0] * _slope(angle_deg)))


def search_region(centroid: Point, angle_deg: float, frame_width: int,
                  buffer_px: int) -> Quad:
    """
    Band of +/- buffer_px around the heading line through the centroid,
    spanning the full frame width.
    Returns (upper_left, upper_right, lower_right, lower_left).
    """
    cx, cy = centroid
    slope = _slope(angle_deg)
    delta_y_left = int(cx * slope)
    delta_y_right = int((frame_width - cx) * slope)

    upper_left = (0, int(cy + delta_y_left - buffer_px))
    upper_right = (int(frame_width), int(cy - delta_y_right - buffer_px))
    lower_right = (int(frame_width), int(cy - delta_y_right + buffer_px))
    lower_left = (0, int(cy + delta_y_left + buffer_px))
    return upper_left, upper_right, lower_right, lower_left


def in_capture_band(centroid: Optional[Point], angle_deg: float, region: Quad) -> bool:
    """
    True if the centroid's leading edge falls inside the left-edge span of
    another wave's search region, i.e. both describe the same physical wave.
    """
    if centroid is None:
        return False
    left_y = leading_edge(centroid, angle_deg)
    return region[UPPER_LEFT][1] <= left_y <= region[LOWER_LEFT][1]


def robust_bounding_polygon(points: np.ndarray) -> Tuple[Tuple[float, float], ...]:
    """
    Minimum-area rotated rectangle around `points` (N x 2, x/y), ignoring
    points farther than 3 standard deviations from the mean on either axis.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    mean = pts.mean(axis=0)
    std = pts.std(axis=0)
    keep = np.all(np.abs(pts - mean) <= OUTLIER_STD_FACTOR * std, axis=1)
    inliers = pts[keep] if np.any(keep) else pts

    rect = cv2.minAreaRect(inliers.astype(np.float32))
    corners = cv2.boxPoints(rect)
    return tuple((float(x), float(y)) for x, y in corners)


def polygon_array(region: Sequence[Point]) -> np.ndarray:
    """Region vertices as the int32 array cv2.fillPoly expects."""
    return np.array(region, dtype=np.int32).reshape(-1, 1, 2)
