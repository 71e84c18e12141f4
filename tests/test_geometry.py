import math

import numpy as np
import pytest

from core import geometry


def test_axis_passes_through_point():
    line = geometry.axis_through((120, 80), 5.0)
    assert geometry.distance_to_line((120, 80), line) == pytest.approx(0.0)


def test_vertical_offset_distance_scales_with_cosine():
    line = geometry.axis_through((120, 80), 5.0)
    d = geometry.distance_to_line((120, 90), line)
    assert d == pytest.approx(10 * math.cos(math.radians(5.0)))


def test_search_region_vertex_order_flat_heading():
    region = geometry.search_region((100, 50), 0.0, 320, 15)
    assert region == ((0, 35), (320, 35), (320, 65), (0, 65))


def test_search_region_tilts_with_heading():
    ul, ur, lr, ll = geometry.search_region((100, 50), 5.0, 320, 15)
    # rises to the right
    assert ul[1] > ur[1]
    assert ll[1] > lr[1]
    assert ll[1] - ul[1] == 30
    assert lr[1] - ur[1] == 30


def test_leading_edge_projects_to_left_edge():
    # 100 * tan(5 deg) = 8.75 -> 8
    assert geometry.leading_edge((100, 50), 5.0) == 58


def test_capture_band_bounds_are_inclusive():
    region = geometry.search_region((0, 50), 5.0, 320, 15)
    assert geometry.in_capture_band((0, 35), 5.0, region)
    assert geometry.in_capture_band((0, 65), 5.0, region)
    assert not geometry.in_capture_band((0, 66), 5.0, region)
    assert not geometry.in_capture_band(None, 5.0, region)


def test_bounding_polygon_ignores_outlier():
    xs, ys = np.meshgrid(np.arange(50), np.arange(10))
    pts = np.stack([xs.ravel(), ys.ravel()], axis=1)
    pts = np.vstack([pts, [[300, 170]]])

    corners = np.array(geometry.robust_bounding_polygon(pts))
    assert corners.shape == (4, 2)
    assert corners[:, 0].max() <= 50.5
    assert corners[:, 1].max() <= 10.5
