import numpy as np
import pytest

from core.config import TrackingConfig

W, H = 320, 180


def bar_contour(x, y, w, h):
    """Corner polygon of a w x h pixel rectangle with top-left (x, y)."""
    return np.array([[x, y], [x + w - 1, y], [x + w - 1, y + h - 1], [x, y + h - 1]],
                    dtype=np.int32).reshape(-1, 1, 2)


def bar_mask(*bars, shape=(H, W)):
    """Binary mask with one filled rectangle per (x, y, w, h) tuple."""
    mask = np.zeros(shape, dtype=np.uint8)
    for (x, y, w, h) in bars:
        mask[y:y + h, x:x + w] = 255
    return mask


@pytest.fixture
def config():
    return TrackingConfig()
