"""
Detection helpers:
- Contour extraction from a binary mask
- Shape filtering by area and inertia ratio (long, narrow shapes only)
- Conversion of accepted contours into new Wave sections

"Inertia" measures how oblong a contour is: the ratio of its minimum to its
maximum principal second moment. Waves seen from the shore are long and
narrow, so only low ratios pass.
"""
from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence

import cv2
import numpy as np

from core.config import TrackingConfig
from tracker.wave import Wave, WaveIdSequence, as_mask

logger = logging.getLogger(__name__)

# Below this the principal axes are undefined (circle-like shape).
INERTIA_EPSILON = 1e-2
ROUND_RATIO = 1.0


# -----------------------------------------------------------------------------
# Shape measures
# -----------------------------------------------------------------------------
def inertia_ratio(moms: dict) -> float:
    """
    Min/max principal inertia from central moments (cv2.moments output).
    Degenerate shapes get ROUND_RATIO instead of a division by ~0.
    """
    mu20, mu02, mu11 = moms["mu20"], moms["mu02"], moms["mu11"]
    denom = math.sqrt((2 * mu11) ** 2 + (mu20 - mu02) ** 2)
    if denom <= INERTIA_EPSILON:
        return ROUND_RATIO

    cosmin = (mu20 - mu02) / denom
    sinmin = 2 * mu11 / denom
    cosmax = -cosmin
    sinmax = -sinmin
    imin = 0.5 * (mu20 + mu02) - 0.5 * (mu20 - mu02) * cosmin - mu11 * sinmin
    imax = 0.5 * (mu20 + mu02) - 0.5 * (mu20 - mu02) * cosmax - mu11 * sinmax
    return imin / imax


def keep_contour(contour, min_area: float, min_ratio: float, max_ratio: float) -> bool:
    """True if the contour is big enough and elongated enough."""
    moms = cv2.moments(np.asarray(contour, dtype=np.int32))
    if moms["m00"] < min_area:
        return False
    ratio = inertia_ratio(moms)
    return min_ratio <= ratio < max_ratio


def find_contours(mask: np.ndarray) -> List[np.ndarray]:
    """All contours of the foreground, no hierarchy, no point compression."""
    contours, _hierarchy = cv2.findContours(as_mask(mask), cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)
    return list(contours)


# -----------------------------------------------------------------------------
# Shape filter
# -----------------------------------------------------------------------------
class ShapeFilter:
    """
    Turns the contours of one frame into candidate waves ("sections").
    Wave ids come from the injected sequence so that a run owns its ids.
    """

    def __init__(self, config: TrackingConfig, id_sequence: WaveIdSequence = None):
        self.config = config
        self.id_sequence = id_sequence or WaveIdSequence()

    def accepts(self, contour) -> bool:
        c = self.config
        return keep_contour(contour, c.min_contour_area, c.min_inertia_ratio, c.max_inertia_ratio)

    def filter_and_convert(self, contours: Sequence, frame_number: int,
                           mask: Optional[np.ndarray] = None) -> List[Wave]:
        """
        One new wave per accepted contour. With `mask`, a wave starts from
        the mask's foreground inside its contour, so holes are not counted.
        """
        sections = []
        for contour in contours:
            if not self.accepts(contour):
                continue
            sections.append(Wave(contour, frame_number, self.id_sequence.next_id(),
                                 self.config, mask=mask))
        if len(contours):
            logger.debug("Frame %d: %d of %d contours kept as sections",
                         frame_number, len(sections), len(contours))
        return sections

    def detect(self, mask: np.ndarray, frame_number: int) -> List[Wave]:
        """Sections (new candidate waves) found in `mask`."""
        return self.filter_and_convert(find_contours(mask), frame_number, mask)
