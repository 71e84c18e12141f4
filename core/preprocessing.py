"""
Preprocessing: raw video frame -> binary foreground mask.

- resize to the analysis frame size
- mixture-of-Gaussians background subtraction
- morphological opening to remove speckle noise
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import cv2
import numpy as np

from core import config as CFG

logger = logging.getLogger(__name__)


def create_background_subtractor(history: int = 300, mixtures: int = 5,
                                 background_ratio: float = 0.7, noise_sigma: float = 0.0):
    """Classic MOG from opencv-contrib if available, else MOG2 without shadows."""
    if hasattr(cv2, "bgsegm"):
        return cv2.bgsegm.createBackgroundSubtractorMOG(
            history, mixtures, background_ratio, noise_sigma)
    logger.info("cv2.bgsegm not available; using MOG2 background subtractor")
    sub = cv2.createBackgroundSubtractorMOG2(history=history, detectShadows=False)
    sub.setNMixtures(mixtures)
    sub.setBackgroundRatio(background_ratio)
    return sub


class Preprocessor:
    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        s = CFG.DEFAULT_SETTINGS.copy()
        if settings:
            s.update(settings)
        self.size = (int(s["frame_width"]), int(s["frame_height"]))
        self.subtractor = create_background_subtractor(
            int(s["mog_history"]), int(s["mog_mixtures"]),
            float(s["mog_background_ratio"]), float(s["mog_noise_sigma"]),
        )
        k = int(s["morph_kernel_size"])
        self.kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (k, k))

    def apply(self, frame: np.ndarray) -> np.ndarray:
        """Binary uint8 mask (0 / 255) of the analysis frame size."""
        resized = cv2.resize(frame, self.size, interpolation=cv2.INTER_LINEAR)
        mask = self.subtractor.apply(resized)
        return cv2.morphologyEx(mask, cv2.MORPH_OPEN, self.kernel)
