"""
IO helpers:
- VideoSource: wrapper over a video file read with cv2.VideoCapture
"""
from __future__ import annotations
import logging
import os
import cv2

logger = logging.getLogger(__name__)


class VideoSource:
    """
    Sequential frame reader for a video file.
    """
    def __init__(self, input_path: str):
        self.input_path = input_path
        self.cap = None    # cv2.VideoCapture

    def start(self):
        if not os.path.isfile(self.input_path):
            raise FileNotFoundError(f"Video file not found: {self.input_path}")
        self.cap = cv2.VideoCapture(self.input_path)
        if not self.cap.isOpened():
            self.release()
            raise IOError(f"Error opening video stream or file: {self.input_path}")
        return self

    def read(self):
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        return frame if ok else None

    def frames(self):
        """Yield frames until the stream is exhausted."""
        while True:
            frame = self.read()
            if frame is None:
                return
            yield frame

    def frame_count(self) -> int:
        """Frame count reported by the container (may be approximate)."""
        if self.cap is None:
            return 0
        return max(0, int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT)))

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
