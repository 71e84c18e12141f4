"""
Main wave tracking pipeline (headless).

- track_masks: detection + tracking over any iterable of binary masks
- run_wave_tracker: video file -> preprocessing -> track_masks, with
  progress logging and a final report
"""
from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Dict, Any

import numpy as np
from imutils.video import FPS

from core import config as CFG
from core.config import TrackingConfig
from core.detection import ShapeFilter
from core.io import VideoSource
from core.preprocessing import Preprocessor
from tracker.wave import Wave, WaveIdSequence
from tracker.wavetracker import WaveTracker
from utils.helpers import mark_last

logger = logging.getLogger(__name__)


def log_tracked_waves(waves: List[Wave]) -> None:
    """Per-frame tracker state, DEBUG level only."""
    logger.debug("Tracking %d waves...", len(waves))
    for wave in waves:
        logger.debug("  %s", wave.summary())


def track_masks(masks: Iterable[np.ndarray],
                config: Optional[TrackingConfig] = None,
                id_sequence: Optional[WaveIdSequence] = None,
                status_interval: int = 100,
                total_frames: Optional[int] = None) -> List[Wave]:
    """
    Run the per-frame cycle over `masks` (frame numbers start at 1) and
    return the recognized waves. The last mask is the final frame: every
    wave still alive dies there and no new sections are admitted.
    """
    config = (config or TrackingConfig()).validate()
    shape_filter = ShapeFilter(config, id_sequence or WaveIdSequence())
    tracker = WaveTracker()

    frame_number = 0
    for frame_number, (mask, is_last) in enumerate(mark_last(masks), start=1):
        if frame_number == 1:
            if total_frames:
                logger.info("Starting analysis of %d frames.", total_frames)
            else:
                logger.info("Starting analysis.")
        elif status_interval and frame_number % status_interval == 0:
            logger.info("%d frames complete (%d waves tracked).",
                        frame_number, len(tracker.tracked_waves))

        sections = shape_filter.detect(mask, frame_number)
        tracker.process(mask, sections, frame_number, is_final_frame=is_last)

        if logger.isEnabledFor(logging.DEBUG):
            log_tracked_waves(tracker.tracked_waves)

    if frame_number:
        logger.info("End of video reached successfully (%d frames).", frame_number)
    return tracker.finish()


def log_report(recognized: List[Wave], fps: FPS) -> None:
    elapsed = fps.elapsed()
    logger.info("------------")
    logger.info("Program complete.")
    logger.info("Program took %.0f milliseconds.", elapsed * 1000.0)
    if elapsed > 0:
        logger.info("Program speed: %.1f frames per second.", fps.fps())
    logger.info("%d wave(s) found.", len(recognized))
    for wave in recognized:
        logger.info("  wave %d: frames %d-%d, max displacement %.1f px, max mass %d px",
                    wave.id, wave.birth_frame, wave.death_frame,
                    wave.max_displacement, wave.max_mass)
    logger.info("------------")


def run_wave_tracker(input_path: str, settings: Optional[Dict[str, Any]] = None) -> List[Wave]:
    """
    Analyze a video file and return its recognized waves.
    Raises FileNotFoundError / IOError if the video cannot be opened.
    """
    if settings is None:
        settings = CFG.load_settings()
    config = TrackingConfig.from_settings(settings).validate()
    preprocessor = Preprocessor(settings)
    status_interval = int(settings.get("status_interval", 100))

    fps = FPS().start()
    with VideoSource(input_path) as src:
        def _masks():
            for frame in src.frames():
                fps.update()
                yield preprocessor.apply(frame)

        recognized = track_masks(_masks(), config,
                                 status_interval=status_interval,
                                 total_frames=src.frame_count())
    fps.stop()

    log_report(recognized, fps)
    return recognized
