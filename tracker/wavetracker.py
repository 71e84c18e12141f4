# wavetracker.py
# Multi-wave tracker over binary foreground masks.
# Each frame: advance every tracked wave, reap the dead ones (keeping the
# recognized), drop duplicates, then admit newly detected sections.

import logging
from typing import Iterable, List, Tuple

import numpy as np

from core.geometry import in_capture_band
from tracker.wave import Wave, advance

logger = logging.getLogger(__name__)


def will_be_merged(wave: Wave, waves: Iterable[Wave]) -> bool:
    """True if `wave` lies in the capture band of any wave in `waves`."""
    for other in waves:
        if in_capture_band(wave.centroid, wave.axis_angle, other.search_region):
            return True
    return False


def partition_dead(waves: Iterable[Wave]) -> Tuple[List[Wave], List[Wave]]:
    """Split into (alive, dead), each in the original order."""
    alive, dead = [], []
    for wave in waves:
        (alive if wave.is_alive else dead).append(wave)
    return alive, dead


def _age_key(wave: Wave):
    return wave.birth_frame, wave.id


def remove_duplicates(waves: Iterable[Wave]) -> List[Wave]:
    """
    Newest first, drop every wave that falls in the capture band of an
    older one. Survivors are returned oldest first.
    """
    newest_first = sorted(waves, key=_age_key, reverse=True)
    survivors = []
    for i, wave in enumerate(newest_first):
        if will_be_merged(wave, newest_first[i + 1:]):
            logger.debug("Wave %d is a duplicate; removed", wave.id)
            continue
        survivors.append(wave)
    survivors.sort(key=_age_key)
    return survivors


class WaveTracker:
    def __init__(self):
        # waves currently being followed, oldest first
        self.tracked_waves: List[Wave] = []
        # dead waves that were recognized before dying
        self.recognized_waves: List[Wave] = []

    def track(self, mask: np.ndarray, frame_number: int, is_final_frame: bool = False) -> List[Wave]:
        """Advance every tracked wave by one frame."""
        self.tracked_waves = [advance(w, mask, frame_number, is_final_frame)
                              for w in self.tracked_waves]
        return self.tracked_waves

    def reap(self) -> List[Wave]:
        """Remove dead waves; recognized ones are kept as results. Returns the dead."""
        alive, dead = partition_dead(self.tracked_waves)
        self.tracked_waves = alive
        for wave in dead:
            if wave.recognized:
                self.recognized_waves.append(wave)
                logger.debug("Wave %d recognized (frames %d-%d, max_disp=%.1f, max_mass=%d)",
                             wave.id, wave.birth_frame, wave.death_frame,
                             wave.max_displacement, wave.max_mass)
            else:
                logger.debug("Wave %d discarded at frame %d", wave.id, wave.death_frame)
        return dead

    def deduplicate(self) -> List[Wave]:
        self.tracked_waves = remove_duplicates(self.tracked_waves)
        return self.tracked_waves

    def admit(self, sections: Iterable[Wave]) -> List[Wave]:
        """
        Start tracking each section that is not part of an already tracked
        wave. Returns the admitted sections.
        """
        admitted = []
        for section in sections:
            if will_be_merged(section, self.tracked_waves):
                logger.debug("Section %d belongs to a tracked wave; ignored", section.id)
                continue
            self.tracked_waves.append(section)
            admitted.append(section)
        return admitted

    def process(self, mask: np.ndarray, sections: Iterable[Wave], frame_number: int,
                is_final_frame: bool = False) -> List[Wave]:
        """
        Full cycle for one frame, in fixed order:
        track -> reap -> deduplicate -> admit (not on the final frame).
        """
        self.track(mask, frame_number, is_final_frame)
        self.reap()
        self.deduplicate()
        if not is_final_frame:
            self.admit(sections)
        return self.tracked_waves

    def finish(self) -> List[Wave]:
        """Recognized waves of the run, in order of death."""
        return sorted(self.recognized_waves, key=lambda w: (w.death_frame, w.id))
