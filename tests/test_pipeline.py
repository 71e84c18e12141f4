import json
import logging

import numpy as np
import pytest

import main
from core import config as CFG
from core.config import TrackingConfig
from core.io import VideoSource
from core.pipeline import run_wave_tracker, track_masks
from core.preprocessing import Preprocessor
from tracker.wave import WaveIdSequence
from utils.helpers import mark_last
from conftest import bar_mask

EMPTY = np.zeros((180, 320), dtype=np.uint8)


def moving_bar(frames, step=2):
    """A 160 x 8 bar moving down `step` px per frame, starting at y = 80."""
    return [bar_mask((40, 80 + step * k, 160, 8)) for k in range(frames)]


# ---------------- helpers ----------------
def test_mark_last():
    assert list(mark_last([])) == []
    assert list(mark_last([7])) == [(7, True)]
    assert list(mark_last("abc")) == [("a", False), ("b", False), ("c", True)]


# ---------------- config ----------------
def test_defaults_match_tracking_config():
    cfg = TrackingConfig.from_settings(CFG.DEFAULT_SETTINGS)
    assert cfg == TrackingConfig()
    assert cfg.validate() is cfg


def test_load_settings_merges_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"history_window_length": 5, "extra": 1}), encoding="utf-8")
    s = CFG.load_settings(str(path))
    assert s["history_window_length"] == 5
    assert s["frame_width"] == 320
    assert TrackingConfig.from_settings(s).history_window_length == 5


def test_load_settings_falls_back_on_bad_file(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        assert CFG.load_settings(str(path)) == CFG.DEFAULT_SETTINGS
    assert "Ignoring" in caplog.text


def test_save_then_load_settings(tmp_path):
    path = str(tmp_path / "sub" / "config.json")
    s = dict(CFG.DEFAULT_SETTINGS, mass_recognition_threshold_px=50)
    CFG.save_settings(s, path)
    assert CFG.load_settings(path)["mass_recognition_threshold_px"] == 50


def test_fractional_value_for_integer_setting_rejected():
    with pytest.raises(ValueError):
        TrackingConfig.from_settings({"history_window_length": 2.5})
    assert TrackingConfig.from_settings({"history_window_length": 4.0}).history_window_length == 4


@pytest.mark.parametrize("overrides", [
    {"history_window_length": 0},
    {"frame_width": 0},
    {"min_inertia_ratio": 0.2, "max_inertia_ratio": 0.1},
    {"search_region_buffer_px": -1},
])
def test_invalid_config_rejected(overrides):
    with pytest.raises(ValueError):
        TrackingConfig(**overrides).validate()


# ---------------- tracking over masks ----------------
def test_moving_bar_is_recognized_after_it_vanishes():
    masks = moving_bar(9) + [EMPTY, EMPTY]
    recognized = track_masks(masks, TrackingConfig())
    assert len(recognized) == 1
    wave = recognized[0]
    assert wave.recognized
    assert wave.birth_frame == 1
    assert wave.death_frame == 10
    assert wave.max_mass == 160 * 8
    assert wave.max_displacement >= 10
    assert wave.centroid_history[-1] is None


def test_wave_alive_at_last_frame_dies_there():
    recognized = track_masks(moving_bar(9), TrackingConfig())
    assert [w.death_frame for w in recognized] == [9]


def test_stationary_bar_is_not_recognized():
    assert track_masks([bar_mask((40, 80, 160, 8))] * 12) == []


def test_ids_come_from_injected_sequence():
    recognized = track_masks(moving_bar(9), TrackingConfig(), id_sequence=WaveIdSequence(start=100))
    assert recognized[0].id == 100


def test_no_masks():
    assert track_masks([]) == []


# ---------------- host layer ----------------
def test_preprocessor_outputs_binary_mask():
    rng = np.random.default_rng(0)
    pre = Preprocessor()
    for _ in range(3):
        frame = rng.integers(0, 255, size=(360, 640, 3), dtype=np.uint8)
        mask = pre.apply(frame)
        assert mask.shape == (180, 320)
        assert mask.dtype == np.uint8
        assert set(np.unique(mask)) <= {0, 255}


def test_unstarted_video_source_yields_nothing(tmp_path):
    src = VideoSource(str(tmp_path / "nope.mp4"))
    assert src.read() is None
    assert list(src.frames()) == []
    assert src.frame_count() == 0
    with pytest.raises(FileNotFoundError):
        with src:
            pass
    assert src.cap is None


def test_missing_video_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_wave_tracker(str(tmp_path / "nope.mp4"), CFG.DEFAULT_SETTINGS)


def test_cli_reports_missing_video(tmp_path):
    assert main.main([str(tmp_path / "nope.mp4"), "-c", str(tmp_path / "none.json")]) == 1
