"""Integration test: orchestrator drives the synthetic scene into configured encoders."""

import json
import pytest
import sys
from pathlib import Path

src = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(src))

from PIL import Image

from framecap.app_orchestrator import AppOrchestrator
from framecap.domain.errors import ConfigurationError


def _write_config(config_dir, encoders, **capture):
    settings = {"width": 32, "height": 32, "fps": 10, "frames": 4}
    settings.update(capture)
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "app.json").write_text(json.dumps({"capture": settings, "encoders": encoders}))


def test_run_writes_frames_and_gif(tmp_path):
    config_dir = tmp_path / "config"
    out = tmp_path / "out"
    _write_config(config_dir, [
        {"type": "frames", "directory": "frames"},
        {"type": "gif", "path": "capture.gif"},
    ])

    metrics = AppOrchestrator(config_dir, out).run(frames=5)

    assert metrics["frames_encoded"] == 5
    assert metrics["frames_failed"] == 0
    assert len(list((out / "frames").glob("*.png"))) == 5
    with Image.open(out / "capture.gif") as img:
        assert img.size == (32, 32)
        assert img.n_frames == 5


def test_frame_count_from_config(tmp_path):
    config_dir = tmp_path / "config"
    out = tmp_path / "out"
    _write_config(config_dir, [{"type": "frames"}], frames=3)

    metrics = AppOrchestrator(config_dir, out).run()
    assert metrics["frames_encoded"] == 3


def test_no_encoders_configured(tmp_path):
    config_dir = tmp_path / "config"
    _write_config(config_dir, [])
    assert AppOrchestrator(config_dir, tmp_path / "out").run() == {}


def test_bad_encoder_entry_raises(tmp_path):
    config_dir = tmp_path / "config"
    _write_config(config_dir, [{"type": "nope"}])
    with pytest.raises(ConfigurationError):
        AppOrchestrator(config_dir, tmp_path / "out").run()
