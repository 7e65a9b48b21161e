"""Unit tests for GifEncoder (Pillow)."""

import io
import pytest
import sys
from pathlib import Path

src = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(src))

from PIL import Image

from framecap.adapters.gif_encoder import GifEncoder, Repeat
from framecap.domain.errors import ConfigurationError, FrameMismatchError


def test_writes_animation_on_finish(make_frame, tmp_path):
    path = tmp_path / "out.gif"
    encoder = GifEncoder(path, repeat=Repeat.infinite(), frame_duration_ms=50)
    encoder.encode(make_frame(color=(255, 0, 0, 255), width=8, height=6))
    encoder.encode(make_frame(color=(0, 255, 0, 255), width=8, height=6))
    encoder.encode(make_frame(color=(0, 0, 255, 255), width=8, height=6))
    assert encoder.frame_count == 3
    encoder.finish()

    with Image.open(path) as img:
        assert img.format == "GIF"
        assert img.size == (8, 6)
        assert img.n_frames == 3
        assert img.info.get("loop") == 0


def test_mismatched_frame_rejected_first_unaffected(make_frame, tmp_path):
    path = tmp_path / "out.gif"
    encoder = GifEncoder(path)
    encoder.encode(make_frame(color=(255, 0, 0, 255), width=4, height=4))
    with pytest.raises(FrameMismatchError):
        encoder.encode(make_frame(color=(0, 255, 0, 255), width=5, height=4))
    assert encoder.canvas_size == (4, 4)
    assert encoder.frame_count == 1
    encoder.finish()

    with Image.open(path) as img:
        assert img.size == (4, 4)
        assert img.n_frames == 1
        assert img.convert("RGB").getpixel((0, 0)) == (255, 0, 0)


def test_repeat_none_has_no_loop_extension(make_frame):
    sink = io.BytesIO()
    encoder = GifEncoder(sink, repeat="none")
    encoder.encode(make_frame(color=(255, 0, 0, 255)))
    encoder.encode(make_frame(color=(0, 0, 255, 255)))
    encoder.finish()

    sink.seek(0)
    with Image.open(sink) as img:
        assert img.n_frames == 2
        assert "loop" not in img.info


def test_repeat_finite(make_frame):
    sink = io.BytesIO()
    encoder = GifEncoder(sink, repeat=3)
    encoder.encode(make_frame(color=(255, 0, 0, 255)))
    encoder.encode(make_frame(color=(0, 0, 255, 255)))
    encoder.finish()

    sink.seek(0)
    with Image.open(sink) as img:
        assert img.info.get("loop") == 3


def test_file_incomplete_until_finish(make_frame, tmp_path):
    path = tmp_path / "out.gif"
    encoder = GifEncoder(path)
    encoder.encode(make_frame(1))
    assert path.stat().st_size == 0
    encoder.finish()
    assert path.stat().st_size > 0


def test_finish_without_frames(tmp_path):
    path = tmp_path / "empty.gif"
    encoder = GifEncoder(path)
    encoder.finish()
    assert path.stat().st_size == 0


def test_repeat_parse():
    assert Repeat.parse("infinite") == Repeat.infinite()
    assert Repeat.parse(None) == Repeat.none()
    assert Repeat.parse("2") == Repeat.finite(2)
    assert Repeat.finite(4).save_options() == {"loop": 4}
    assert Repeat.none().save_options() == {}
    with pytest.raises(ConfigurationError):
        Repeat.parse("sometimes")
    with pytest.raises(ConfigurationError):
        Repeat.parse(0)
    with pytest.raises(ConfigurationError):
        Repeat.parse(True)


def test_invalid_configuration(tmp_path):
    with pytest.raises(ConfigurationError):
        GifEncoder(tmp_path / "a.gif", frame_duration_ms=0)
    with pytest.raises(ConfigurationError):
        GifEncoder(object())


def test_identical_frames_fold_into_one_step(make_frame):
    """Repeated frames become one longer step; total playback time is kept."""
    sink = io.BytesIO()
    encoder = GifEncoder(sink, frame_duration_ms=100)
    red = make_frame(color=(255, 0, 0, 255))
    for _ in range(3):
        encoder.encode(red)
    encoder.encode(make_frame(color=(0, 0, 255, 255)))
    assert encoder.frame_count == 4
    encoder.finish()

    sink.seek(0)
    with Image.open(sink) as img:
        assert img.n_frames == 2
        durations = []
        for index in range(img.n_frames):
            img.seek(index)
            durations.append(img.info["duration"])
    assert durations == [300, 100]


def test_buffer_released_after_finish(make_frame, tmp_path):
    encoder = GifEncoder(tmp_path / "out.gif")
    encoder.encode(make_frame(1))
    encoder.encode(make_frame(2))
    assert encoder.buffered_frames == 2
    encoder.finish()
    assert encoder.buffered_frames == 0
    assert encoder.frame_count == 2
