"""Pytest fixtures for framecap tests."""

import sys
import threading
from pathlib import Path

import numpy as np
import pytest

src = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(src))

from framecap.domain.errors import EncodeError, FrameMismatchError
from framecap.domain.frame import FrameBufferAdapter
from framecap.ports.encoder_port import EncoderPort


class RecordingEncoder(EncoderPort):
    """Records every call; optionally fails on chosen frame numbers or blocks until released."""

    def __init__(self, fail_on=(), gate=None, finish_raises=False):
        self.frames = []
        self.calls = []
        self.finish_count = 0
        self.fail_on = set(fail_on)
        self.gate = gate
        self.finish_raises = finish_raises
        self.finished = threading.Event()
        self._seen = 0

    def encode(self, frame):
        if self.gate is not None:
            self.gate.wait()
        number = self._seen
        self._seen += 1
        self.calls.append(("encode", number))
        if number in self.fail_on:
            raise FrameMismatchError(f"bad frame {number}")
        self.frames.append(frame)

    def finish(self):
        self.calls.append(("finish", None))
        self.finish_count += 1
        self.finished.set()
        if self.finish_raises:
            raise RuntimeError("finish blew up")


class AlwaysFailingEncoder(EncoderPort):
    """Rejects every frame."""

    def __init__(self):
        self.encode_calls = 0
        self.finish_count = 0

    def encode(self, frame):
        self.encode_calls += 1
        raise EncodeError("codec is broken")

    def finish(self):
        self.finish_count += 1


@pytest.fixture
def recording_encoder():
    """Factory for RecordingEncoder instances."""
    return RecordingEncoder


@pytest.fixture
def failing_encoder():
    return AlwaysFailingEncoder()


@pytest.fixture
def make_frame():
    """Factory: solid-colour RGBA frame of the given size; value tags the frame."""
    def _make(value=0, width=4, height=4, color=None):
        rgba = color if color is not None else (value % 256, (value * 7) % 256, (value * 13) % 256, 255)
        array = np.empty((height, width, 4), dtype=np.uint8)
        array[:] = rgba
        return FrameBufferAdapter.from_array(array, "rgba")
    return _make
