"""Unit tests for the CaptureSession state machine."""

import threading
import time
import pytest
import sys
from pathlib import Path

src = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(src))

from framecap.domain.capture_session import CaptureSession, CaptureState
from framecap.domain.errors import AlreadyCapturingError, ConfigurationError, SessionClosedError


def test_initial_state_is_idle():
    session = CaptureSession("cam0")
    assert session.state is CaptureState.IDLE
    assert session.is_capturing() is False
    assert session.is_paused() is False
    assert session.get_errors() == []


def test_start_submit_stop_delivers_all_frames_in_order(recording_encoder, make_frame):
    encoder = recording_encoder()
    session = CaptureSession("cam0")
    session.start(encoder)
    assert session.state is CaptureState.CAPTURING
    assert session.is_capturing()

    frames = [make_frame(i) for i in range(50)]
    assert all(session.submit_frame(f) for f in frames)
    session.stop()

    assert session.wait(timeout=5)
    assert session.state is CaptureState.IDLE
    assert encoder.frames == frames
    assert encoder.finish_count == 1
    metrics = session.get_metrics()
    assert metrics["frames_submitted"] == 50
    assert metrics["frames_encoded"] == 50
    assert metrics["finished"] is True


def test_stop_is_idempotent_and_safe_when_idle(recording_encoder):
    session = CaptureSession()
    session.stop()
    session.stop()
    assert session.state is CaptureState.IDLE

    encoder = recording_encoder()
    session.start(encoder)
    session.stop()
    session.stop()
    assert session.wait(timeout=5)
    session.stop()
    assert encoder.finish_count == 1


def test_start_while_capturing_rejected_original_keeps_running(recording_encoder, make_frame):
    first = recording_encoder()
    second = recording_encoder()
    session = CaptureSession()
    session.start(first)
    session.submit_frame(make_frame(1))

    with pytest.raises(AlreadyCapturingError):
        session.start(second)

    assert session.state is CaptureState.CAPTURING
    session.submit_frame(make_frame(2))
    session.stop()
    assert session.wait(timeout=5)
    assert len(first.frames) == 2
    assert second.frames == [] and second.finish_count == 0


def test_start_rejected_while_stopping(recording_encoder, make_frame):
    gate = threading.Event()
    encoder = recording_encoder(gate=gate)
    session = CaptureSession()
    session.start(encoder)
    session.submit_frame(make_frame(0))
    session.stop()
    assert session.state is CaptureState.STOPPING
    assert session.is_capturing()

    with pytest.raises(AlreadyCapturingError):
        session.start(recording_encoder())

    gate.set()
    assert session.wait(timeout=5)
    assert session.state is CaptureState.IDLE


def test_stop_does_not_wait_for_finish(recording_encoder, make_frame):
    """stop() returns while the worker is still blocked in encode()."""
    gate = threading.Event()
    encoder = recording_encoder(gate=gate)
    session = CaptureSession()
    session.start(encoder)
    session.submit_frame(make_frame(0))

    started = time.monotonic()
    session.stop()
    assert time.monotonic() - started < 0.5
    assert encoder.finish_count == 0

    gate.set()
    assert session.wait(timeout=5)
    assert encoder.finish_count == 1


def test_frames_outside_capturing_are_dropped(recording_encoder, make_frame):
    encoder = recording_encoder()
    session = CaptureSession()
    assert session.submit_frame(make_frame(0)) is False

    session.start(encoder)
    session.submit_frame(make_frame(1))
    session.stop()
    assert session.submit_frame(make_frame(2)) is False
    assert session.wait(timeout=5)
    assert session.submit_frame(make_frame(3)) is False
    assert [f for f in encoder.frames] == [make_frame(1)]


def test_pause_and_resume(recording_encoder, make_frame):
    encoder = recording_encoder()
    session = CaptureSession()
    session.pause()  # no-op while idle
    assert not session.is_paused()

    session.start(encoder)
    session.submit_frame(make_frame(1))
    session.pause()
    assert session.is_paused()
    assert session.submit_frame(make_frame(2)) is False
    session.resume()
    assert not session.is_paused()
    session.submit_frame(make_frame(3))
    session.stop()
    assert session.wait(timeout=5)
    assert encoder.frames == [make_frame(1), make_frame(3)]


def test_restart_after_worker_finished(recording_encoder, make_frame):
    session = CaptureSession()
    first = recording_encoder()
    session.start(first)
    session.submit_frame(make_frame(1))
    session.stop()
    assert session.wait(timeout=5)

    second = recording_encoder()
    session.start(second)
    session.submit_frame(make_frame(2))
    session.stop()
    assert session.wait(timeout=5)

    assert first.frames == [make_frame(1)]
    assert second.frames == [make_frame(2)]
    assert first.finish_count == second.finish_count == 1


def test_start_with_invalid_encoder_stays_idle():
    session = CaptureSession()
    with pytest.raises(ConfigurationError):
        session.start("not an encoder")
    with pytest.raises(ConfigurationError):
        session.start([])
    assert session.state is CaptureState.IDLE


def test_start_with_invalid_channel_settings_stays_idle(recording_encoder):
    encoder = recording_encoder()
    session = CaptureSession()
    with pytest.raises(ConfigurationError):
        session.start(encoder, max_frames=0)
    assert session.state is CaptureState.IDLE
    assert encoder.finish_count == 0


def test_start_with_list_uses_composite(recording_encoder, make_frame):
    a, b = recording_encoder(), recording_encoder()
    session = CaptureSession()
    session.start([a, b])
    session.submit_frame(make_frame(1))
    session.stop()
    assert session.wait(timeout=5)
    assert a.frames == b.frames == [make_frame(1)]
    assert a.finish_count == b.finish_count == 1


def test_bounded_drop_oldest_under_backpressure(recording_encoder, make_frame):
    """With the worker stuck on frame 0, only the newest max_frames survive."""
    gate = threading.Event()
    encoder = recording_encoder(gate=gate)
    session = CaptureSession()
    session.start(encoder, max_frames=2, overflow="drop_oldest")

    first = make_frame(0)
    session.submit_frame(first)
    deadline = time.monotonic() + 2
    while session.get_metrics()["queue_depth"] and time.monotonic() < deadline:
        time.sleep(0.01)  # worker has taken frame 0 and is blocked on the gate

    frames = [make_frame(i) for i in range(1, 6)]
    for f in frames:
        session.submit_frame(f)
    gate.set()
    session.stop()
    assert session.wait(timeout=5)

    assert encoder.frames == [first] + frames[-2:]
    assert session.get_metrics()["frames_dropped"] == 3


def test_errors_reported_through_session(recording_encoder, make_frame):
    encoder = recording_encoder(fail_on={0})
    session = CaptureSession()
    session.start(encoder)
    session.submit_frame(make_frame(0))
    session.submit_frame(make_frame(1))
    session.stop()
    assert session.wait(timeout=5)
    errors = session.get_errors()
    assert len(errors) == 1 and errors[0].frame_number == 0
    assert session.get_metrics()["frames_failed"] == 1


def test_close_joins_worker_and_finishes(recording_encoder, make_frame):
    encoder = recording_encoder()
    session = CaptureSession()
    session.start(encoder)
    session.submit_frame(make_frame(0))
    assert session.close(timeout=5) is True
    assert session.state is CaptureState.FINISHED
    assert encoder.finish_count == 1
    assert session.close() is True  # idempotent
    with pytest.raises(SessionClosedError):
        session.start(recording_encoder())
    assert session.submit_frame(make_frame(1)) is False


def test_context_manager_closes(recording_encoder, make_frame):
    encoder = recording_encoder()
    with CaptureSession("ctx") as session:
        session.start(encoder)
        session.submit_frame(make_frame(0))
    assert session.state is CaptureState.FINISHED
    assert encoder.finish_count == 1
    assert len(encoder.frames) == 1


def test_close_never_started():
    session = CaptureSession()
    assert session.close() is True
    assert session.state is CaptureState.FINISHED
