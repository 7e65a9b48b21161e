"""Capture session: per-target state machine driving one encoder worker."""

import threading
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from ..adapters.composite_encoder import CompositeEncoder
from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService
from .encoder_worker import EncodeFailure, EncoderWorker
from .errors import AlreadyCapturingError, ConfigurationError, SessionClosedError
from .frame import Frame
from .frame_channel import FrameChannel, OverflowPolicy


class CaptureState(Enum):
    """Capture session lifecycle."""
    IDLE = "idle"
    CAPTURING = "capturing"
    STOPPING = "stopping"
    FINISHED = "finished"


class CaptureSession:
    """Manages capture lifecycle for one target (e.g. one camera).

    IDLE --start()--> CAPTURING --stop()--> STOPPING --worker done--> IDLE
    close() from any state --> FINISHED (terminal)

    Called from the host thread. submit_frame() never waits on the encoder.
    """

    def __init__(
        self,
        target_id: str = "default",
        logger: Optional[LoggingService] = None,
        max_consecutive_errors: Optional[int] = None,
    ):
        self.target_id = target_id
        self.logger = logger or LoggingService()
        self.max_consecutive_errors = max_consecutive_errors

        self._state = CaptureState.IDLE
        self._paused = False
        self._channel: Optional[FrameChannel] = None
        self._worker: Optional[EncoderWorker] = None
        self._lock = threading.Lock()
        self._generation = 0

    # ------------------------------------------------------------------ control

    def start(
        self,
        encoder: Union[EncoderPort, Sequence[EncoderPort]],
        max_frames: Optional[int] = None,
        overflow: Union[str, OverflowPolicy] = OverflowPolicy.DROP_OLDEST,
    ) -> None:
        """Start capturing into encoder (or a list of encoders).

        Raises:
            ConfigurationError: encoder/channel arguments are invalid (session stays IDLE)
            AlreadyCapturingError: session is CAPTURING or STOPPING
            SessionClosedError: session was closed
        """
        with self._lock:
            self._refresh_state()
            if self._state is CaptureState.FINISHED:
                raise SessionClosedError(f"Capture session {self.target_id} is closed")
            if self._state is not CaptureState.IDLE:
                raise AlreadyCapturingError(
                    f"Capture session {self.target_id} is already {self._state.value}"
                )

            encoder = self._coerce_encoder(encoder)
            channel = FrameChannel(max_frames=max_frames, overflow=overflow)

            self._generation += 1
            worker = EncoderWorker(
                encoder,
                channel,
                logger=self.logger,
                name=f"capture-{self.target_id}-{self._generation}",
                max_consecutive_errors=self.max_consecutive_errors,
            )
            worker.start()

            self._channel = channel
            self._worker = worker
            self._paused = False
            self._state = CaptureState.CAPTURING

        bound = f"max_frames={max_frames} overflow={channel.overflow.value}" if max_frames else "unbounded"
        self.logger.info(
            f"[Session] {self.target_id} capturing with {type(encoder).__name__} ({bound})"
        )

    def stop(self) -> None:
        """Close the channel and let the worker drain and finish on its own.

        Does not wait for finish(). No-op unless CAPTURING.
        """
        with self._lock:
            if self._state is not CaptureState.CAPTURING:
                self.logger.debug(f"[Session] {self.target_id} stop() ignored in state {self._state.value}")
                return
            self._channel.close()
            self._paused = False
            self._state = CaptureState.STOPPING
        self.logger.info(f"[Session] {self.target_id} stopping (worker draining)")

    def pause(self) -> None:
        """Drop submitted frames until resume(). Only meaningful while CAPTURING."""
        with self._lock:
            if self._state is CaptureState.CAPTURING and not self._paused:
                self._paused = True
                self.logger.info(f"[Session] {self.target_id} paused")

    def resume(self) -> None:
        with self._lock:
            if self._state is CaptureState.CAPTURING and self._paused:
                self._paused = False
                self.logger.info(f"[Session] {self.target_id} resumed")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current worker has finished. Does not stop the session.

        Returns:
            True if no worker is running afterwards
        """
        with self._lock:
            worker = self._worker
        if worker is None:
            return True
        done = worker.join(timeout)
        if done:
            with self._lock:
                self._refresh_state()
        return done

    def close(self, timeout: Optional[float] = None) -> bool:
        """Destroy the session: stop, join the worker, enter FINISHED. Idempotent.

        Returns:
            True if the worker (if any) finished within timeout
        """
        self.stop()
        done = self.wait(timeout)
        if not done:
            self.logger.warning(
                f"[Session] {self.target_id} worker still running after {timeout}s; detaching"
            )
        with self._lock:
            if self._state is not CaptureState.FINISHED:
                self._state = CaptureState.FINISHED
                self.logger.info(f"[Session] {self.target_id} closed")
        return done

    def __enter__(self) -> "CaptureSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ host tick

    def submit_frame(self, frame: Frame) -> bool:
        """Hand a frame to the worker.

        Returns:
            True if queued; False if the session is not accepting frames
            (not CAPTURING, or paused) or the bounded channel rejected it
        """
        with self._lock:
            if self._state is not CaptureState.CAPTURING or self._paused:
                self.logger.debug(
                    f"[Session] {self.target_id} dropped frame (state={self._state.value}, paused={self._paused})"
                )
                return False
            # put() under the session lock so stop() cannot close the channel in between
            accepted = self._channel.put(frame)
        if not accepted:
            self.logger.debug(f"[Channel] {self.target_id} full, dropped newest frame")
        return accepted

    def accepting_frames(self) -> bool:
        """True while CAPTURING and not paused."""
        with self._lock:
            return self._state is CaptureState.CAPTURING and not self._paused

    # ------------------------------------------------------------------ queries

    @property
    def state(self) -> CaptureState:
        with self._lock:
            self._refresh_state()
            return self._state

    def is_capturing(self) -> bool:
        """True while CAPTURING or STOPPING."""
        return self.state in (CaptureState.CAPTURING, CaptureState.STOPPING)

    def is_paused(self) -> bool:
        with self._lock:
            return self._state is CaptureState.CAPTURING and self._paused

    def get_errors(self) -> List[EncodeFailure]:
        """Encode failures of the current (or most recent) capture."""
        with self._lock:
            worker = self._worker
        return worker.get_errors() if worker else []

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            self._refresh_state()
            state = self._state
            paused = self._paused
            channel = self._channel
            worker = self._worker
        return {
            "target_id": self.target_id,
            "state": state.value,
            "paused": paused,
            "frames_submitted": channel.frames_submitted if channel else 0,
            "frames_dropped": channel.frames_dropped if channel else 0,
            "queue_depth": channel.depth if channel else 0,
            "frames_encoded": worker.frames_encoded if worker else 0,
            "frames_failed": worker.frames_failed if worker else 0,
            "frames_skipped": worker.frames_skipped if worker else 0,
            "finished": worker.finished if worker else False,
        }

    # ------------------------------------------------------------------ internals

    def _refresh_state(self) -> None:
        """STOPPING -> IDLE once the worker has ended. Caller holds the lock."""
        if (
            self._state is CaptureState.STOPPING
            and self._worker is not None
            and not self._worker.is_alive()
        ):
            self._state = CaptureState.IDLE
            self.logger.info(f"[Session] {self.target_id} idle (worker finished)")

    def _coerce_encoder(self, encoder: Union[EncoderPort, Sequence[EncoderPort]]) -> EncoderPort:
        if isinstance(encoder, EncoderPort):
            return encoder
        if isinstance(encoder, (list, tuple)):
            return CompositeEncoder(encoder, logger=self.logger)
        raise ConfigurationError(f"Expected an encoder or a list of encoders, got {type(encoder).__name__}")
