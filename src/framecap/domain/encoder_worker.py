"""
EncoderWorker - dedicated thread that owns one encoder and the consumer end
of a FrameChannel. Drains frames in order, calls encode() for each, and calls
finish() exactly once when the channel is closed and empty.
"""

import threading
import time
from dataclasses import dataclass
from typing import List, Optional

from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService
from .errors import EncodeError
from .frame_channel import FrameChannel


@dataclass(frozen=True)
class EncodeFailure:
    """One failed encode() call."""
    frame_number: int  # 0-based position in submission order
    error: BaseException
    timestamp: float


class EncoderWorker:
    """Consumer side of a capture session.

    Per-frame errors are recorded, not fatal. With max_consecutive_errors set,
    the worker gives up on encode() after that many failures in a row but still
    drains the channel and finishes the encoder.
    """

    def __init__(
        self,
        encoder: EncoderPort,
        channel: FrameChannel,
        logger: Optional[LoggingService] = None,
        name: str = "encoder-worker",
        max_consecutive_errors: Optional[int] = None,
    ):
        self.encoder = encoder
        self.channel = channel
        self.logger = logger or LoggingService()
        self.name = name
        self.max_consecutive_errors = max_consecutive_errors
        self._errors: List[EncodeFailure] = []
        self._lock = threading.Lock()
        self._frames_encoded = 0
        self._frames_failed = 0
        self._frames_skipped = 0
        self._finished = False
        # Non-daemon: interpreter exit waits for finish() to write trailers
        self._thread = threading.Thread(target=self._run, name=name, daemon=False)

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker to end. Returns True if it has ended."""
        if self._thread.ident is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    @property
    def frames_encoded(self) -> int:
        with self._lock:
            return self._frames_encoded

    @property
    def frames_failed(self) -> int:
        with self._lock:
            return self._frames_failed

    @property
    def frames_skipped(self) -> int:
        with self._lock:
            return self._frames_skipped

    @property
    def finished(self) -> bool:
        """True once finish() has returned."""
        with self._lock:
            return self._finished

    def get_errors(self) -> List[EncodeFailure]:
        with self._lock:
            return list(self._errors)

    def _run(self) -> None:
        encoder_name = type(self.encoder).__name__
        self.logger.info(f"[Worker] {self.name} started ({encoder_name})")
        frame_number = 0
        consecutive_errors = 0
        gave_up = False

        while True:
            frame = self.channel.get()
            if frame is None:
                break

            if gave_up:
                with self._lock:
                    self._frames_skipped += 1
                frame_number += 1
                continue

            try:
                self.encoder.encode(frame)
            except EncodeError as e:
                self._record_failure(frame_number, e)
                self.logger.error(f"[Worker] {self.name} frame {frame_number}: {type(e).__name__}: {e}")
                consecutive_errors += 1
            except Exception as e:
                self._record_failure(frame_number, e)
                self.logger.error(
                    f"[Worker] {self.name} frame {frame_number}: unexpected encoder error: {e}",
                    exc_info=True,
                )
                consecutive_errors += 1
            else:
                with self._lock:
                    self._frames_encoded += 1
                consecutive_errors = 0
            frame_number += 1

            if (
                self.max_consecutive_errors is not None
                and consecutive_errors >= self.max_consecutive_errors
            ):
                gave_up = True
                self.logger.error(
                    f"[Worker] {self.name} giving up after {consecutive_errors} consecutive errors; "
                    "draining remaining frames"
                )

        try:
            self.encoder.finish()
        except Exception as e:
            self.logger.error(f"[Worker] {self.name} finish() raised: {e}", exc_info=True)
        with self._lock:
            self._finished = True
        self.logger.info(
            f"[Worker] {self.name} finished: encoded={self.frames_encoded} "
            f"failed={self.frames_failed} skipped={self.frames_skipped}"
        )

    def _record_failure(self, frame_number: int, error: BaseException) -> None:
        with self._lock:
            self._frames_failed += 1
            self._errors.append(EncodeFailure(frame_number, error, time.time()))
