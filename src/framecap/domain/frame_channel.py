"""
FrameChannel - single-producer / single-consumer FIFO between a capture
session (host thread) and its encoder worker.

put() never waits on the consumer. By default the channel is unbounded;
with max_frames set, an explicit overflow policy decides which frame is
dropped when the consumer falls behind.
"""

import threading
from collections import deque
from enum import Enum
from typing import Optional, Union

from .errors import ChannelClosedError, ConfigurationError
from .frame import Frame


class OverflowPolicy(Enum):
    """What a bounded channel does with a frame that arrives while full."""
    DROP_OLDEST = "drop_oldest"
    DROP_NEWEST = "drop_newest"

    @classmethod
    def parse(cls, value: Union[str, "OverflowPolicy"]) -> "OverflowPolicy":
        if isinstance(value, OverflowPolicy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown overflow policy {value!r} (expected 'drop_oldest' or 'drop_newest')"
            ) from None


class FrameChannel:
    """Closable FIFO of frames guarded by a single condition variable."""

    def __init__(
        self,
        max_frames: Optional[int] = None,
        overflow: Union[str, OverflowPolicy] = OverflowPolicy.DROP_OLDEST,
    ):
        if max_frames is not None:
            try:
                max_frames = int(max_frames)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"max_frames must be an integer or None, got {max_frames!r}") from e
            if max_frames < 1:
                raise ConfigurationError(f"max_frames must be >= 1 or None, got {max_frames}")
        self.max_frames = max_frames
        self.overflow = OverflowPolicy.parse(overflow)
        self._frames: deque = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._frames_submitted = 0
        self._frames_dropped = 0

    def put(self, frame: Frame) -> bool:
        """Enqueue a frame without waiting on the consumer.

        Returns:
            True if the frame was queued, False if the overflow policy rejected it
        Raises:
            ChannelClosedError: channel already closed
        """
        with self._cond:
            if self._closed:
                raise ChannelClosedError("Cannot put a frame into a closed channel")
            self._frames_submitted += 1
            if self.max_frames is not None and len(self._frames) >= self.max_frames:
                self._frames_dropped += 1
                if self.overflow is OverflowPolicy.DROP_NEWEST:
                    return False
                self._frames.popleft()
            self._frames.append(frame)
            self._cond.notify()
            return True

    def get(self) -> Optional[Frame]:
        """Block until a frame is available; None once closed and drained."""
        with self._cond:
            while not self._frames and not self._closed:
                self._cond.wait()
            if self._frames:
                return self._frames.popleft()
            return None

    def close(self) -> None:
        """Stop accepting frames and wake the consumer. Idempotent."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def depth(self) -> int:
        with self._cond:
            return len(self._frames)

    @property
    def frames_submitted(self) -> int:
        with self._cond:
            return self._frames_submitted

    @property
    def frames_dropped(self) -> int:
        with self._cond:
            return self._frames_dropped
