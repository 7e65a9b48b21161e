"""Encoder port interface for turning a frame sequence into an artifact."""

from abc import ABC, abstractmethod

from ..domain.frame import Frame


class EncoderPort(ABC):
    """Port interface for frame encoders.

    An encoder is handed to CaptureSession.start() and from then on is only
    touched by that session's worker thread, so implementations need no locking.
    """

    @abstractmethod
    def encode(self, frame: Frame) -> None:
        """Encode one frame. Frames arrive in submission order.

        Args:
            frame: Immutable canonical frame

        Raises:
            FrameMismatchError: frame disagrees with the stream's fixed dimensions/format
            EncoderIOError: sink, file or process I/O failed
            CodecError: the codec rejected the frame
        """
        pass

    @abstractmethod
    def finish(self) -> None:
        """Flush, write trailers and release the sink.

        Called exactly once, after the last encode(). Must not raise: flush or
        close failures are logged by the implementation.
        """
        pass
