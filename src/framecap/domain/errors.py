"""Error types raised by capture sessions, channels and encoders."""


class CaptureError(Exception):
    """Base class for all framecap errors."""


class ConfigurationError(CaptureError, ValueError):
    """Malformed encoder or session configuration, detected before any frame is processed."""


class AlreadyCapturingError(CaptureError, RuntimeError):
    """start() called on a session that is already capturing or still stopping."""


class SessionClosedError(CaptureError, RuntimeError):
    """Operation on a session that has been closed (FINISHED)."""


class ChannelClosedError(CaptureError, RuntimeError):
    """put() on a frame channel after close()."""


class EncodeError(CaptureError):
    """Per-frame encoding failure. Recorded by the worker, never fatal to the session."""


class FrameMismatchError(EncodeError):
    """Frame dimensions/format disagree with the stream's fixed parameters."""


class EncoderIOError(EncodeError):
    """Sink, file or external process I/O failure."""


class CodecError(EncodeError):
    """Underlying codec rejected data it cannot represent."""
