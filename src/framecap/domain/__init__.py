"""Domain package."""

from .errors import (
    AlreadyCapturingError,
    CaptureError,
    ChannelClosedError,
    CodecError,
    ConfigurationError,
    EncodeError,
    EncoderIOError,
    FrameMismatchError,
    SessionClosedError,
)
from .frame import Frame, FrameBufferAdapter, PixelBuffer, PixelFormat
from .frame_channel import FrameChannel, OverflowPolicy

__all__ = [
    'AlreadyCapturingError',
    'CaptureError',
    'ChannelClosedError',
    'CodecError',
    'ConfigurationError',
    'EncodeError',
    'EncoderIOError',
    'FrameMismatchError',
    'SessionClosedError',
    'Frame',
    'FrameBufferAdapter',
    'PixelBuffer',
    'PixelFormat',
    'FrameChannel',
    'OverflowPolicy',
]
