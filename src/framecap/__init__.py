"""framecap - capture rendered frames into still images, animated GIFs and video."""

from .domain import (
    AlreadyCapturingError,
    CaptureError,
    CodecError,
    ConfigurationError,
    EncodeError,
    EncoderIOError,
    Frame,
    FrameBufferAdapter,
    FrameChannel,
    FrameMismatchError,
    OverflowPolicy,
    PixelBuffer,
    PixelFormat,
    SessionClosedError,
)
from .domain.capture_service import CaptureService
from .domain.capture_session import CaptureSession, CaptureState
from .domain.encoder_worker import EncodeFailure, EncoderWorker
from .ports.encoder_port import EncoderPort

__version__ = "0.1.0"

__all__ = [
    'AlreadyCapturingError',
    'CaptureError',
    'CaptureService',
    'CaptureSession',
    'CaptureState',
    'CodecError',
    'ConfigurationError',
    'EncodeError',
    'EncodeFailure',
    'EncoderIOError',
    'EncoderPort',
    'EncoderWorker',
    'Frame',
    'FrameBufferAdapter',
    'FrameChannel',
    'FrameMismatchError',
    'OverflowPolicy',
    'PixelBuffer',
    'PixelFormat',
    'SessionClosedError',
]
