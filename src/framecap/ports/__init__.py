"""Ports package."""

from .encoder_port import EncoderPort
from .frame_source_port import FrameSourcePort

__all__ = ['EncoderPort', 'FrameSourcePort']
