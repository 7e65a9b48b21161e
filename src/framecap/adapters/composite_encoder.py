"""Composite encoder: fans one frame stream out to several encoders."""

from typing import List, Optional, Sequence

from ..domain.errors import ConfigurationError, EncodeError
from ..domain.frame import Frame
from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService


class CompositeEncoder(EncoderPort):
    """Runs several encoders on the same worker, e.g. GIF + MP4 + PNG frames in one capture."""

    def __init__(self, encoders: Sequence[EncoderPort], logger: Optional[LoggingService] = None):
        encoders = list(encoders)
        if not encoders:
            raise ConfigurationError("CompositeEncoder needs at least one encoder")
        for encoder in encoders:
            if not isinstance(encoder, EncoderPort):
                raise ConfigurationError(f"Not an encoder: {encoder!r}")
        self.encoders: List[EncoderPort] = encoders
        self.logger = logger or LoggingService()

    def encode(self, frame: Frame) -> None:
        """Encode with every child; a failing child does not starve the others."""
        errors = []
        for encoder in self.encoders:
            try:
                encoder.encode(frame)
            except EncodeError as e:
                errors.append((encoder, e))
        if len(errors) == 1:
            raise errors[0][1]
        if errors:
            details = "; ".join(f"{type(enc).__name__}: {err}" for enc, err in errors)
            raise EncodeError(f"{len(errors)} encoders failed: {details}")

    def finish(self) -> None:
        for encoder in self.encoders:
            try:
                encoder.finish()
            except Exception as e:
                self.logger.error(
                    f"[CompositeEncoder] {type(encoder).__name__}.finish() raised: {e}", exc_info=True
                )
