"""Frames encoder: writes every frame as its own numbered still image (OpenCV)."""

from pathlib import Path
from typing import Optional, Union

import cv2

from ..domain.errors import CodecError, ConfigurationError, EncoderIOError
from ..domain.frame import Frame
from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService

DEFAULT_PATTERN = "frame_{index:06d}.png"

# Extensions cv2.imwrite can encode; the first group keeps the alpha channel
_ALPHA_EXTENSIONS = {".png", ".tif", ".tiff", ".webp"}
_OPAQUE_EXTENSIONS = {".jpg", ".jpeg", ".bmp"}


class FramesEncoder(EncoderPort):
    """
    Writes frames to <directory>/<pattern.format(index=n)>, n counting up from start_index.
    Each file is complete on its own, so finish() has nothing to flush.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        pattern: str = DEFAULT_PATTERN,
        start_index: int = 0,
        logger: Optional[LoggingService] = None,
    ):
        self.directory = Path(directory)
        self.pattern = pattern
        self.logger = logger or LoggingService()
        self._validate(pattern, start_index)
        self.start_index = int(start_index)
        self._next_index = self.start_index
        self._frame_count = 0
        self._alpha = Path(pattern.format(index=0)).suffix.lower() in _ALPHA_EXTENSIONS

    @staticmethod
    def _validate(pattern: str, start_index: int) -> None:
        try:
            first = pattern.format(index=0)
            second = pattern.format(index=1)
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(f"Invalid frame naming pattern {pattern!r}: {e}") from e
        if first == second:
            raise ConfigurationError(f"Frame naming pattern {pattern!r} must contain an {{index}} field")
        suffix = Path(first).suffix.lower()
        if suffix not in _ALPHA_EXTENSIONS | _OPAQUE_EXTENSIONS:
            raise ConfigurationError(f"Unsupported still image extension {suffix!r} in {pattern!r}")
        if int(start_index) < 0:
            raise ConfigurationError(f"start_index must be >= 0, got {start_index}")

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def frame_count(self) -> int:
        """Number of files written successfully."""
        return self._frame_count

    def path_for(self, index: int) -> Path:
        return self.directory / self.pattern.format(index=index)

    def encode(self, frame: Frame) -> None:
        """Write frame as the next numbered image. The index advances even if the write fails."""
        path = self.path_for(self._next_index)
        self._next_index += 1

        image = frame.to_bgra() if self._alpha else frame.to_bgr()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            success = cv2.imwrite(str(path), image)
        except OSError as e:
            raise EncoderIOError(f"Failed to write {path}: {e}") from e
        except cv2.error as e:
            raise CodecError(f"OpenCV could not encode {path}: {e}") from e
        if not success:
            raise EncoderIOError(f"cv2.imwrite failed for {path}")
        self._frame_count += 1
        self.logger.debug(f"[FramesEncoder] Wrote {path}")

    def finish(self) -> None:
        """No-op: every image is already complete."""
        self.logger.info(f"[FramesEncoder] Wrote {self._frame_count} frames to {self.directory}")
