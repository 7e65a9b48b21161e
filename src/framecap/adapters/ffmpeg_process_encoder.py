"""Video encoder that pipes raw frames into an external ffmpeg process."""

import subprocess
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..domain.errors import ConfigurationError, EncoderIOError, FrameMismatchError
from ..domain.frame import Frame
from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService

DEFAULT_OUTPUT_ARGS = ("-c:v", "libx264", "-pix_fmt", "yuv420p", "-crf", "23")

# Raw layouts ffmpeg is told to expect on stdin
_RAW_LAYOUTS = {
    "rgba": lambda frame: frame.to_rgba(),
    "bgra": lambda frame: frame.to_bgra(),
    "rgb24": lambda frame: frame.to_rgb(),
    "bgr24": lambda frame: frame.to_bgr(),
}

_MAX_STDERR = 1024 * 1024  # 1 MB cap


class FfmpegProcessEncoder(EncoderPort):
    """
    Spawns `ffmpeg -f rawvideo ... -i - <output_args> <output_path>` at construction
    and writes each frame to its stdin. Writes block when ffmpeg falls behind (OS pipe
    back-pressure); that only ever stalls the encoder worker, never the host.
    """

    def __init__(
        self,
        output_path: Union[str, Path],
        width: int,
        height: int,
        fps: Union[int, float] = 60,
        pixel_format: str = "rgba",
        binary: str = "ffmpeg",
        output_args: Optional[Sequence[str]] = None,
        logger: Optional[LoggingService] = None,
    ):
        self.logger = logger or LoggingService()
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Video dimensions must be positive, got {width}x{height}")
        if not fps or fps <= 0:
            raise ConfigurationError(f"fps must be > 0, got {fps}")
        pixel_format = str(pixel_format).lower()
        if pixel_format not in _RAW_LAYOUTS:
            raise ConfigurationError(
                f"Unsupported raw pixel format {pixel_format!r} (expected one of {sorted(_RAW_LAYOUTS)})"
            )

        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.pixel_format = pixel_format
        self.command = self._build_command(
            binary, DEFAULT_OUTPUT_ARGS if output_args is None else output_args
        )
        self._serialize = _RAW_LAYOUTS[pixel_format]
        self._frame_count = 0
        self._broken = False
        self._stderr_chunks: List[bytes] = []
        self._stderr_size = 0

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ConfigurationError(f"ffmpeg binary not found: {binary!r}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to start {binary!r}: {e}") from e

        # Drain stderr in a background thread to prevent pipe buffer deadlock
        self._stderr_thread = threading.Thread(target=self._drain_stderr, daemon=True)
        self._stderr_thread.start()
        self.logger.info(
            f"[FfmpegEncoder] Started pid={self.process.pid} -> {self.output_path} "
            f"{width}x{height} {pixel_format} @ {fps}fps"
        )

    def _build_command(self, binary: str, output_args: Sequence[str]) -> List[str]:
        return [
            binary,
            "-y",  # overwrite output
            "-loglevel", "error",
            "-f", "rawvideo",
            "-pix_fmt", self.pixel_format,
            "-s", f"{self.width}x{self.height}",
            "-framerate", str(self.fps),
            "-i", "-",  # stdin
            *[str(arg) for arg in output_args],
            str(self.output_path),
        ]

    def _drain_stderr(self) -> None:
        """Read stderr continuously so ffmpeg never blocks on a full pipe."""
        for chunk in iter(lambda: self.process.stderr.read(4096), b""):
            if self._stderr_size < _MAX_STDERR:
                self._stderr_chunks.append(chunk)
                self._stderr_size += len(chunk)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def stderr_text(self) -> str:
        return b"".join(self._stderr_chunks).decode(errors="replace")

    def encode(self, frame: Frame) -> None:
        if (frame.width, frame.height) != (self.width, self.height):
            raise FrameMismatchError(
                f"ffmpeg expects {self.width}x{self.height}, got frame {frame.width}x{frame.height}"
            )
        if self._broken:
            raise EncoderIOError(f"ffmpeg stdin already closed (exit={self.process.poll()})")
        try:
            self.process.stdin.write(self._serialize(frame).tobytes())
        except (BrokenPipeError, OSError, ValueError) as e:
            self._broken = True
            raise EncoderIOError(f"Failed to write frame to ffmpeg: {e}") from e
        self._frame_count += 1

    def finish(self) -> None:
        """Close input and wait for ffmpeg to finish encoding. Failures are logged, not raised."""
        try:
            if self.process.stdin and not self.process.stdin.closed:
                self.process.stdin.close()
        except (BrokenPipeError, OSError) as e:
            self.logger.warning(f"[FfmpegEncoder] Closing stdin failed: {e}")
        returncode = self.process.wait()
        self._stderr_thread.join(timeout=5)
        if returncode != 0:
            self.logger.error(
                f"[FfmpegEncoder] ffmpeg exited with {returncode}; {self.output_path} is incomplete:\n"
                f"{self.stderr_text[-2000:]}"
            )
            return
        self.logger.info(f"[FfmpegEncoder] Wrote {self._frame_count} frames to {self.output_path}")
