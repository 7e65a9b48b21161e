"""
Software video encoder: H.264 (libx264 via PyAV) muxed into an MP4 container.
Frames are converted from packed RGBA to planar yuv420p before encoding.
"""

from fractions import Fraction
from pathlib import Path
from typing import BinaryIO, Optional, Union

import av

from ..domain.errors import CodecError, ConfigurationError, EncoderIOError, FrameMismatchError
from ..domain.frame import Frame
from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService

CODEC_PIXEL_FORMAT = "yuv420p"


class VideoSoftwareEncoder(EncoderPort):
    """Encodes frames of a fixed size at a fixed frame rate into a video container."""

    def __init__(
        self,
        sink: Union[str, Path, BinaryIO],
        width: int,
        height: int,
        fps: Union[int, float, Fraction] = 60,
        bitrate: Optional[int] = None,
        crf: int = 23,
        codec: str = "libx264",
        container_format: str = "mp4",
        logger: Optional[LoggingService] = None,
    ):
        self.logger = logger or LoggingService()
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Video dimensions must be positive, got {width}x{height}")
        if width % 2 or height % 2:
            raise ConfigurationError(f"{CODEC_PIXEL_FORMAT} needs even dimensions, got {width}x{height}")
        if not fps or fps <= 0:
            raise ConfigurationError(f"fps must be > 0, got {fps}")
        if bitrate is not None and int(bitrate) <= 0:
            raise ConfigurationError(f"bitrate must be > 0, got {bitrate}")
        if not 0 <= int(crf) <= 51:
            raise ConfigurationError(f"crf must be within 0..51, got {crf}")

        self.width = width
        self.height = height
        self.rate = Fraction(fps).limit_denominator(1001)
        self.time_base = 1 / self.rate
        self.codec = codec
        self._frame_count = 0

        if isinstance(sink, (str, Path)):
            self.target = str(sink)
            Path(sink).parent.mkdir(parents=True, exist_ok=True)
        else:
            self.target = sink
        self._label = self.target if isinstance(self.target, str) else "<stream>"

        try:
            self._container = av.open(self.target, mode="w", format=container_format)
        except (av.FFmpegError, OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot open {container_format} container {self._label}: {e}") from e

        try:
            self._stream = self._container.add_stream(codec, rate=self.rate)
            context = self._stream.codec_context
            context.width = width
            context.height = height
            context.pix_fmt = CODEC_PIXEL_FORMAT
            context.time_base = self.time_base
            if bitrate is not None:
                context.bit_rate = int(bitrate)
            else:
                context.options = {"crf": str(int(crf))}
        except (av.FFmpegError, ValueError, TypeError) as e:
            self._container.close()
            raise ConfigurationError(f"Cannot set up {codec} stream: {e}") from e

        self.logger.info(
            f"[VideoEncoder] Opened {self._label} {codec} {width}x{height} @ {float(self.rate):g}fps"
        )

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def expected_duration(self) -> float:
        """Seconds of video represented by the frames encoded so far."""
        return float(self._frame_count / self.rate)

    def encode(self, frame: Frame) -> None:
        if (frame.width, frame.height) != (self.width, self.height):
            raise FrameMismatchError(
                f"Video stream is {self.width}x{self.height}, got frame {frame.width}x{frame.height}"
            )
        try:
            video_frame = av.VideoFrame.from_ndarray(frame.to_rgba().copy(), format="rgba")
            video_frame = video_frame.reformat(format=CODEC_PIXEL_FORMAT)
            video_frame.pts = self._frame_count
            video_frame.time_base = self.time_base
            # The codec may hold several frames before emitting packets
            for packet in self._stream.encode(video_frame):
                self._container.mux(packet)
        except av.FFmpegError as e:
            if isinstance(e, OSError):
                raise EncoderIOError(f"Muxer I/O failed for {self._label}: {e}") from e
            raise CodecError(f"{self.codec} rejected frame {self._frame_count}: {e}") from e
        except OSError as e:
            raise EncoderIOError(f"Muxer I/O failed for {self._label}: {e}") from e
        self._frame_count += 1

    def finish(self) -> None:
        """Flush buffered frames, write the container trailer and close it."""
        try:
            for packet in self._stream.encode(None):
                self._container.mux(packet)
        except (av.FFmpegError, OSError) as e:
            self.logger.error(f"[VideoEncoder] Failed to flush {self._label}: {e}")
        try:
            self._container.close()
            self.logger.info(
                f"[VideoEncoder] Closed {self._label}, wrote {self._frame_count} frames "
                f"({self.expected_duration:.2f}s)"
            )
        except (av.FFmpegError, OSError) as e:
            self.logger.error(f"[VideoEncoder] Failed to close {self._label}: {e}")
