"""
Frame model and frame buffer adapter.
Turns host pixel buffers (any supported layout, optionally row-padded) into
immutable canonical RGBA8 frames that encoders consume.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np

from .errors import ConfigurationError, FrameMismatchError

BytesLike = Union[bytes, bytearray, memoryview, np.ndarray]


class PixelFormat(Enum):
    """Pixel layouts a host may hand over (8 bits per channel)."""
    RGBA8 = "rgba8"
    BGRA8 = "bgra8"
    RGB8 = "rgb8"
    BGR8 = "bgr8"
    GRAY8 = "gray8"

    @property
    def bytes_per_pixel(self) -> int:
        return _BYTES_PER_PIXEL[self]

    @classmethod
    def parse(cls, value: Union[str, "PixelFormat"]) -> "PixelFormat":
        """Accept a PixelFormat or a case-insensitive name/alias ('rgba', 'BGRA8', 'gray')."""
        if isinstance(value, PixelFormat):
            return value
        key = str(value).strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        raise ConfigurationError(f"Unknown pixel format: {value!r}")


_BYTES_PER_PIXEL = {
    PixelFormat.RGBA8: 4,
    PixelFormat.BGRA8: 4,
    PixelFormat.RGB8: 3,
    PixelFormat.BGR8: 3,
    PixelFormat.GRAY8: 1,
}

_ALIASES = {
    "rgba8": PixelFormat.RGBA8, "rgba": PixelFormat.RGBA8,
    "bgra8": PixelFormat.BGRA8, "bgra": PixelFormat.BGRA8,
    "rgb8": PixelFormat.RGB8, "rgb": PixelFormat.RGB8, "rgb24": PixelFormat.RGB8,
    "bgr8": PixelFormat.BGR8, "bgr": PixelFormat.BGR8, "bgr24": PixelFormat.BGR8,
    "gray8": PixelFormat.GRAY8, "gray": PixelFormat.GRAY8, "grey": PixelFormat.GRAY8,
}


def _to_rgba(pixels: np.ndarray, pixel_format: PixelFormat) -> np.ndarray:
    """Convert an (h, w, c) uint8 array in pixel_format to (h, w, 4) RGBA."""
    if pixel_format is PixelFormat.RGBA8:
        return pixels
    if pixel_format is PixelFormat.BGRA8:
        return np.ascontiguousarray(pixels[..., [2, 1, 0, 3]])
    alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=np.uint8)
    if pixel_format is PixelFormat.RGB8:
        return np.concatenate([pixels, alpha], axis=2)
    if pixel_format is PixelFormat.BGR8:
        return np.concatenate([pixels[..., ::-1], alpha], axis=2)
    gray = pixels.reshape(pixels.shape[0], pixels.shape[1], 1)
    return np.concatenate([gray, gray, gray, alpha], axis=2)


@dataclass(frozen=True)
class PixelBuffer:
    """A raw pixel buffer exactly as the host produced it.

    bytes_per_row may exceed width * bytes_per_pixel when the host pads rows
    (GPU readback aligns rows to 256 bytes).
    """
    width: int
    height: int
    pixel_format: PixelFormat
    data: BytesLike
    bytes_per_row: Optional[int] = None


@dataclass(frozen=True)
class Frame:
    """Immutable frame: dimensions, pixel format and tightly packed bytes."""
    width: int
    height: int
    pixel_format: PixelFormat
    data: bytes

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise FrameMismatchError(f"Invalid frame dimensions {self.width}x{self.height}")
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))
        expected = self.width * self.height * self.pixel_format.bytes_per_pixel
        if len(self.data) != expected:
            raise FrameMismatchError(
                f"Frame buffer is {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} {self.pixel_format.value}"
            )

    @property
    def size(self) -> tuple:
        """(width, height)."""
        return (self.width, self.height)

    def array(self) -> np.ndarray:
        """Read-only numpy view: (h, w, channels), or (h, w) for GRAY8."""
        flat = np.frombuffer(self.data, dtype=np.uint8)
        bpp = self.pixel_format.bytes_per_pixel
        if bpp == 1:
            return flat.reshape(self.height, self.width)
        return flat.reshape(self.height, self.width, bpp)

    def to_rgba(self) -> np.ndarray:
        """(h, w, 4) RGBA array. Read-only when the frame already is RGBA8."""
        return _to_rgba(self.array(), self.pixel_format)

    def to_rgb(self) -> np.ndarray:
        return np.ascontiguousarray(self.to_rgba()[..., :3])

    def to_bgr(self) -> np.ndarray:
        return np.ascontiguousarray(self.to_rgba()[..., 2::-1])

    def to_bgra(self) -> np.ndarray:
        return np.ascontiguousarray(self.to_rgba()[..., [2, 1, 0, 3]])


class FrameBufferAdapter:
    """Converts host pixel buffers into canonical RGBA8 frames. Stateless."""

    canonical_format = PixelFormat.RGBA8

    @staticmethod
    def to_frame(buffer: PixelBuffer) -> Frame:
        """Copy a host buffer into a new canonical Frame, stripping row padding.

        Raises:
            FrameMismatchError: dimensions, stride or buffer length are inconsistent
        """
        pixel_format = PixelFormat.parse(buffer.pixel_format)
        width, height = int(buffer.width), int(buffer.height)
        if width <= 0 or height <= 0:
            raise FrameMismatchError(f"Invalid buffer dimensions {width}x{height}")

        bpp = pixel_format.bytes_per_pixel
        row_bytes = width * bpp
        stride = int(buffer.bytes_per_row) if buffer.bytes_per_row else row_bytes
        if stride < row_bytes:
            raise FrameMismatchError(
                f"bytes_per_row {stride} is smaller than a {width}px {pixel_format.value} row ({row_bytes})"
            )

        data = buffer.data
        if isinstance(data, np.ndarray):
            if data.dtype != np.uint8:
                raise FrameMismatchError(f"Pixel array must be uint8, got {data.dtype}")
            # Cropped host views are not C-contiguous
            raw = np.ascontiguousarray(data).reshape(-1)
        else:
            try:
                raw = np.frombuffer(data, dtype=np.uint8)
            except (TypeError, ValueError) as e:
                raise FrameMismatchError(f"Unreadable pixel buffer: {e}") from e
        # Last row may omit its padding
        needed = stride * (height - 1) + row_bytes
        if raw.size < needed:
            raise FrameMismatchError(
                f"Pixel buffer is {raw.size} bytes, need at least {needed} for "
                f"{width}x{height} {pixel_format.value} (bytes_per_row={stride})"
            )

        if stride == row_bytes:
            rows = raw[: row_bytes * height].reshape(height, row_bytes)
        else:
            rows = np.lib.stride_tricks.as_strided(
                raw, shape=(height, row_bytes), strides=(stride, 1), writeable=False
            )
        pixels = rows.reshape(height, width, bpp)
        rgba = _to_rgba(pixels, pixel_format)
        return Frame(width, height, PixelFormat.RGBA8, rgba.tobytes())

    @classmethod
    def from_array(cls, array: np.ndarray, pixel_format: Union[str, PixelFormat] = PixelFormat.RGBA8) -> Frame:
        """Build a canonical frame from an (h, w[, c]) uint8 array."""
        pixel_format = PixelFormat.parse(pixel_format)
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise FrameMismatchError(f"Expected uint8 pixels, got {array.dtype}")
        if array.ndim not in (2, 3):
            raise FrameMismatchError(f"Expected (h, w[, c]) array, got shape {array.shape}")
        channels = 1 if array.ndim == 2 else array.shape[2]
        if channels != pixel_format.bytes_per_pixel:
            raise FrameMismatchError(
                f"Array has {channels} channels, {pixel_format.value} needs {pixel_format.bytes_per_pixel}"
            )
        height, width = array.shape[:2]
        return cls.to_frame(PixelBuffer(width, height, pixel_format, np.ascontiguousarray(array)))
