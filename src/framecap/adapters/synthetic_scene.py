"""Synthetic headless renderer: a blue square rotating on a dark background (OpenCV)."""

import math

import cv2
import numpy as np

from ..domain.frame import PixelBuffer, PixelFormat
from ..ports.frame_source_port import FrameSourcePort


class SyntheticSceneSource(FrameSourcePort):
    """Stands in for a host render loop; one full turn every `fps` ticks."""

    BACKGROUND = (24, 24, 32, 255)  # BGRA
    SQUARE = (255, 0, 0, 255)  # BGRA blue

    def __init__(self, width: int = 512, height: int = 512, fps: float = 60.0, row_alignment: int = 1):
        """
        Args:
            width: Frame width
            height: Frame height
            fps: Ticks per full rotation
            row_alignment: Pad rows to a multiple of this many bytes (256 mimics GPU readback)
        """
        self._width = int(width)
        self._height = int(height)
        self.fps = fps
        self.row_alignment = max(1, int(row_alignment))
        self.tick = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def render(self) -> np.ndarray:
        """Draw the current tick as a BGRA image."""
        image = np.empty((self._height, self._width, 4), dtype=np.uint8)
        image[:] = self.BACKGROUND
        angle = self.tick / self.fps * 2 * math.pi
        side = min(self._width, self._height) / 4
        center = (self._width / 2, self._height / 2)
        corners = []
        for k in range(4):
            a = angle + math.pi / 4 + k * math.pi / 2
            r = side / math.sqrt(2)
            corners.append((center[0] + r * math.cos(a), center[1] + r * math.sin(a)))
        polygon = np.array(corners, dtype=np.int32).reshape(-1, 1, 2)
        cv2.fillPoly(image, [polygon], self.SQUARE)
        return image

    def next_buffer(self) -> PixelBuffer:
        image = self.render()
        self.tick += 1
        row_bytes = self._width * 4
        stride = -(-row_bytes // self.row_alignment) * self.row_alignment
        if stride == row_bytes:
            return PixelBuffer(self._width, self._height, PixelFormat.BGRA8, image.tobytes())
        padded = np.zeros((self._height, stride), dtype=np.uint8)
        padded[:, :row_bytes] = image.reshape(self._height, row_bytes)
        return PixelBuffer(self._width, self._height, PixelFormat.BGRA8, padded.tobytes(), bytes_per_row=stride)
