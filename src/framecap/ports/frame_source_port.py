"""Frame source port interface: the host side that renders one buffer per tick."""

from abc import ABC, abstractmethod

from ..domain.frame import PixelBuffer


class FrameSourcePort(ABC):
    """Port interface for a host renderer producing pixel buffers."""

    @property
    @abstractmethod
    def width(self) -> int:
        pass

    @property
    @abstractmethod
    def height(self) -> int:
        pass

    @abstractmethod
    def next_buffer(self) -> PixelBuffer:
        """Render the next tick and return its pixels.

        Returns:
            PixelBuffer with explicit width, height, pixel format (and row stride)
        """
        pass
