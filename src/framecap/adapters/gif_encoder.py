"""Animated GIF encoder (Pillow)."""

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from PIL import Image

from ..domain.errors import CodecError, ConfigurationError, FrameMismatchError
from ..domain.frame import Frame
from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService


@dataclass(frozen=True)
class Repeat:
    """GIF repeat behaviour: play once, loop a fixed number of times, or loop forever."""
    mode: str = "infinite"
    count: int = 0

    @classmethod
    def none(cls) -> "Repeat":
        return cls("none")

    @classmethod
    def finite(cls, count: int) -> "Repeat":
        if int(count) < 1:
            raise ConfigurationError(f"Finite repeat count must be >= 1, got {count}")
        return cls("finite", int(count))

    @classmethod
    def infinite(cls) -> "Repeat":
        return cls("infinite")

    @classmethod
    def parse(cls, value: Union[str, int, "Repeat", None]) -> "Repeat":
        """'none' / 'infinite' / positive int (bool is rejected)."""
        if isinstance(value, Repeat):
            return value
        if value is None:
            return cls.none()
        if isinstance(value, bool):
            raise ConfigurationError(f"Invalid repeat value: {value!r}")
        if isinstance(value, int):
            return cls.finite(value)
        key = str(value).strip().lower()
        if key == "none":
            return cls.none()
        if key in ("infinite", "forever"):
            return cls.infinite()
        if key.isdigit():
            return cls.finite(int(key))
        raise ConfigurationError(f"Invalid repeat value: {value!r}")

    def save_options(self) -> dict:
        """Pillow GIF 'loop' option: omitted = play once, 0 = forever, n = n loops."""
        if self.mode == "infinite":
            return {"loop": 0}
        if self.mode == "finite":
            return {"loop": self.count}
        return {}


class GifEncoder(EncoderPort):
    """
    Collects frames and writes the animation when finish() runs.
    The output is not a valid GIF until then; the first frame fixes the canvas size.

    Every frame is held in memory (one RGBA image each) until finish(), so memory
    grows with capture length. Use the video encoders for long captures.

    Pillow folds identical consecutive frames into one animation step whose
    duration is the sum of theirs, so n_frames in the file can be lower than
    frame_count while total playback time is unchanged.
    """

    def __init__(
        self,
        sink: Union[str, Path, BinaryIO],
        repeat: Union[str, int, Repeat, None] = "infinite",
        frame_duration_ms: int = 100,
        logger: Optional[LoggingService] = None,
    ):
        self.logger = logger or LoggingService()
        self.repeat = Repeat.parse(repeat)
        if int(frame_duration_ms) <= 0:
            raise ConfigurationError(f"frame_duration_ms must be > 0, got {frame_duration_ms}")
        self.frame_duration_ms = int(frame_duration_ms)

        if isinstance(sink, (str, Path)):
            self.path: Optional[Path] = Path(sink)
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._fp: BinaryIO = open(self.path, "wb")
            except OSError as e:
                raise ConfigurationError(f"Cannot open GIF output {self.path}: {e}") from e
            self._owns_fp = True
        else:
            if not hasattr(sink, "write"):
                raise ConfigurationError(f"GIF sink must be a path or a writable binary file, got {sink!r}")
            self.path = None
            self._fp = sink
            self._owns_fp = False

        self._frames: List[Image.Image] = []
        self._frame_count = 0
        self._canvas: Optional[Tuple[int, int]] = None

    @property
    def canvas_size(self) -> Optional[Tuple[int, int]]:
        return self._canvas

    @property
    def frame_count(self) -> int:
        """Frames accepted by encode()."""
        return self._frame_count

    @property
    def buffered_frames(self) -> int:
        """Frames held in memory awaiting finish()."""
        return len(self._frames)

    def encode(self, frame: Frame) -> None:
        if self._canvas is None:
            self._canvas = frame.size
        elif frame.size != self._canvas:
            raise FrameMismatchError(
                f"GIF canvas is {self._canvas[0]}x{self._canvas[1]}, got frame {frame.width}x{frame.height}"
            )
        try:
            image = Image.frombytes("RGBA", frame.size, frame.to_rgba().tobytes())
        except ValueError as e:
            raise CodecError(f"Pillow rejected frame: {e}") from e
        self._frames.append(image)
        self._frame_count += 1

    def finish(self) -> None:
        target = self.path or "<stream>"
        try:
            if not self._frames:
                self.logger.warning(f"[GifEncoder] No frames captured, nothing written to {target}")
                return
            first, rest = self._frames[0], self._frames[1:]
            first.save(
                self._fp,
                format="GIF",
                save_all=True,
                append_images=rest,
                duration=self.frame_duration_ms,
                disposal=2,
                **self.repeat.save_options(),
            )
            self.logger.info(f"[GifEncoder] Wrote {len(self._frames)} frames to {target}")
        except (OSError, ValueError) as e:
            self.logger.error(f"[GifEncoder] Failed to write {target}: {e}")
        finally:
            self._frames = []
            self._release_sink()

    def _release_sink(self) -> None:
        try:
            if self._owns_fp:
                self._fp.close()
            else:
                self._fp.flush()
        except (OSError, ValueError) as e:
            self.logger.error(f"[GifEncoder] Failed to close sink: {e}")
