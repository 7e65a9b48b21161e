"""
Encoder factory - builds encoders from configuration entries (app.json "encoders").

Entry shape: {"type": "<kind>", ...settings}. Relative paths resolve against the
output directory; width/height/fps default to the capture settings.

  frames          directory, pattern, start_index
  gif             path, repeat, frame_duration_ms
  video_software  path, fps, bitrate, crf, codec
  ffmpeg          path, fps, pixel_format, binary, output_args
"""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..ports.encoder_port import EncoderPort
from ..services.logging_service import LoggingService
from .errors import ConfigurationError

ENCODER_TYPES = ("frames", "gif", "video_software", "ffmpeg")


def _require(entry: Mapping[str, Any], key: str) -> Any:
    if key not in entry or entry[key] in (None, ""):
        raise ConfigurationError(f"Encoder '{entry.get('type')}' is missing required setting '{key}'")
    return entry[key]


def _resolve(output_dir: Path, value: Any) -> Path:
    path = Path(value)
    return path if path.is_absolute() else output_dir / path


def create_encoder(
    entry: Mapping[str, Any],
    output_dir: Path,
    defaults: Optional[Mapping[str, Any]] = None,
    logger: Optional[LoggingService] = None,
) -> EncoderPort:
    """Build one encoder from a configuration entry.

    Raises:
        ConfigurationError: unknown type, missing or invalid settings
    """
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"Encoder entry must be an object, got {entry!r}")
    defaults = dict(defaults or {})
    output_dir = Path(output_dir)
    kind = entry.get("type")

    if kind == "frames":
        from ..adapters.frames_encoder import DEFAULT_PATTERN, FramesEncoder
        return FramesEncoder(
            _resolve(output_dir, entry.get("directory", "frames")),
            pattern=entry.get("pattern", DEFAULT_PATTERN),
            start_index=entry.get("start_index", 0),
            logger=logger,
        )

    if kind == "gif":
        from ..adapters.gif_encoder import GifEncoder
        return GifEncoder(
            _resolve(output_dir, _require(entry, "path")),
            repeat=entry.get("repeat", "infinite"),
            frame_duration_ms=entry.get("frame_duration_ms", 100),
            logger=logger,
        )

    width = entry.get("width", defaults.get("width"))
    height = entry.get("height", defaults.get("height"))
    fps = entry.get("fps", defaults.get("fps", 60))
    if kind in ("video_software", "ffmpeg") and (width is None or height is None):
        raise ConfigurationError(f"Encoder '{kind}' needs width and height (setting or capture default)")

    if kind == "video_software":
        from ..adapters.video_software_encoder import VideoSoftwareEncoder
        return VideoSoftwareEncoder(
            _resolve(output_dir, _require(entry, "path")),
            width,
            height,
            fps=fps,
            bitrate=entry.get("bitrate"),
            crf=entry.get("crf", 23),
            codec=entry.get("codec", "libx264"),
            logger=logger,
        )

    if kind == "ffmpeg":
        from ..adapters.ffmpeg_process_encoder import FfmpegProcessEncoder
        return FfmpegProcessEncoder(
            _resolve(output_dir, _require(entry, "path")),
            width,
            height,
            fps=fps,
            pixel_format=entry.get("pixel_format", "rgba"),
            binary=entry.get("binary", "ffmpeg"),
            output_args=entry.get("output_args"),
            logger=logger,
        )

    raise ConfigurationError(f"Unknown encoder type {kind!r} (expected one of {', '.join(ENCODER_TYPES)})")


def create_encoders(
    entries: Sequence[Mapping[str, Any]],
    output_dir: Path,
    defaults: Optional[Dict[str, Any]] = None,
    logger: Optional[LoggingService] = None,
) -> List[EncoderPort]:
    """Build every configured encoder; already-built ones are finished if a later entry fails."""
    encoders: List[EncoderPort] = []
    try:
        for entry in entries:
            encoders.append(create_encoder(entry, output_dir, defaults, logger))
    except ConfigurationError:
        for encoder in encoders:
            encoder.finish()
        raise
    return encoders
