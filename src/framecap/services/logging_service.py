"""Minimal logging service for framecap.

Log messages use section prefixes for filtering and debugging:
  [App] Orchestrator lifecycle, demo runs
  [Config] Configuration load/save
  [CaptureService] Target attach/detach, host ticks
  [Session] Capture session start/stop/pause, state changes
  [Channel] Frame hand-off channel (overflow drops)
  [Worker] Encoder worker drain loop, finish
  [FramesEncoder] / [GifEncoder] / [VideoEncoder] / [FfmpegEncoder] / [CompositeEncoder]

Levels: DEBUG=verbose, INFO=normal flow, WARNING=recoverable, ERROR=failures.
Set LOG_LEVEL=DEBUG in environment to see debug messages (e.g. dropped frames).
"""

import logging
import os


class LoggingService:
    """Minimal logging service for application-wide logging."""

    def __init__(self, name: str = "framecap"):
        self.logger = logging.getLogger(name)
        level_name = (os.environ.get("LOG_LEVEL") or "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
        self.logger.setLevel(level)

        # Console handler
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message (kwargs e.g. exc_info=True for traceback)."""
        self.logger.error(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(message, **kwargs)
