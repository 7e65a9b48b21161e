"""Application orchestrator for framecap (headless demo capture)."""

from pathlib import Path
from typing import Any, Dict, Optional

from .adapters.synthetic_scene import SyntheticSceneSource
from .domain.capture_service import CaptureService
from .domain.encoder_factory import create_encoders
from .domain.errors import ConfigurationError
from .ports.frame_source_port import FrameSourcePort
from .services.config_service import ConfigService
from .services.logging_service import LoggingService


class AppOrchestrator:
    """Wires services, builds the configured encoders and drives a capture."""

    TARGET_ID = "main"

    def __init__(self, config_dir: Path, output_dir: Path, source: Optional[FrameSourcePort] = None):
        # Initialize services in order
        self.logger = LoggingService()
        self.config_service = ConfigService(Path(config_dir), self.logger)
        self.output_dir = Path(output_dir)
        self.settings: Dict[str, Any] = self.config_service.capture_settings()

        self.capture_service = CaptureService(self.logger)
        self.source = source or SyntheticSceneSource(
            width=self.settings["width"],
            height=self.settings["height"],
            fps=self.settings["fps"],
        )

    def run(self, frames: Optional[int] = None) -> Dict[str, Any]:
        """Capture `frames` ticks of the source into every configured encoder.

        Returns:
            Session metrics after the encoders have finished
        """
        frames = int(frames if frames is not None else self.settings["frames"])
        self.output_dir.mkdir(parents=True, exist_ok=True)
        defaults = {
            "width": self.source.width,
            "height": self.source.height,
            "fps": self.settings["fps"],
        }
        encoders = create_encoders(
            self.config_service.encoder_entries(), self.output_dir, defaults, self.logger
        )
        if not encoders:
            self.logger.warning("[App] No encoders configured, nothing to capture")
            return {}

        session = self.capture_service.attach_target(self.TARGET_ID)
        try:
            session.start(
                encoders,
                max_frames=self.settings.get("max_frames"),
                overflow=self.settings.get("overflow", "drop_oldest"),
            )
        except ConfigurationError:
            for encoder in encoders:
                encoder.finish()
            raise
        self.logger.info(f"[App] Capturing {frames} frames into {self.output_dir}")
        for _ in range(frames):
            self.capture_service.tick({self.TARGET_ID: self.source.next_buffer()})
        session.stop()

        session.wait()
        metrics = session.get_metrics()
        for failure in session.get_errors():
            self.logger.warning(f"[App] Frame {failure.frame_number} failed: {failure.error}")
        self.capture_service.shutdown()
        self.logger.info(
            f"[App] Done: encoded={metrics['frames_encoded']} failed={metrics['frames_failed']} "
            f"dropped={metrics['frames_dropped']}"
        )
        return metrics
