"""Configuration service for framecap."""

import copy
import json
from pathlib import Path
from typing import Any, Dict
from ..services.logging_service import LoggingService


def _default_config() -> Dict[str, Any]:
    """Built-in configuration (written to app.json on first run)."""
    return {
        "app_name": "framecap",
        "version": "0.1.0",
        "capture": {
            "width": 512,
            "height": 512,
            "fps": 60,
            "frames": 15,
            "max_frames": None,
            "overflow": "drop_oldest",
        },
        "encoders": [
            {"type": "frames", "directory": "frames"},
            {"type": "gif", "path": "capture.gif", "repeat": "infinite"},
            {"type": "video_software", "path": "capture.mp4", "crf": 23},
        ],
    }


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self, config_dir: Path, logger: LoggingService):
        self.config_dir = Path(config_dir)
        self.logger = logger
        self.config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from files."""
        config_file = self.config_dir / "app.json"
        if config_file.exists():
            try:
                with open(config_file, 'r') as f:
                    self.config = json.load(f)
                self.logger.info(f"[Config] Loaded config from {config_file}")
            except Exception as e:
                self.logger.error(f"[Config] Failed to load config: {e}")
                self.config = _default_config()
        else:
            # Default config
            self.config = _default_config()
            self._save_config()

    def _save_config(self):
        """Save configuration to file."""
        config_file = self.config_dir / "app.json"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        try:
            with open(config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except Exception as e:
            self.logger.error(f"[Config] Failed to save config: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """Set configuration value."""
        self.config[key] = value
        self._save_config()

    def capture_settings(self) -> Dict[str, Any]:
        """Capture defaults merged with the 'capture' section of app.json."""
        settings = copy.deepcopy(_default_config()["capture"])
        section = self.config.get("capture")
        if isinstance(section, dict):
            settings.update(section)
        return settings

    def encoder_entries(self) -> list:
        """Encoder entries from app.json (empty list when absent or malformed)."""
        entries = self.config.get("encoders", [])
        if not isinstance(entries, list):
            self.logger.warning("[Config] 'encoders' is not a list, ignoring")
            return []
        return [s for s in entries if isinstance(s, dict)]
