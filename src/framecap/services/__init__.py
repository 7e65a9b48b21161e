"""Services package."""

from .logging_service import LoggingService
from .config_service import ConfigService

__all__ = [
    'LoggingService',
    'ConfigService',
]
