"""Configuration package."""

from config.logging import configure_logging, get_logger
from config.settings import Settings, settings

__all__ = ["settings", "Settings", "configure_logging", "get_logger"]
