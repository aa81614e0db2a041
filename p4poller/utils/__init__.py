"""Shared utilities for configuration and logging"""

from p4poller.utils.config_loader import ConfigLoader
from p4poller.utils.logging_config import configure_logging, get_logger

__all__ = ["ConfigLoader", "configure_logging", "get_logger"]
