"""Data models for the Perforce poller."""

from p4poller.models.config import AppConfig, LoggingConfig, PerforceConfig
from p4poller.models.revision import ChangesetEntry, Revision

__all__ = [
    "AppConfig",
    "ChangesetEntry",
    "LoggingConfig",
    "PerforceConfig",
    "Revision",
]
