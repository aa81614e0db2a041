"""Perforce change tracking for continuous integration."""

from p4poller.errors import (
    ConfigurationError,
    MalformedOutputError,
    MissingConfigurationError,
    NoRevisionsFoundError,
    P4PollerError,
    RemoteExecutionError,
)
from p4poller.models import ChangesetEntry, PerforceConfig, Revision
from p4poller.source_control import Perforce
from p4poller.tracking import MAX_CHANGELISTS_TO_FETCH, RevisionTracker, Synchronizer

__all__ = [
    "MAX_CHANGELISTS_TO_FETCH",
    "ChangesetEntry",
    "ConfigurationError",
    "MalformedOutputError",
    "MissingConfigurationError",
    "NoRevisionsFoundError",
    "P4PollerError",
    "Perforce",
    "PerforceConfig",
    "RemoteExecutionError",
    "Revision",
    "RevisionTracker",
    "Synchronizer",
]
