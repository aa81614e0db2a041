"""Revision tracking and workspace synchronization."""

from p4poller.tracking.describe_parser import ChangeDescription, ChangeDescriptionParser
from p4poller.tracking.revision_tracker import MAX_CHANGELISTS_TO_FETCH, RevisionTracker
from p4poller.tracking.synchronizer import SYNC_PATTERN, Synchronizer

__all__ = [
    "MAX_CHANGELISTS_TO_FETCH",
    "SYNC_PATTERN",
    "ChangeDescription",
    "ChangeDescriptionParser",
    "RevisionTracker",
    "Synchronizer",
]
