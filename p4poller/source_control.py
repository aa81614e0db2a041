"""Perforce source-control adapter for a CI controller."""

from typing import Any, TextIO

import structlog

from p4poller.client.p4_client import P4Client, RemoteClient
from p4poller.models.config import PerforceConfig
from p4poller.models.revision import ChangesetEntry, Revision
from p4poller.tracking.revision_tracker import RevisionTracker
from p4poller.tracking.synchronizer import Synchronizer

log = structlog.stdlib.get_logger()


class Perforce:
    """Tracks one depot path through one workspace.

    Example:
        >>> p4 = Perforce(port="perforce:1666", clientspec="ci-build", user="ci",
        ...               password="secret", path="//depot/proj/...")
        >>> reasons = []
        >>> if not p4.up_to_date(reasons, revision_number=1200):
        ...     p4.update()
    """

    def __init__(self, remote: RemoteClient | None = None, **options: Any):
        """
        Initialize the adapter.

        Args:
            remote: Optional client to run p4 commands with (a P4Client is built if None)
            **options: port, clientspec, user, password, path and the optional
                settings of PerforceConfig

        Raises:
            MissingConfigurationError: If a required option is absent
            ConfigurationError: If an option is unknown or invalid
        """
        self.config = PerforceConfig.from_options(**options)
        self._client: RemoteClient = remote if remote is not None else P4Client(self.config)
        self._tracker = RevisionTracker(self._client, self.config.path, self.config.clientspec)
        self._synchronizer = Synchronizer(self._client, self.config.path)

    @classmethod
    def from_config(cls, config: PerforceConfig, remote: RemoteClient | None = None) -> "Perforce":
        """Build an adapter from already-loaded configuration."""
        return cls(remote=remote, **config.model_dump())

    def creates_ordered_build_labels(self) -> bool:
        """Changelist numbers only grow, so build labels sort in submit order."""
        return True

    def latest_revision(self) -> Revision:
        return self._tracker.latest_remote_revision()

    def last_locally_known_revision(self) -> Revision:
        return self._tracker.latest_local_revision()

    def up_to_date(
        self, reasons: list[Any] | None = None, revision_number: int | None = None
    ) -> bool:
        """
        Check for new changelists, appending explanations to ``reasons``.

        Args:
            reasons: Optional list that receives a message and the new revisions
            revision_number: Last changelist built; the workspace's latest if None

        Returns:
            True if there is nothing newer than ``revision_number``
        """
        result, found = self._tracker.is_up_to_date(revision_number)
        if reasons is not None:
            reasons.extend(found)
        return result

    def revisions_since(self, revision_number: int) -> list[Revision]:
        return self._tracker.revisions_since(revision_number)

    def update(self, revision: Revision | int | None = None) -> list[ChangesetEntry]:
        return self._synchronizer.sync(revision)

    def checkout(self, revision: Revision | int | None = None, output: TextIO | None = None) -> None:
        self._synchronizer.checkout(revision, output)
