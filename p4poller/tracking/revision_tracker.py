"""Polling and diff engine comparing workspace state with the depot."""

from typing import Any

import structlog

from p4poller.client.p4_client import RemoteClient
from p4poller.errors import MalformedOutputError, NoRevisionsFoundError
from p4poller.models.revision import Revision
from p4poller.tracking.describe_parser import ChangeDescriptionParser

log = structlog.stdlib.get_logger()

MAX_CHANGELISTS_TO_FETCH = 25


class RevisionTracker:
    """Answers "what is new on the server?" for one depot path and workspace.

    Holds no state between calls; every query goes back to the server.
    """

    def __init__(
        self,
        client: RemoteClient,
        depot_path: str,
        clientspec: str,
        parser: ChangeDescriptionParser | None = None,
    ):
        """
        Initialize revision tracker.

        Args:
            client: Client used to run p4 commands
            depot_path: Depot path being watched, e.g. //depot/proj/...
            clientspec: Workspace name whose synced state is compared
            parser: Optional describe parser (a default one is created if None)
        """
        self._client = client
        self._depot_path = depot_path
        self._clientspec = clientspec
        self._parser = parser or ChangeDescriptionParser()

    def latest_remote_revision(self) -> Revision:
        """
        Get the most recent changelist submitted under the depot path.

        Raises:
            NoRevisionsFoundError: If nothing has been submitted under the path
        """
        return self._latest_revision(self._depot_path)

    def latest_local_revision(self) -> Revision:
        """
        Get the most recent changelist the workspace has synced.

        Raises:
            NoRevisionsFoundError: If the workspace has never been synced
        """
        return self._latest_revision(f"@{self._clientspec}")

    def is_up_to_date(
        self, last_known_number: int | None = None
    ) -> tuple[bool, list[Any]]:
        """
        Check whether the depot has changes newer than a known changelist.

        Args:
            last_known_number: Last changelist the caller built. If None, the
                workspace's latest synced changelist is used.

        Returns:
            ``(True, [])`` when nothing newer exists. Otherwise ``(False, reasons)``
            where reasons holds a message and the list of newer revisions.
        """
        if last_known_number is None:
            last_known_number = self.latest_local_revision().number

        latest = self.latest_remote_revision()
        if latest.number > last_known_number:
            revisions = self.revisions_since(last_known_number)
            log.info(
                "new_revision_detected",
                latest=latest.number,
                last_known=last_known_number,
                revision_count=len(revisions),
            )
            return False, [f"New revision {latest.number} detected", revisions]

        log.info("workspace_up_to_date", latest=latest.number, last_known=last_known_number)
        return True, []

    def revisions_since(self, last_known_number: int) -> list[Revision]:
        """
        Get changelists submitted after ``last_known_number``.

        Only the newest MAX_CHANGELISTS_TO_FETCH changelists are fetched, so
        anything older than that window is dropped. The range query may or may
        not include ``last_known_number`` itself; it is removed when present.

        Args:
            last_known_number: Last changelist the caller knows about

        Returns:
            Revisions in the order the server listed them (newest first)
        """
        changes = self._client.execute(
            "changes",
            f"-m {MAX_CHANGELISTS_TO_FETCH} {self._depot_path}@{last_known_number},#head",
        )

        revisions = [self.describe(self._change_number(change)) for change in changes]
        revisions = [revision for revision in revisions if revision.number != last_known_number]

        if len(changes) >= MAX_CHANGELISTS_TO_FETCH:
            log.warning(
                "changelist_window_full",
                last_known=last_known_number,
                limit=MAX_CHANGELISTS_TO_FETCH,
            )

        log.info(
            "revisions_fetched",
            last_known=last_known_number,
            revision_count=len(revisions),
        )
        return revisions

    def describe(self, change: int | str) -> Revision:
        """Describe a single changelist, including its file list."""
        records = self._client.execute("describe", f"-s {change}")
        if not records:
            raise MalformedOutputError(f"p4 describe returned nothing for change {change}")
        return self._parser.parse_revision(records[0])

    def _latest_revision(self, scope: str) -> Revision:
        changes = self._client.execute("changes", f"-m 1 {scope}")
        if not changes:
            log.info("no_revisions_found", scope=scope)
            raise NoRevisionsFoundError(scope)
        return self.describe(self._change_number(changes[0]))

    @staticmethod
    def _change_number(record: dict[str, Any]) -> str:
        try:
            return str(record["change"])
        except KeyError as e:
            raise MalformedOutputError(f"p4 changes record has no change field: {record}") from e
