"""Workspace synchronization via ``p4 sync``."""

import re
import sys
from typing import Any, TextIO

import structlog

from p4poller.client.p4_client import RemoteClient
from p4poller.models.revision import ChangesetEntry, Revision

log = structlog.stdlib.get_logger()

# //depot/proj/a.txt#4 - updating /ws/proj/a.txt
SYNC_PATTERN = re.compile(r"^(//.+)#\d+ - (\w+) .+$")


def revision_number(revision: Revision | int | str) -> int:
    """Resolve a Revision to its number; pass numbers through."""
    if isinstance(revision, Revision):
        return revision.number
    return int(revision)


def sync_line(record: dict[str, Any]) -> str:
    """
    Render one sync record as the line p4 would print for it.

    ``info`` records already carry the text in ``data``. Tagged ``stat``
    records are rebuilt into the ``<depotFile>#<rev> - <action> <clientFile>``
    form so both kinds go through the same pattern.
    """
    data = record.get("data")
    if isinstance(data, str):
        return data.rstrip("\n")
    if all(key in record for key in ("depotFile", "rev", "action")):
        target = record.get("clientFile") or record["depotFile"]
        return f"{record['depotFile']}#{record['rev']} - {record['action']} {target}"
    return str(record)


def parse_sync_line(line: str) -> ChangesetEntry | None:
    """Parse a sync output line, or return None for status lines."""
    match = SYNC_PATTERN.match(line)
    if not match:
        return None
    path, operation = match.groups()
    return ChangesetEntry(operation=operation, path=path)


class Synchronizer:
    """Brings the workspace to a given changelist."""

    def __init__(self, client: RemoteClient, depot_path: str):
        self._client = client
        self._depot_path = depot_path

    def sync(self, revision: Revision | int | str | None = None) -> list[ChangesetEntry]:
        """
        Sync the workspace and report the files that changed.

        Args:
            revision: Changelist to sync to, as a Revision or a number. None syncs to head.

        Returns:
            Entries for each file p4 touched, in the order p4 reported them
        """
        log.info("sync_started", revision=self._describe_target(revision))

        synced_files: list[ChangesetEntry] = []
        for record in self._client.execute("sync", self._sync_arguments(revision)):
            entry = parse_sync_line(sync_line(record))
            if entry is not None:
                synced_files.append(entry)

        log.info(
            "sync_completed",
            revision=self._describe_target(revision),
            file_count=len(synced_files),
        )
        return synced_files

    def checkout(
        self, revision: Revision | int | str | None = None, output: TextIO | None = None
    ) -> None:
        """
        Sync the workspace, forwarding every raw output line to ``output``.

        Args:
            revision: Changelist to sync to. None syncs to head.
            output: Writable text sink, stdout if None
        """
        sink = output if output is not None else sys.stdout
        for record in self._client.execute("sync", self._sync_arguments(revision)):
            sink.write(sync_line(record) + "\n")

    def _sync_arguments(self, revision: Revision | int | str | None) -> str:
        if revision is None:
            return ""
        return f"{self._depot_path}@{revision_number(revision)}"

    @staticmethod
    def _describe_target(revision: Revision | int | str | None) -> str:
        return "head" if revision is None else str(revision_number(revision))
