"""Decoding of ``p4 describe`` records into revisions."""

import re
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, Field

from p4poller.errors import MalformedOutputError
from p4poller.models.revision import ChangesetEntry, Revision

log = structlog.stdlib.get_logger()

# "depotFile12" -> ("depotFile", "12")
INDEXED_FIELD_PATTERN = re.compile(r"^(.+?)(\d+)$")


class ChangeDescription(BaseModel):
    """A describe record split into its scalar fields and per-file slots."""

    change: int = Field(default=..., description="Changelist number")
    user: str = Field(default="", description="Submitting user")
    time: datetime | None = Field(default=None, description="Submit time (UTC)")
    desc: str = Field(default="", description="Changelist description")
    extra: dict[str, Any] = Field(
        default_factory=dict, description="Other scalar fields (client, status, ...)"
    )
    files: dict[int, dict[str, Any]] = Field(
        default_factory=dict, description="Per-file fields keyed by slot index"
    )

    def changeset(self) -> list[ChangesetEntry]:
        """One entry per populated file slot, sorted by path."""
        entries = []
        for index, slot in self.files.items():
            path = slot.get("depotFile")
            operation = slot.get("action")
            if path is None or operation is None:
                raise MalformedOutputError(
                    f"File slot {index} of change {self.change} lacks depotFile or action"
                )
            entries.append(ChangesetEntry(operation=str(operation), path=str(path)))
        return sorted(entries, key=lambda entry: entry.path)

    def to_revision(self) -> Revision:
        return Revision(
            number=self.change,
            author=self.user,
            timestamp=self.time,
            message=self.desc,
            changeset=tuple(self.changeset()),
        )


class ChangeDescriptionParser:
    """Parses raw describe records.

    Scalar fields are plain keys (``change``, ``user``, ``time``, ``desc``).
    Per-file fields carry a positional suffix, so ``action0`` and
    ``depotFile0`` describe the same file. Slot indices may be sparse.
    """

    def parse(self, record: dict[str, Any]) -> ChangeDescription:
        """
        Split a describe record into scalar fields and indexed file slots.

        Args:
            record: One record returned by ``p4 describe -s``

        Returns:
            ChangeDescription with files ordered by slot index

        Raises:
            MalformedOutputError: If change or time is missing or not numeric
        """
        scalars: dict[str, Any] = {}
        files: dict[int, dict[str, Any]] = {}

        for key, value in record.items():
            match = INDEXED_FIELD_PATTERN.match(key)
            if match:
                name, index = match.group(1), int(match.group(2))
                files.setdefault(index, {})[name] = value
            else:
                scalars[key] = value

        if "change" not in scalars:
            log.error("describe_record_missing_change", keys=sorted(record))
            raise MalformedOutputError(f"Describe record has no change field: {sorted(record)}")

        try:
            change = int(scalars.pop("change"))
            raw_time = scalars.pop("time", None)
            timestamp = (
                datetime.fromtimestamp(int(raw_time), tz=timezone.utc)
                if raw_time not in (None, "")
                else None
            )
        except (TypeError, ValueError) as e:
            raise MalformedOutputError(f"Describe record has a non-numeric field: {e}") from e

        description = ChangeDescription(
            change=change,
            user=str(scalars.pop("user", "")),
            time=timestamp,
            desc=str(scalars.pop("desc", "")),
            extra=scalars,
            files=dict(sorted(files.items())),
        )

        log.debug(
            "change_description_parsed",
            change=description.change,
            file_count=len(description.files),
        )
        return description

    def parse_revision(self, record: dict[str, Any]) -> Revision:
        """Parse a describe record straight into a Revision."""
        return self.parse(record).to_revision()
