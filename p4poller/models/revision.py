"""Pydantic models for Perforce changelists and their file-level effects."""

from datetime import datetime
from functools import total_ordering
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChangesetEntry(BaseModel):
    """One file-level effect (add, edit, delete, ...) within a changelist."""

    model_config = ConfigDict(frozen=True)

    operation: str = Field(default=..., description="Action tag reported by the server")
    path: str = Field(default=..., description="Depot path of the affected file")

    def __str__(self) -> str:
        return f"{self.operation} {self.path}"


@total_ordering
class Revision(BaseModel):
    """Represents one submitted changelist.

    Equality, hashing and ordering are keyed solely on ``number``: two revisions
    with the same changelist number compare equal whatever their other fields hold.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "number": 1234,
                "author": "alice",
                "timestamp": "2024-01-15T14:30:00Z",
                "message": "Fix build on linux",
                "changeset": [
                    {"operation": "edit", "path": "//depot/project/Makefile"},
                    {"operation": "add", "path": "//depot/project/src/main.c"},
                ],
            }
        },
    )

    number: int = Field(default=..., ge=0, description="Changelist number")
    author: str = Field(default="", description="User who submitted the change")
    timestamp: datetime | None = Field(default=None, description="Submit time")
    message: str = Field(default="", description="Changelist description")
    changeset: tuple[ChangesetEntry, ...] = Field(
        default=(), description="File effects, sorted by path"
    )

    @field_validator("changeset")
    @classmethod
    def sort_changeset_by_path(cls, v: tuple[ChangesetEntry, ...]) -> tuple[ChangesetEntry, ...]:
        """Keep the changeset in path order regardless of server order."""
        return tuple(sorted(v, key=lambda entry: entry.path))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Revision):
            return self.number == other.number
        return NotImplemented

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, Revision):
            return self.number < other.number
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.number)

    def __str__(self) -> str:
        return f"Revision {self.number} committed by {self.author or 'unknown'}"
