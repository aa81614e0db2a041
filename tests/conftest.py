"""Shared fixtures: an in-memory stand-in for the p4 command line."""

from typing import Any, Callable

import pytest

from p4poller.errors import RemoteExecutionError

DEPOT_PATH = "//proj/..."
CLIENTSPEC = "ci-build"


def describe_record(
    number: int,
    user: str = "alice",
    time: int = 1_700_000_000,
    desc: str = "change",
    files: list[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a record shaped like ``p4 -G describe -s`` output."""
    record: dict[str, Any] = {
        "code": "stat",
        "change": str(number),
        "user": user,
        "client": CLIENTSPEC,
        "time": str(time),
        "desc": desc,
        "status": "submitted",
    }
    for index, (action, path) in enumerate(files or []):
        record[f"action{index}"] = action
        record[f"depotFile{index}"] = path
        record[f"rev{index}"] = "1"
        record[f"type{index}"] = "text"
    return record


class ScriptedP4:
    """Answers execute() calls from canned handlers and records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.handlers: dict[str, Callable[[str], list[dict[str, Any]]]] = {}

    def on(self, operation: str, handler: Callable[[str], list[dict[str, Any]]]) -> None:
        self.handlers[operation] = handler

    def execute(self, operation: str, arguments: str = "") -> list[dict[str, Any]]:
        self.calls.append((operation, arguments))
        if operation not in self.handlers:
            raise RemoteExecutionError(f"unexpected p4 {operation} {arguments}")
        return self.handlers[operation](arguments)

    def calls_for(self, operation: str) -> list[str]:
        return [arguments for op, arguments in self.calls if op == operation]


class FakeDepot(ScriptedP4):
    """A depot holding changelists 1..head, with the workspace synced to ``have``."""

    def __init__(self, head: int, have: int | None = None, range_inclusive: bool = True):
        super().__init__()
        self.head = head
        self.have = have if have is not None else head
        self.range_inclusive = range_inclusive
        self.on("changes", self._changes)
        self.on("describe", self._describe)

    def _changes(self, arguments: str) -> list[dict[str, Any]]:
        parts = arguments.split()
        limit = int(parts[1])
        scope = parts[2]

        if scope.startswith("@"):
            top, bottom = self.have, 1
        elif "@" in scope and ",#head" in scope:
            lower = int(scope.split("@", 1)[1].split(",", 1)[0])
            top, bottom = self.head, lower if self.range_inclusive else lower + 1
        else:
            top, bottom = self.head, 1

        numbers = list(range(top, max(bottom, 1) - 1, -1))[:limit]
        return [{"code": "stat", "change": str(n), "status": "submitted"} for n in numbers]

    def _describe(self, arguments: str) -> list[dict[str, Any]]:
        number = int(arguments.split()[-1])
        return [
            describe_record(
                number,
                user=f"user{number % 3}",
                time=1_700_000_000 + number,
                desc=f"change {number}",
                files=[("edit", f"//proj/file{number}.txt")],
            )
        ]


@pytest.fixture
def scripted_p4() -> ScriptedP4:
    return ScriptedP4()


@pytest.fixture
def perforce_options() -> dict[str, Any]:
    return {
        "port": "perforce:1666",
        "clientspec": CLIENTSPEC,
        "user": "ci",
        "password": "s3cret",
        "path": DEPOT_PATH,
    }
