"""Exception hierarchy for the Perforce poller."""

from typing import Sequence


class P4PollerError(Exception):
    """Base class for every error raised by p4poller."""


class ConfigurationError(P4PollerError):
    """Raised when configuration is invalid or missing."""

    pass


class MissingConfigurationError(ConfigurationError):
    """Raised when one or more required connection settings are absent."""

    def __init__(self, fields: Sequence[str]):
        self.fields: list[str] = list(fields)
        super().__init__(f"Perforce configuration missing required field(s): {', '.join(self.fields)}")

    @property
    def field(self) -> str:
        """First missing field, in declaration order."""
        return self.fields[0]


class RemoteExecutionError(P4PollerError):
    """Raised when a p4 command cannot be run or fails."""

    def __init__(self, message: str, command: str = "", returncode: int | None = None):
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class MalformedOutputError(P4PollerError):
    """Raised when p4 output cannot be decoded into records."""

    pass


class NoRevisionsFoundError(P4PollerError):
    """Raised when the tracked scope has no submitted changelists yet."""

    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(f"No revisions found for {scope}")
