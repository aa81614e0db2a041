"""p4 command-line client wrapper producing decoded ``-G`` records."""

import io
import marshal
import shlex
import subprocess
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from p4poller.errors import MalformedOutputError, RemoteExecutionError
from p4poller.models.config import PerforceConfig

log = structlog.stdlib.get_logger()

Record = dict[str, Any]

# p4 message severities: E_EMPTY=0, E_INFO=1, E_WARN=2, E_FAILED=3, E_FATAL=4.
# Warnings such as "file(s) up-to-date." arrive as error records too.
SEVERITY_FAILED = 3


def is_failure(record: Record) -> bool:
    """Whether an error record reports a failed command rather than a warning."""
    if record.get("code") != "error":
        return False
    try:
        return int(record.get("severity", SEVERITY_FAILED)) >= SEVERITY_FAILED
    except (TypeError, ValueError):
        return True


class RemoteClient(Protocol):
    """Anything that can run a named p4 operation and hand back its records."""

    def execute(self, operation: str, arguments: str = "") -> list[Record]: ...


def decode_records(payload: bytes) -> list[Record]:
    """
    Decode a stream of marshalled dictionaries as written by ``p4 -G``.

    Keys and values arrive as bytes and are decoded as UTF-8, replacing
    invalid sequences. Nested dictionaries and lists are decoded recursively.

    Args:
        payload: Raw stdout of a ``p4 -G`` invocation

    Returns:
        Records in the order p4 wrote them

    Raises:
        MalformedOutputError: If the stream is truncated or holds a non-dictionary value
    """
    stream = io.BytesIO(payload)
    records: list[Record] = []

    while stream.tell() < len(payload):
        try:
            obj = marshal.load(stream)
        except (EOFError, ValueError, TypeError) as e:
            raise MalformedOutputError(
                f"Could not decode p4 record at byte {stream.tell()}: {e}"
            ) from e

        if not isinstance(obj, dict):
            raise MalformedOutputError(
                f"Expected a dictionary record from p4, got {type(obj).__name__}"
            )
        records.append(_decode_value(obj))

    return records


def _decode_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {_decode_value(key): _decode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_decode_value(item) for item in value]
    return value


class DiagnosticLog:
    """Append-only, human-readable transcript of every p4 command.

    Writes are best-effort: a failure to open or write the file is logged
    and otherwise ignored so it never aborts the command being recorded.
    """

    def __init__(self, path: str | None):
        self.path = path

    def append(self, command_line: str, records: list[Record]) -> None:
        if not self.path:
            return

        try:
            with open(self.path, "a", encoding="utf-8") as logfile:
                logfile.write(f"[{datetime.now(timezone.utc).isoformat()}] {command_line}\n")
                for record in records:
                    logfile.write(f"{record}\n")
        except OSError as e:
            log.warning("diagnostic_log_write_failed", path=self.path, error=str(e))


class P4Client:
    """Runs p4 commands for one configured connection."""

    def __init__(self, config: PerforceConfig):
        """
        Initialize p4 client.

        Args:
            config: Connection settings (port, client, user, password, depot path)
        """
        self._config = config
        self._diagnostic_log = DiagnosticLog(config.diagnostic_log)
        log.info(
            "p4_client_initialized",
            port=config.port,
            clientspec=config.clientspec,
            user=config.user,
            path=config.path,
        )

    def build_command(self, operation: str, arguments: str = "") -> list[str]:
        """
        Build the argv for a p4 invocation.

        Args:
            operation: p4 command name (changes, describe, sync, ...)
            arguments: Argument string appended after the command, split with shell rules

        Returns:
            Command as a list suitable for subprocess
        """
        config = self._config
        command = [
            config.p4_executable,
            "-G",
            "-p",
            config.port,
            "-c",
            config.clientspec,
            "-u",
            config.user,
            "-P",
            config.password,
            operation,
        ]
        if arguments:
            command.extend(shlex.split(arguments))
        return command

    def masked_command_line(self, command: list[str]) -> str:
        """Render a command for logging with the password hidden."""
        masked = list(command)
        for index, part in enumerate(masked[:-1]):
            if part == "-P":
                masked[index + 1] = "********"
        return shlex.join(masked)

    def execute(self, operation: str, arguments: str = "") -> list[Record]:
        """
        Execute a p4 command and return its decoded records.

        Args:
            operation: p4 command name
            arguments: Argument string for the command

        Returns:
            List of records, one per ``-G`` dictionary written by p4

        Raises:
            RemoteExecutionError: If p4 cannot be started, times out, exits non-zero,
                or answers with an error record of severity E_FAILED or above.
                Warning records are returned with the rest.
            MalformedOutputError: If the output cannot be decoded
        """
        command = self.build_command(operation, arguments)
        command_line = self.masked_command_line(command)

        log.debug("executing_p4_command", command=command_line)

        try:
            completed = subprocess.run(
                command,
                stdin=None if self._config.interactive else subprocess.DEVNULL,
                capture_output=True,
                timeout=self._config.command_timeout,
                check=False,
            )
        except FileNotFoundError as e:
            log.error("p4_executable_not_found", executable=self._config.p4_executable)
            raise RemoteExecutionError(
                f"p4 executable not found: {self._config.p4_executable}", command=command_line
            ) from e
        except subprocess.TimeoutExpired as e:
            log.error(
                "p4_command_timed_out",
                command=command_line,
                timeout_seconds=self._config.command_timeout,
            )
            raise RemoteExecutionError(
                f"p4 command timed out after {self._config.command_timeout}s: {command_line}",
                command=command_line,
            ) from e
        except OSError as e:
            log.error("p4_command_failed_to_start", command=command_line, error=str(e))
            raise RemoteExecutionError(
                f"Failed to start p4 command {command_line}: {e}", command=command_line
            ) from e

        try:
            records = decode_records(completed.stdout)
        except MalformedOutputError:
            self._diagnostic_log.append(command_line, [])
            if completed.returncode != 0:
                raise self._exit_error(command_line, completed)
            log.error("p4_output_malformed", command=command_line)
            raise

        self._diagnostic_log.append(command_line, records)

        errors = [record for record in records if is_failure(record)]
        if errors:
            message = "; ".join(str(record.get("data", "")).strip() for record in errors)
            log.error("p4_command_reported_error", command=command_line, error=message)
            raise RemoteExecutionError(
                f"p4 {operation} failed: {message}",
                command=command_line,
                returncode=completed.returncode,
            )

        if completed.returncode != 0:
            raise self._exit_error(command_line, completed)

        for record in records:
            if record.get("code") == "error":
                log.debug(
                    "p4_command_warning",
                    command=command_line,
                    message=str(record.get("data", "")).strip(),
                )

        log.debug("p4_command_completed", command=command_line, record_count=len(records))
        return records

    def _exit_error(
        self, command_line: str, completed: subprocess.CompletedProcess
    ) -> RemoteExecutionError:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        log.error(
            "p4_command_exited_nonzero",
            command=command_line,
            returncode=completed.returncode,
            stderr=stderr,
        )
        return RemoteExecutionError(
            f"p4 exited with status {completed.returncode}: {stderr or command_line}",
            command=command_line,
            returncode=completed.returncode,
        )
