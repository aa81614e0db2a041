"""Property-based tests for logging configuration.

**Feature: p4-poller, Property 12: Log entries carry timestamp, level and context**
"""

import json
import logging

import structlog
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from p4poller.client.p4_client import P4Client
from p4poller.models.config import PerforceConfig
from p4poller.utils.logging_config import configure_logging, get_logger


def last_json_line(text: str) -> dict:
    lines = [line for line in text.strip().splitlines() if line.strip()]
    return json.loads(lines[-1])


@given(
    log_level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    changelist=st.integers(min_value=0, max_value=10**7),
    error_message=st.text(min_size=1, max_size=100),
)
@settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_property_12_json_log_fields(capsys, log_level: str, changelist: int, error_message: str):
    """Property 12: Every JSON log entry has timestamp, level, event and its context.

    **Feature: p4-poller, Property 12: Log entries carry timestamp, level and context**
    """
    capsys.readouterr()
    configure_logging(log_level="DEBUG", json_logs=True)

    log = get_logger("p4poller.test")
    getattr(log, log_level.lower())("revision_checked", change=changelist, error=error_message)

    entry = last_json_line(capsys.readouterr().err)
    assert "timestamp" in entry
    assert entry["level"].upper() == log_level
    assert entry["event"] == "revision_checked"
    assert entry["change"] == changelist
    assert entry["error"] == error_message


def test_logs_go_to_stderr_not_stdout(capsys):
    configure_logging(log_level="INFO", json_logs=True)

    structlog.stdlib.get_logger().info("poll_started", path="//proj/...")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert last_json_line(captured.err)["path"] == "//proj/..."


def test_level_filters_lower_entries(capsys):
    configure_logging(log_level="WARNING", json_logs=True)

    log = get_logger("p4poller.test")
    log.info("should_not_appear")
    log.warning("should_appear")

    err = capsys.readouterr().err
    assert "should_not_appear" not in err
    assert "should_appear" in err


def test_log_file_never_contains_password(tmp_path):
    log_file = tmp_path / "poller.log"
    configure_logging(log_level="DEBUG", json_logs=True, log_file=str(log_file))

    P4Client(
        PerforceConfig(
            port="perforce:1666",
            clientspec="ci-build",
            user="ci",
            password="s3cret",
            path="//proj/...",
            diagnostic_log=None,
        )
    )
    for handler in logging.root.handlers:
        handler.flush()

    contents = log_file.read_text()
    assert "p4_client_initialized" in contents
    assert "s3cret" not in contents


def test_console_rendering(capsys):
    configure_logging(log_level="INFO", json_logs=False)

    get_logger("p4poller.test").info("sync_completed", file_count=3)

    err = capsys.readouterr().err
    assert "sync_completed" in err
    assert "file_count" in err
