"""
Poll a Perforce depot path and optionally sync the workspace.

Checks whether changelists newer than the last built one exist and prints a
JSON summary. With --sync the workspace is brought to --revision (or head).

Designed to be run by a CI controller or on a schedule (e.g. via cron).

Usage:
    python scripts/poll.py [--config CONFIG_PATH] [--last-known N] [--sync [--revision N]]

Exit codes:
    0  up to date, or sync completed
    1  new changelists are available
    2  nothing has been submitted under the path yet
    3  configuration error
    4  p4 failed or returned output that could not be read
"""

import argparse
import json
import sys
from datetime import datetime
from typing import Any

import structlog

from p4poller.errors import ConfigurationError, NoRevisionsFoundError, P4PollerError
from p4poller.source_control import Perforce
from p4poller.utils.config_loader import ConfigLoader
from p4poller.utils.logging_config import configure_logging

log = structlog.stdlib.get_logger()

EXIT_UP_TO_DATE = 0
EXIT_STALE = 1
EXIT_NO_REVISIONS = 2
EXIT_CONFIG_ERROR = 3
EXIT_REMOTE_ERROR = 4


def perform_poll(perforce: Perforce, last_known: int | None = None) -> dict[str, Any]:
    """
    Check the depot for changelists newer than ``last_known``.

    Args:
        perforce: Configured adapter
        last_known: Last changelist built; the workspace's latest if None

    Returns:
        Dictionary with the poll result
    """
    reasons: list[Any] = []
    up_to_date = perforce.up_to_date(reasons, revision_number=last_known)

    revisions = [item for reason in reasons if isinstance(reason, list) for item in reason]
    return {
        "up_to_date": up_to_date,
        "messages": [reason for reason in reasons if isinstance(reason, str)],
        "revisions": [
            {
                "number": revision.number,
                "author": revision.author,
                "timestamp": revision.timestamp.isoformat() if revision.timestamp else None,
                "message": revision.message.strip(),
                "files": [str(entry) for entry in revision.changeset],
            }
            for revision in revisions
        ],
    }


def perform_sync(perforce: Perforce, revision: int | None = None) -> dict[str, Any]:
    """
    Sync the workspace and summarize the touched files.

    Args:
        perforce: Configured adapter
        revision: Changelist to sync to, head if None

    Returns:
        Dictionary with sync statistics
    """
    start_time = datetime.now()
    synced = perforce.update(revision)
    duration = (datetime.now() - start_time).total_seconds()

    operations: dict[str, int] = {}
    for entry in synced:
        operations[entry.operation] = operations.get(entry.operation, 0) + 1

    return {
        "revision": revision if revision is not None else "head",
        "files_synced": len(synced),
        "operations": operations,
        "files": [str(entry) for entry in synced],
        "duration_seconds": duration,
    }


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the poll script."""
    parser = argparse.ArgumentParser(description="Poll a Perforce depot path for new changelists")
    parser.add_argument("--config", type=str, default=None, help="Path to configuration file")
    parser.add_argument(
        "--last-known",
        type=int,
        default=None,
        help="Last changelist built (defaults to the workspace's latest synced changelist)",
    )
    parser.add_argument("--sync", action="store_true", help="Sync the workspace instead of polling")
    parser.add_argument(
        "--revision", type=int, default=None, help="Changelist to sync to (with --sync)"
    )
    args = parser.parse_args(argv)

    try:
        config = ConfigLoader().load_config(args.config)
    except ConfigurationError as e:
        print(json.dumps({"success": False, "error": str(e)}))
        return EXIT_CONFIG_ERROR

    configure_logging(
        log_level=config.logging.log_level,
        json_logs=config.logging.json_logs,
        log_file=config.logging.log_file,
    )

    try:
        perforce = Perforce.from_config(config.perforce)
        if args.sync:
            result = perform_sync(perforce, args.revision)
            exit_code = EXIT_UP_TO_DATE
        else:
            result = perform_poll(perforce, args.last_known)
            exit_code = EXIT_UP_TO_DATE if result["up_to_date"] else EXIT_STALE
    except NoRevisionsFoundError as e:
        log.info("nothing_to_build_yet", scope=e.scope)
        print(json.dumps({"success": True, "up_to_date": True, "message": str(e)}))
        return EXIT_NO_REVISIONS
    except ConfigurationError as e:
        print(json.dumps({"success": False, "error": str(e)}))
        return EXIT_CONFIG_ERROR
    except P4PollerError as e:
        log.error("poll_failed", error=str(e))
        print(json.dumps({"success": False, "error": str(e)}))
        return EXIT_REMOTE_ERROR

    print(json.dumps({"success": True, **result}, default=str))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
