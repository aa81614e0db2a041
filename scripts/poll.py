#!/usr/bin/env python3
"""
Scheduled poll script for the Perforce poller.

Usage:
    python scripts/poll.py [--config CONFIG_PATH] [--last-known N] [--sync [--revision N]]

See p4poller.poll for exit codes.
"""

import sys

from p4poller.poll import main

if __name__ == "__main__":
    sys.exit(main())
