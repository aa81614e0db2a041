"""Access to the Perforce server through the p4 command-line client."""

from p4poller.client.p4_client import DiagnosticLog, P4Client, Record, RemoteClient, decode_records

__all__ = ["DiagnosticLog", "P4Client", "Record", "RemoteClient", "decode_records"]
