"""
Session telemetry for Veyu.

- entry: log entry model and JSON Lines encoding
- buffer: thread-safe pending-entry buffer
- flush: appends batches to the session file, reads them back
- lifecycle: TelemetrySession (init, log, flush, save, upload, shutdown)
- ticker: asyncio tick source for periodic flushes
"""

from veyu.session.buffer import SessionBuffer
from veyu.session.entry import EntryKind, LogEntry, new_entry, serialize_entry
from veyu.session.flush import FlushResult, flush_entries, read_session_file
from veyu.session.lifecycle import SessionStatus, TelemetrySession
from veyu.session.ticker import FlushTicker

__all__ = [
    "EntryKind",
    "FlushResult",
    "FlushTicker",
    "LogEntry",
    "SessionBuffer",
    "SessionStatus",
    "TelemetrySession",
    "flush_entries",
    "new_entry",
    "read_session_file",
    "serialize_entry",
]
