"""
In-memory buffer of pending log entries.

Appends and drains are mutually exclusive under one short lock. No I/O ever
happens while the lock is held.
"""

import threading
from typing import List

from veyu.session.entry import LogEntry


class SessionBuffer:
    """Append-only, insertion-ordered queue of entries awaiting a flush."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[LogEntry] = []

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def drain_all(self) -> List[LogEntry]:
        """
        Take every pending entry, in append order, and leave the buffer empty.

        Entries appended after the swap stay buffered for the next drain.
        """
        with self._lock:
            drained, self._entries = self._entries, []
        return drained

    def is_empty(self) -> bool:
        with self._lock:
            return not self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
