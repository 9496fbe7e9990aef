"""
Error types reported by the telemetry session.

These are handed to the host's error channel (``on_error``) and logged.
They are never raised out of the logging path into host code.
"""

from typing import Optional


class VeyuError(Exception):
    """Base class for all Veyu errors."""


class NotInitializedError(VeyuError):
    """A session operation was called before ``init()``."""

    def __init__(self, operation: str, name: Optional[str] = None):
        self.operation = operation
        self.name = name
        detail = f" '{name}'" if name else ""
        super().__init__(
            f"Veyu session is not initialized; {operation}{detail} dropped. "
            "Call init() before logging."
        )


class EntrySerializationError(VeyuError):
    """An entry's metadata could not be encoded as JSON."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(
            f"Failed to serialize entry '{name}': {type(cause).__name__}: {cause}"
        )


class FlushIOError(VeyuError):
    """The session file or its directory could not be written."""

    def __init__(self, path: str, dropped: int, cause: Exception):
        self.path = path
        self.dropped = dropped
        self.cause = cause
        super().__init__(
            f"Failed to write {dropped} entries to {path}: {cause}"
        )


class UploadUnavailableError(VeyuError):
    """The configured upload sink does not transmit anything yet."""
