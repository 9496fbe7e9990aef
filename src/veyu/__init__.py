"""Veyu: buffered session telemetry persisted as JSON Lines."""

from veyu.config import VeyuConfig
from veyu.errors import (
    EntrySerializationError,
    FlushIOError,
    NotInitializedError,
    UploadUnavailableError,
    VeyuError,
)
from veyu.session import EntryKind, FlushTicker, SessionStatus, TelemetrySession
from veyu.upload import PlaceholderUploader, UploadOutcome, UploadSink

__version__ = "0.1.0"

__all__ = [
    "EntryKind",
    "EntrySerializationError",
    "FlushIOError",
    "FlushTicker",
    "NotInitializedError",
    "PlaceholderUploader",
    "SessionStatus",
    "TelemetrySession",
    "UploadOutcome",
    "UploadSink",
    "UploadUnavailableError",
    "VeyuConfig",
    "VeyuError",
]
