"""
Log entry model and its JSON Lines encoding.

Each persisted line looks like:
  {"type":"event","name":"jump","timestamp":"2026-10-19T14:32:00.123456+00:00","meta":{}}

Metadata is copied when an entry is built, so later changes by the caller do
not reach the buffered entry. Encoding never raises. An entry that cannot be
encoded as UTF-8 JSON is written as an ASCII-only error marker so the rest of
its batch still lands on disk.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from veyu.errors import EntrySerializationError
from veyu.utils import dumps_line, snapshot


class EntryKind(str, Enum):
    EVENT = "event"
    INPUT = "input"
    SYSTEM = "system"


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class LogEntry(BaseModel):
    """One structured record of an event, input or system occurrence."""

    model_config = ConfigDict(frozen=True)

    kind: EntryKind
    name: str
    timestamp: str = Field(default_factory=utc_timestamp)
    meta: Any = Field(default_factory=dict)

    @field_validator("meta", mode="before")
    @classmethod
    def _default_meta(cls, value: Any) -> Any:
        if value is None:
            return {}
        return snapshot(value)

    def to_record(self) -> dict:
        """Plain dict in persisted field order."""
        return {
            "type": self.kind.value,
            "name": self.name,
            "timestamp": self.timestamp,
            "meta": self.meta,
        }


def new_entry(kind: EntryKind, name: str, meta: Any = None) -> LogEntry:
    """Stamp a new entry with the current UTC time."""
    return LogEntry(kind=EntryKind(kind), name=str(name), meta=meta)


def encode_entry(entry: LogEntry) -> Tuple[str, Optional[EntrySerializationError]]:
    """
    Encode an entry as one JSON line (without the trailing newline).

    Returns:
        (line, error) tuple. ``error`` is set when the metadata could not be
        encoded and ``line`` is the error marker instead.
    """
    try:
        line = dumps_line(entry.to_record())
        # lone surrogates pass json.dumps but fail when written as UTF-8
        line.encode("utf-8")
        return line, None
    except Exception as e:
        error = EntrySerializationError(entry.name, e)
        marker = {
            "type": entry.kind.value,
            "name": entry.name,
            "timestamp": entry.timestamp,
            "meta": {"serialization_error": f"{type(e).__name__}: {e}"},
        }
        return json.dumps(marker, separators=(",", ":")), error


def serialize_entry(entry: LogEntry) -> str:
    """Encode an entry as one JSON line; never raises."""
    line, _ = encode_entry(entry)
    return line


def parse_entry_line(line: str) -> Optional[LogEntry]:
    """Parse one persisted line. Blank, truncated or foreign lines give None."""
    line = line.strip()
    if not line:
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return LogEntry(
            kind=data.get("type"),
            name=data.get("name"),
            timestamp=data.get("timestamp"),
            meta=data.get("meta"),
        )
    except ValidationError:
        return None
