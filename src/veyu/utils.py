"""
JSON helpers shared by the entry model and the CLI.

Metadata attached to entries is arbitrary host data, so encoding goes through
an encoder that understands the usual non-JSON Python types.
"""

import copy
import json
import types
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from json import JSONEncoder
from pathlib import PurePath
from typing import Any


class CustomJsonEncoder(JSONEncoder):
    """
    JSON encoder for metadata payloads: dataclasses, pydantic models,
    exceptions, enums, paths, dates, sets, generators and plain objects
    (public attributes, or ``str(o)`` when there are none).
    """

    def default(self, o: Any) -> Any:
        if is_dataclass(o) and not isinstance(o, type):
            return asdict(o)
        if isinstance(o, Exception):
            return {
                "error_type": type(o).__name__,
                "message": str(o),
                "args": [repr(a) for a in o.args],
            }
        if hasattr(o, "model_dump") and callable(o.model_dump):
            return o.model_dump(mode="json")
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, PurePath):
            return str(o)
        if isinstance(o, (set, frozenset, tuple)):
            return list(o)
        if isinstance(o, types.GeneratorType):
            return list(o)
        if isinstance(o, bytes):
            return o.decode("utf-8", errors="replace")
        if hasattr(o, "__dict__"):
            result = {}
            for k, v in vars(o).items():
                if k.startswith("_"):
                    continue
                if self._is_json_serializable(v):
                    result[k] = v
            return result if result else str(o)
        return super().default(o)

    def _is_json_serializable(self, value: Any) -> bool:
        try:
            json.dumps(value, cls=type(self))
            return True
        except (TypeError, ValueError, OverflowError, RecursionError):
            return False


def dumps_line(obj: Any) -> str:
    """Encode ``obj`` as compact single-line JSON. Raises on unsupported data."""
    return json.dumps(
        obj,
        cls=CustomJsonEncoder,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )


def to_serializable(obj: Any) -> Any:
    """Recursively convert ``obj`` into plain JSON-compatible values."""
    return json.loads(json.dumps(obj, cls=CustomJsonEncoder))


def snapshot(obj: Any) -> Any:
    """
    Detach ``obj`` from later mutation by the caller.

    Prefers a plain JSON copy, falls back to a deep copy, and as a last
    resort returns ``obj`` itself. Never raises.
    """
    try:
        return to_serializable(obj)
    except Exception:
        pass
    try:
        return copy.deepcopy(obj)
    except Exception:
        return obj
