"""
Flush engine: append buffered entries to a session's JSON Lines file.

A flush writes its whole batch with a single write() call on a file opened
in append mode. If the process dies mid-write, only the last line can be
truncated; ``read_session_file`` skips such lines.

Write failures are reported and the batch is dropped. The caller never gets
the entries back, which keeps memory bounded when the disk is unavailable.
"""

from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Union

from pydantic import BaseModel

from veyu.errors import FlushIOError, VeyuError
from veyu.logger import get_logger
from veyu.session.entry import LogEntry, encode_entry, parse_entry_line

logger = get_logger(__name__)

PathLike = Union[str, Path]
ErrorReporter = Callable[[VeyuError], None]


class FlushResult(BaseModel):
    """Outcome of one flush call."""

    success: bool = True
    path: Optional[str] = None
    written: int = 0
    dropped: int = 0
    serialization_errors: int = 0
    error: Optional[str] = None


def _render_batch(
    entries: Sequence[LogEntry], report: Optional[ErrorReporter]
) -> tuple[str, int]:
    lines = []
    failures = 0
    for entry in entries:
        line, error = encode_entry(entry)
        if error is not None:
            failures += 1
            logger.warning(f"{error}; writing error marker instead")
            if report:
                report(error)
        lines.append(line + "\n")
    return "".join(lines), failures


def flush_entries(
    path: Optional[PathLike],
    entries: Sequence[LogEntry],
    report: Optional[ErrorReporter] = None,
) -> FlushResult:
    """
    Append ``entries`` to ``path`` as JSON Lines, in order.

    Args:
        path: Session file. Parent directories are created when missing.
        entries: Entries to write, already drained from the buffer
        report: Optional error channel for serialization and I/O failures

    Returns:
        FlushResult. An empty batch or an unset path is a successful no-op.
    """
    if not entries or not path:
        return FlushResult(path=str(path) if path else None)

    target = Path(path)
    payload, failures = _render_batch(entries, report)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a", encoding="utf-8") as f:
            f.write(payload)
    except (OSError, ValueError) as e:
        error = FlushIOError(str(target), len(entries), e)
        logger.error(f"Veyu: Failed to flush logs. {error}")
        if report:
            report(error)
        return FlushResult(
            success=False,
            path=str(target),
            dropped=len(entries),
            serialization_errors=failures,
            error=str(error),
        )

    logger.debug(f"Flushed {len(entries)} entries to {target}")
    return FlushResult(
        path=str(target), written=len(entries), serialization_errors=failures
    )


def iter_session_file(path: PathLike) -> Iterator[LogEntry]:
    """Yield valid entries from a session file, skipping bad or partial lines."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            entry = parse_entry_line(line)
            if entry is not None:
                yield entry


def read_session_file(path: PathLike, last_n: Optional[int] = None) -> List[LogEntry]:
    """
    Read entries from a session file.

    Args:
        path: Session JSONL file
        last_n: If set, return only the last N entries
    """
    if not Path(path).exists():
        return []

    entries = list(iter_session_file(path))
    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def count_lines(lines: Iterable[str]) -> tuple[int, int]:
    """Count (valid, invalid) non-blank lines."""
    valid = invalid = 0
    for line in lines:
        if not line.strip():
            continue
        if parse_entry_line(line) is None:
            invalid += 1
        else:
            valid += 1
    return valid, invalid
