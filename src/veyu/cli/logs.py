"""
CLI subcommands for inspecting session log files.

Usage:
    veyu logs path
    veyu logs list
    veyu logs show <file-or-session-id> [--last N] [--type KIND]
    veyu logs stats <file-or-session-id>
"""

import json
from collections import Counter
from pathlib import Path
from typing import Optional

import typer

from veyu.config import VeyuConfig
from veyu.session.entry import EntryKind
from veyu.session.flush import count_lines, iter_session_file, read_session_file
from veyu.session.lifecycle import SESSION_FILE_SUFFIX, session_file_name

logs_app = typer.Typer(help="Inspect recorded session logs")


def _log_dir() -> Path:
    return VeyuConfig.from_env().log_dir


def _resolve_session_file(target: str) -> Path:
    """Accept a path, a file name in the log dir, or a bare session id."""
    candidates = [
        Path(target),
        _log_dir() / target,
        _log_dir() / session_file_name(target),
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    typer.echo(f"❌ Session log '{target}' not found")
    raise typer.Exit(code=1)


@logs_app.command("path")
def logs_path():
    """Print the directory session logs are written to."""
    typer.echo(str(_log_dir()))


@logs_app.command("list")
def logs_list():
    """List recorded session files."""
    log_dir = _log_dir()
    files = (
        sorted(log_dir.glob(f"*{SESSION_FILE_SUFFIX}"), key=lambda p: p.stat().st_mtime)
        if log_dir.is_dir()
        else []
    )

    if not files:
        typer.echo(f"No session logs in {log_dir}.")
        return

    typer.echo(f"📁 Session logs in {log_dir} ({len(files)}):\n")
    for path in files:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            valid, invalid = count_lines(f)
        suffix = f", {invalid} invalid" if invalid else ""
        typer.echo(f"  {path.name}  ({valid} entries{suffix}, {path.stat().st_size} bytes)")


@logs_app.command("show")
def logs_show(
    target: str = typer.Argument(help="Session file path, file name, or session id"),
    last: Optional[int] = typer.Option(None, "--last", "-n", help="Only the last N entries"),
    kind: Optional[EntryKind] = typer.Option(None, "--type", "-t", help="Filter by entry type"),
    raw: bool = typer.Option(False, "--raw", help="Print JSON lines instead of a table"),
):
    """Print the entries of one session."""
    path = _resolve_session_file(target)
    entries = read_session_file(path)
    if kind is not None:
        entries = [e for e in entries if e.kind is kind]
    if last is not None:
        entries = entries[-last:] if last > 0 else []

    if not entries:
        typer.echo("No entries.")
        return

    for entry in entries:
        if raw:
            typer.echo(json.dumps(entry.to_record(), ensure_ascii=False))
            continue
        meta = json.dumps(entry.meta, ensure_ascii=False) if entry.meta else ""
        typer.echo(f"{entry.timestamp}  {entry.kind.value:<6}  {entry.name}  {meta}".rstrip())


@logs_app.command("stats")
def logs_stats(
    target: str = typer.Argument(help="Session file path, file name, or session id"),
):
    """Count entries per type and report unreadable lines."""
    path = _resolve_session_file(target)
    counts = Counter(entry.kind.value for entry in iter_session_file(path))
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        valid, invalid = count_lines(f)

    typer.echo(f"📊 {path.name}: {valid} entries")
    for kind in EntryKind:
        typer.echo(f"  {kind.value:<6} {counts.get(kind.value, 0)}")
    if invalid:
        typer.echo(f"  ⚠️  {invalid} unreadable line(s) skipped")
