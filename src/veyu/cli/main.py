"""
Top-level CLI commands: demo.
"""

import asyncio
import os
from typing import Optional

import typer


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from veyu.logger import setup_logging

    log_level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "WARNING")
    setup_logging(level=log_level, log_file=os.getenv("LOG_FILE"))


async def _run_demo(session_id: Optional[str], events: int, upload: bool):
    from veyu.session.lifecycle import TelemetrySession

    session = TelemetrySession().init(session_id)
    for i in range(events):
        session.log_event("demo_event", {"index": i})
    session.log_input("demo_input", {"key": "space"})

    if upload:
        outcome = await session.upload()
        typer.echo(f"☁️  Upload status: {outcome.status} (transmitted: {outcome.transmitted})")
    else:
        await session.save()
    session.shutdown()
    return session


def register_commands(app: typer.Typer):
    """Register top-level commands onto the app."""

    @app.command()
    def demo(
        session_id: Optional[str] = typer.Option(
            None, "--session-id", "-s", help="Session id (generated if omitted)"
        ),
        events: int = typer.Option(3, "--events", "-e", min=0, help="Number of events"),
        upload: bool = typer.Option(False, "--upload", help="End with upload() instead of save()"),
    ):
        """Record a short demo session and write it to the log directory."""
        session = asyncio.run(_run_demo(session_id, events, upload))
        typer.echo(f"✅ Session written to {session.session_file_path}")
