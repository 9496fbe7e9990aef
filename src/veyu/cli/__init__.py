"""
Veyu CLI.

- main: demo
- logs: path, list, show, stats
"""

import typer

from veyu.cli.logs import logs_app
from veyu.cli.main import configure_logging, register_commands

app = typer.Typer(help="Veyu CLI - inspect and record session telemetry")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    Veyu CLI - inspect and record session telemetry.
    """
    configure_logging(verbose)


register_commands(app)

app.add_typer(logs_app, name="logs")

if __name__ == "__main__":
    app()
