"""launch-scout CLI — entry-point for every pipeline stage.

Usage:
    python cli/main.py --help

Command groups:
    listing   → scrape / resolve / classify the listing records document
    replay    → regenerate tracking links through the web form
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from scout.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from cli.commands.listing import listing_app
from cli.commands.replay import replay_app
from scout.config import settings

app = typer.Typer(
    name="scout",
    help="launch-scout pipeline CLI.",
    no_args_is_help=True,
)
app.add_typer(listing_app, name="listing")
app.add_typer(replay_app, name="replay")


@app.command("config")
def show_config() -> None:
    """Print the resolved settings."""
    typer.echo(f"[config] Environment    : {settings.environment}")
    typer.echo(f"[config] Records        : {settings.records_path}")
    typer.echo(f"[config] Replay output  : {settings.replay_output_path}")
    typer.echo(f"[config] Replay failures: {settings.replay_failed_path}")
    typer.echo(f"[config] Listing URL    : {settings.listing_url}")
    typer.echo(f"[config] Debug endpoint : http://{settings.debug_host}:{settings.debug_port}/json/version")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
