"""Replay commands — regenerate tracking links for a batch of URLs."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from scout.config import PipelineConfig, settings
from scout.errors import BrowserConnectionError, StoreError
from scout.models import ReplayEntry
from scout.replay.pipeline import ReplayPipeline
from scout.store import JsonStore

replay_app = typer.Typer(help="Replay source URLs through the link-generation form.")


@replay_app.command("run")
def replay_run(
    input_path: Path = typer.Option(..., "--input", help="JSON array of {old, origin} entries."),
    output_path: Optional[Path] = typer.Option(None, "--output", help="Results document (default: output.json)."),
    failed_path: Optional[Path] = typer.Option(None, "--failed", help="Failures document (default: failed.json)."),
) -> None:
    """Generate a new link for every entry not yet in the results document."""
    output_store = JsonStore(output_path or settings.replay_output_path)
    failure_store = JsonStore(failed_path or settings.replay_failed_path)

    input_store = JsonStore(input_path)
    if not input_store.exists():
        typer.echo(f"❌ Input document not found: {input_path}")
        raise typer.Exit(code=1)
    try:
        entries = [ReplayEntry.from_dict(raw) for raw in input_store.load()]
    except (StoreError, KeyError, TypeError) as exc:
        typer.echo(f"❌ Invalid input document {input_path}: {exc}")
        raise typer.Exit(code=1)

    output_store.ensure_exists()
    typer.echo(f"Ensured {output_store.path} exists")

    config = PipelineConfig.from_settings(settings)
    pipeline = ReplayPipeline(config, output_store, failure_store)
    try:
        results = pipeline.run(entries)
    except BrowserConnectionError as exc:
        typer.echo(f"❌ {exc}")
        typer.echo("")
        typer.echo(exc.remediation)
        raise typer.Exit(code=1)

    typer.echo(
        f"\nProcess completed! {len(results)} new link(s) generated.\n"
        f"Check {output_store.path} for results and {failure_store.path} for failures"
    )
