"""Listing commands — run the scrape / resolve / classify stages."""

from __future__ import annotations

from typing import List, Optional

import typer

from scout.config import PipelineConfig, settings
from scout.errors import BrowserConnectionError
from scout.listing.runner import (
    STAGE_ORDER,
    Stage,
    classify_technologies,
    resolve_links,
    run_stages,
    scrape_listing,
)
from scout.store import JsonStore

listing_app = typer.Typer(help="Scrape listings and enrich the records document.")

_ENV_HELP = "Run environment: test | production (defaults to SCOUT_ENV)."


def _config(env: Optional[str]) -> PipelineConfig:
    try:
        return PipelineConfig.from_settings(settings, environment=env)
    except ValueError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=2)


def _abort_on_connection_error(exc: BrowserConnectionError) -> None:
    typer.echo(f"❌ {exc}")
    if exc.remediation:
        typer.echo("")
        typer.echo(exc.remediation)
    raise typer.Exit(code=1)


def _summary(records: list, label: str) -> None:
    resolved = sum(1 for r in records if r.get("websiteLink"))
    classified = sum(1 for r in records if "technologies" in r)
    typer.echo(
        f"\n--- {label} complete ---\n"
        f"  Records    : {len(records)}\n"
        f"  Resolved   : {resolved}\n"
        f"  Classified : {classified}\n"
        f"  Document   : {settings.records_path}"
    )


@listing_app.command("scrape")
def listing_scrape(
    url: Optional[str] = typer.Option(None, "--url", help="Listing URL (defaults to SCOUT_LISTING_URL)."),
    env: Optional[str] = typer.Option(None, "--env", help=_ENV_HELP),
    strict: bool = typer.Option(False, "--strict", help="Abort on the first malformed entry."),
) -> None:
    """Scroll the listing and write one record per entry."""
    config = _config(env)
    target = url or settings.listing_url
    typer.echo(f"🔍 Scraping {target}  [env={config.environment.value}]")
    records = scrape_listing(config, JsonStore(settings.records_path), target, strict=strict)
    _summary(records, "Scrape")


@listing_app.command("resolve")
def listing_resolve(
    env: Optional[str] = typer.Option(None, "--env", help=_ENV_HELP),
    skip_unresolved: bool = typer.Option(
        False,
        "--skip-unresolved",
        help="Do not retry records whose previous resolution failed (websiteLink = null).",
    ),
) -> None:
    """Resolve the destination URL of every record."""
    config = _config(env)
    records = resolve_links(
        config, JsonStore(settings.records_path), skip_unresolved=skip_unresolved
    )
    _summary(records, "Resolve")


@listing_app.command("classify")
def listing_classify(
    env: Optional[str] = typer.Option(None, "--env", help=_ENV_HELP),
) -> None:
    """Classify destination technologies using the already-running browser."""
    config = _config(env)
    try:
        records = classify_technologies(config, JsonStore(settings.records_path))
    except BrowserConnectionError as exc:
        _abort_on_connection_error(exc)
    _summary(records, "Classify")


@listing_app.command("run")
def listing_run(
    stage: List[Stage] = typer.Option(
        list(STAGE_ORDER),
        "--stage",
        help="Stage(s) to run, in pipeline order. Repeat to select several.",
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Listing URL (defaults to SCOUT_LISTING_URL)."),
    env: Optional[str] = typer.Option(None, "--env", help=_ENV_HELP),
    skip_unresolved: bool = typer.Option(False, "--skip-unresolved"),
    strict: bool = typer.Option(False, "--strict"),
) -> None:
    """Run several stages back to back."""
    config = _config(env)
    names = ", ".join(s.value for s in STAGE_ORDER if s in stage)
    typer.echo(f"🚀 Running stages: {names}  [env={config.environment.value}]")
    try:
        records = run_stages(
            stage,
            config,
            JsonStore(settings.records_path),
            url or settings.listing_url,
            skip_unresolved=skip_unresolved,
            strict=strict,
        )
    except BrowserConnectionError as exc:
        _abort_on_connection_error(exc)
    _summary(records, "Pipeline")
