"""Stage runners for the listing pipeline.

Each stage reads the listing document, works through it in order, and writes
the whole document back after every record so a crash loses at most the
record in flight.  Stages can be run on their own and re-run safely.

Public functions
----------------
``scrape_listing``        — paginate the listing and write fresh records.
``resolve_links``         — fill in ``websiteLink`` for each record.
``classify_technologies`` — fill in ``technologies`` for resolved records.
``run_stages``            — run a selection of the above in pipeline order.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional

from playwright.sync_api import Error as PlaywrightError

from scout.browser.session import RemoteSessionProvider, SessionMode
from scout.config import PipelineConfig
from scout.errors import BrowserConnectionError, StoreError
from scout.listing.classifier import TechnologyClassifier
from scout.listing.resolver import LinkResolver
from scout.listing.scraper import ListingScraper
from scout.models import Technologies
from scout.store import JsonStore


class Stage(str, Enum):
    SCRAPE = "scrape"
    RESOLVE = "resolve"
    CLASSIFY = "classify"


STAGE_ORDER = (Stage.SCRAPE, Stage.RESOLVE, Stage.CLASSIFY)


def scrape_listing(
    config: PipelineConfig,
    store: JsonStore,
    url: str,
    provider: Optional[RemoteSessionProvider] = None,
    strict: bool = False,
) -> list[dict[str, Any]]:
    """Scrape *url* and replace the listing document with the extracted records.

    An empty scrape leaves an existing document untouched.
    """
    scraper = ListingScraper(config, provider=provider, strict=strict)
    records = [record.to_dict() for record in scraper.scrape(url)]
    if records:
        store.save(records)
        print(f"[SCRAPE] Saved {len(records)} record(s) to {store.path}")
    return records


def resolve_links(
    config: PipelineConfig,
    store: JsonStore,
    provider: Optional[RemoteSessionProvider] = None,
    skip_unresolved: bool = False,
) -> list[dict[str, Any]]:
    """Resolve ``websiteLink`` for every record that still needs one."""
    try:
        records = store.load()
    except StoreError as exc:
        print(f"[RESOLVE] ✗ Error processing records: {exc}")
        return []

    resolver = LinkResolver(config, skip_unresolved=skip_unresolved)
    pending = [i for i, record in enumerate(records) if resolver.needs_resolution(record)]
    print(
        f"[RESOLVE] Collecting website links for {len(pending)} of "
        f"{len(records)} record(s) …"
    )
    if not pending:
        return records

    provider = provider or RemoteSessionProvider(config)
    try:
        with provider.connect(SessionMode.FRESH) as session:
            for i in pending:
                record = records[i]
                print(f"\n[RESOLVE] Record {i + 1}/{len(records)}: {record.get('title')}")
                try:
                    record["websiteLink"] = resolver.resolve_record(session, record)
                except Exception as exc:
                    print(f"[RESOLVE] ✗ Error processing {record.get('title')}: {exc}")
                    record["websiteLink"] = None
                store.save(records)
                print(f"[RESOLVE] Website link found: {record['websiteLink'] or 'No link found'}")
    except (BrowserConnectionError, PlaywrightError) as exc:
        print(f"[RESOLVE] ✗ Error processing records: {exc}")
        return records

    print("[RESOLVE] Finished collecting website links.")
    return records


def classify_technologies(
    config: PipelineConfig,
    store: JsonStore,
    provider: Optional[RemoteSessionProvider] = None,
) -> list[dict[str, Any]]:
    """Classify the technologies of every resolved, not yet classified record.

    Uses an *attached* session; a failed attach is fatal and propagates as
    :class:`~scout.errors.BrowserConnectionError`.
    """
    try:
        records = store.load()
    except StoreError as exc:
        print(f"[CLASSIFY] ✗ Error during technology analysis: {exc}")
        return []

    classifier = TechnologyClassifier(config)
    pending = []
    for i, record in enumerate(records):
        if not record.get("websiteLink") or "technologies" in record:
            print(
                f"[CLASSIFY] Skipping {i + 1}/{len(records)} {record.get('title')}: "
                "missing website link or already classified"
            )
            continue
        pending.append(i)

    if not pending:
        print("[CLASSIFY] Nothing to analyse.")
        return records

    print(f"[CLASSIFY] Starting technology analysis of {len(pending)} record(s) …")
    provider = provider or RemoteSessionProvider(config)
    with provider.connect(SessionMode.ATTACH) as session:
        for i in pending:
            record = records[i]
            destination = classifier.destination_for(record)
            print(f"[CLASSIFY] Analysing {record.get('title')}: {destination}")
            try:
                technologies = classifier.classify(session, destination)
                print(
                    f"[CLASSIFY] ✓ {len(technologies.frameworks)} framework(s), "
                    f"{len(technologies.cms)} CMS, "
                    f"{len(technologies.javascript_libraries)} JS librar(ies)"
                )
            except Exception as exc:
                print(f"[CLASSIFY] ✗ Failed to analyse technologies for {destination}: {exc}")
                technologies = Technologies()
            record["technologies"] = technologies.to_dict()
            store.save(records)

    print("[CLASSIFY] Technology analysis completed.")
    return records


def run_stages(
    stages: Iterable[Stage | str],
    config: PipelineConfig,
    store: JsonStore,
    url: str,
    provider: Optional[RemoteSessionProvider] = None,
    skip_unresolved: bool = False,
    strict: bool = False,
) -> list[dict[str, Any]]:
    """Run the selected *stages* in pipeline order and return the final records."""
    selected = {Stage(s) for s in stages}
    records: list[dict[str, Any]] = []
    for stage in STAGE_ORDER:
        if stage not in selected:
            continue
        if stage is Stage.SCRAPE:
            records = scrape_listing(config, store, url, provider=provider, strict=strict)
        elif stage is Stage.RESOLVE:
            records = resolve_links(config, store, provider=provider, skip_unresolved=skip_unresolved)
        else:
            records = classify_technologies(config, store, provider=provider)
    return records
