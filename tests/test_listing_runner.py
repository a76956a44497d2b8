"""Tests for the listing stage runners and their persistence discipline."""

from __future__ import annotations

import json

import pytest
from playwright.sync_api import Error as PlaywrightError

from scout.browser.session import SessionMode
from scout.config import PipelineConfig
from scout.errors import BrowserConnectionError
from scout.listing.classifier import RESULT_LINK_SELECTOR, RESULT_ROW_SELECTOR, SEARCH_INPUT_SELECTOR
from scout.listing.resolver import DIRECT_LINK_SELECTOR
from scout.listing.runner import (
    Stage,
    classify_technologies,
    resolve_links,
    run_stages,
)
from scout.store import JsonStore
from tests.fakes import FakeElement, FakePage, FakeProvider, FakeSession

_CONFIG = PipelineConfig()


@pytest.fixture
def store(tmp_path) -> JsonStore:
    return JsonStore(tmp_path / "data.json")


def _detail_page(href: str | None) -> FakePage:
    children = {DIRECT_LINK_SELECTOR: [FakeElement(attrs={"href": href})]} if href else {}
    return FakePage(children=children)


def _results_page(goto_error: Exception | None = None) -> FakePage:
    row = FakeElement(children={RESULT_LINK_SELECTOR: [FakeElement(text="Astro", attrs={"href": "/framework/Astro"})]})
    return FakePage(
        children={SEARCH_INPUT_SELECTOR: [FakeElement()], RESULT_ROW_SELECTOR: [row]},
        goto_error=goto_error,
    )


# ---------------------------------------------------------------------------
# resolve_links
# ---------------------------------------------------------------------------

class TestResolveLinks:
    def test_resolves_pending_and_persists(self, store: JsonStore) -> None:
        store.save(
            [
                {"title": "A", "link": "/posts/a"},
                {"title": "B", "link": "/posts/b", "websiteLink": "https://b.example"},
                {"title": "C", "link": "/posts/c"},
            ]
        )
        pages = [_detail_page("https://a.example"), _detail_page(None)]
        provider = FakeProvider(FakeSession(pages))

        records = resolve_links(_CONFIG, store, provider=provider)

        assert provider.modes == [SessionMode.FRESH]
        assert records[0]["websiteLink"] == "https://a.example"
        assert records[1]["websiteLink"] == "https://b.example"
        assert "websiteLink" in records[2] and records[2]["websiteLink"] is None
        assert store.load() == records

    def test_page_error_marks_record_null(self, store: JsonStore) -> None:
        store.save([{"title": "A", "link": "/posts/a"}])
        page = FakePage(goto_error=PlaywrightError("Timeout 60000ms exceeded"))
        provider = FakeProvider(FakeSession([page]))

        records = resolve_links(_CONFIG, store, provider=provider)

        assert records[0]["websiteLink"] is None
        assert page.closed is True

    def test_null_records_retried_unless_skipped(self, store: JsonStore) -> None:
        store.save([{"title": "A", "link": "/posts/a", "websiteLink": None}])

        provider = FakeProvider(FakeSession(factory=lambda: _detail_page("https://a.example")))
        skipped = resolve_links(_CONFIG, store, provider=provider, skip_unresolved=True)
        assert skipped[0]["websiteLink"] is None
        assert provider.modes == []

        retried = resolve_links(_CONFIG, store, provider=provider)
        assert retried[0]["websiteLink"] == "https://a.example"

    def test_nothing_pending_opens_no_session(self, store: JsonStore) -> None:
        store.save([{"title": "A", "websiteLink": "https://a.example"}])
        provider = FakeProvider(FakeSession())

        resolve_links(_CONFIG, store, provider=provider)

        assert provider.modes == []

    def test_unreadable_document_returns_empty(self, store: JsonStore) -> None:
        store.path.write_text("{not json", encoding="utf-8")

        assert resolve_links(_CONFIG, store, provider=FakeProvider(FakeSession())) == []

    def test_browser_launch_failure_keeps_document(self, store: JsonStore) -> None:
        store.save([{"title": "A", "link": "/posts/a"}])
        provider = FakeProvider(FakeSession(), error=BrowserConnectionError("Could not launch browser"))

        records = resolve_links(_CONFIG, store, provider=provider)

        assert records == [{"title": "A", "link": "/posts/a"}]
        assert store.load() == [{"title": "A", "link": "/posts/a"}]


# ---------------------------------------------------------------------------
# classify_technologies
# ---------------------------------------------------------------------------

class TestClassifyTechnologies:
    def test_schema_additivity(self, store: JsonStore) -> None:
        store.save(
            [
                {"title": "A", "websiteLink": "https://a.example/?ref=producthunt"},
                {"title": "B", "websiteLink": None},
                {"title": "C"},
                {"title": "D", "websiteLink": "https://d.example"},
            ]
        )
        pages = [_results_page(), _results_page(goto_error=PlaywrightError("boom"))]
        provider = FakeProvider(FakeSession(pages))

        records = classify_technologies(_CONFIG, store, provider=provider)

        assert provider.modes == [SessionMode.ATTACH]
        assert records[0]["technologies"] == {
            "frameworks": ["Astro"],
            "cms": [],
            "javascriptLibraries": [],
        }
        assert "technologies" not in records[1]
        assert "technologies" not in records[2]
        # A failed classification still gets the uniform object shape.
        assert records[3]["technologies"] == {"frameworks": [], "cms": [], "javascriptLibraries": []}
        assert json.loads(store.path.read_text(encoding="utf-8")) == records

    def test_typed_destination_has_tracking_stripped(self, store: JsonStore) -> None:
        store.save([{"title": "A", "websiteLink": "https://a.example/?ref=producthunt"}])
        page = _results_page()
        classify_technologies(_CONFIG, store, provider=FakeProvider(FakeSession([page])))

        assert page.typed[SEARCH_INPUT_SELECTOR] == "https://a.example"

    def test_already_classified_records_skipped(self, store: JsonStore) -> None:
        existing = {"frameworks": ["Rails"], "cms": [], "javascriptLibraries": []}
        store.save([{"title": "A", "websiteLink": "https://a.example", "technologies": existing}])
        provider = FakeProvider(FakeSession())

        records = classify_technologies(_CONFIG, store, provider=provider)

        assert records[0]["technologies"] == existing
        assert provider.modes == []

    def test_connection_failure_propagates(self, store: JsonStore) -> None:
        store.save([{"title": "A", "websiteLink": "https://a.example"}])
        provider = FakeProvider(FakeSession(), error=BrowserConnectionError("unreachable"))

        with pytest.raises(BrowserConnectionError):
            classify_technologies(_CONFIG, store, provider=provider)

        assert "technologies" not in store.load()[0]


# ---------------------------------------------------------------------------
# run_stages
# ---------------------------------------------------------------------------

class TestRunStages:
    def test_stages_run_in_pipeline_order(self, store: JsonStore) -> None:
        store.save([{"title": "A", "link": "/posts/a"}])
        pages = [_detail_page("https://a.example"), _results_page()]
        provider = FakeProvider(FakeSession(pages))

        records = run_stages(
            [Stage.CLASSIFY, "resolve"],
            _CONFIG,
            store,
            "https://unused.example",
            provider=provider,
        )

        assert provider.modes == [SessionMode.FRESH, SessionMode.ATTACH]
        assert records[0]["websiteLink"] == "https://a.example"
        assert records[0]["technologies"]["frameworks"] == ["Astro"]
