"""Resolve a record's outbound destination from its detail page.

The detail page's "visit" button opens the destination in a new tab instead
of exposing it directly, so resolution clicks the button and captures the tab
it spawns.  When no tab shows up in time, the ``href`` of the button (or of a
well-known alternate element) is read instead.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urljoin

from playwright.sync_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from scout.browser.session import BrowserSession
from scout.config import PipelineConfig, ms
from scout.errors import NavigationError

VISIT_BUTTON_SELECTOR = (
    ".flex.h-11.flex-row.items-center.gap-2.rounded-full.border-2.border-gray-200"
    ".bg-white.px-4.text-16.font-semibold.text-gray-700"
)
DIRECT_LINK_SELECTOR = '[data-test="visit-website-button"]'

_BLANK_URLS = {"", "about:blank"}


class LinkResolver:
    """Finds the destination URL behind each record's detail page.

    Args:
        config: Pipeline configuration (site base URL and tab timeouts).
        skip_unresolved: Also skip records whose ``websiteLink`` is ``null``
            (a previous attempt failed).  Off by default, so failed records
            are retried on every run.
    """

    def __init__(self, config: PipelineConfig, skip_unresolved: bool = False) -> None:
        self._config = config
        self._skip_unresolved = skip_unresolved

    def needs_resolution(self, record: dict[str, Any]) -> bool:
        if record.get("websiteLink"):
            return False
        if self._skip_unresolved and "websiteLink" in record:
            return False
        return True

    def detail_url(self, record: dict[str, Any]) -> str:
        return urljoin(self._config.site_base_url, record.get("link") or "")

    # ------------------------------------------------------------------
    # Resolution paths
    # ------------------------------------------------------------------

    def _capture_new_tab(self, page: Any) -> str:
        """Click the visit button and return the URL of the tab it opens."""
        trigger = page.query_selector(VISIT_BUTTON_SELECTOR)
        if trigger is None:
            raise NavigationError("Visit button not found", url=page.url)

        with page.context.expect_page(timeout=ms(self._config.new_tab_timeout)) as tab_info:
            trigger.click()
        new_tab = tab_info.value

        try:
            try:
                new_tab.wait_for_load_state(
                    "networkidle", timeout=ms(self._config.new_tab_load_timeout)
                )
            except PlaywrightTimeoutError:
                pass  # the URL is usually settled well before network idle
            url = new_tab.url
        finally:
            new_tab.close()

        if url in _BLANK_URLS:
            raise NavigationError("New tab never left about:blank")
        return url

    def _read_direct_href(self, page: Any) -> Optional[str]:
        for selector in (DIRECT_LINK_SELECTOR, VISIT_BUTTON_SELECTOR):
            element = page.query_selector(selector)
            if element is None:
                continue
            href = element.get_attribute("href")
            if href:
                return urljoin(self._config.site_base_url, href)
        return None

    def resolve(self, page: Any) -> Optional[str]:
        """Return the destination URL for an already-loaded detail *page*, or ``None``."""
        try:
            return self._capture_new_tab(page)
        except (PlaywrightError, NavigationError) as exc:
            print(f"[RESOLVE] New tab not captured ({exc}); trying direct link …")
        return self._read_direct_href(page)

    def resolve_record(self, session: BrowserSession, record: dict[str, Any]) -> Optional[str]:
        """Open *record*'s detail page in *session* and resolve its destination."""
        url = self.detail_url(record)
        page = session.new_page()
        try:
            print(f"[RESOLVE] Visiting: {url}")
            page.goto(
                url,
                wait_until="networkidle",
                timeout=ms(self._config.navigation_timeout),
            )
            return self.resolve(page)
        finally:
            page.close()
