"""Listing page pagination and record extraction.

The listing lazy-loads entries as the page is scrolled and exposes neither a
"load more" control nor a total count, so pagination is driven purely by
page height: scroll, wait for the page to settle, and stop once the height
stops growing (or the scroll budget runs out).

Extraction only talks to the page through ``query_selector_all`` /
``query_selector`` / ``inner_text`` / ``get_attribute`` so it can be driven
by a fake page in tests.
"""

from __future__ import annotations

from typing import Any, List, Optional

from playwright.sync_api import Error as PlaywrightError

from scout.browser.session import RemoteSessionProvider, SessionMode
from scout.config import PipelineConfig, ms
from scout.errors import BrowserConnectionError, ExtractionError, NavigationError
from scout.models import Record

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
PAGE_HEIGHT_JS = "() => document.body.scrollHeight"

# ---------------------------------------------------------------------------
# Listing entry selectors (scoped to one entry container)
# ---------------------------------------------------------------------------
ITEM_SELECTOR = '[data-test^="post-item-"]'
NAME_SELECTOR = '[data-test^="post-name-"]'
DESCRIPTION_SELECTOR = "a.text-16.font-normal.text-dark-gray.text-secondary"
IMAGE_SELECTOR = "a img"
TAG_SELECTOR = '[data-sentry-component="TagList"] a'
COMMENT_SELECTOR = "button .text-14.font-semibold.text-dark-gray"


def _required(container: Any, selector: str, field: str) -> Any:
    element = container.query_selector(selector)
    if element is None:
        raise ExtractionError(f"Missing {field} element ({selector})")
    return element


class ListingScraper:
    """Scrolls a listing to exhaustion and turns each entry into a :class:`Record`.

    Args:
        config: Pipeline configuration (scroll budget and settle timings).
        provider: Session provider used by :meth:`scrape`.
        strict: Re-raise :class:`ExtractionError` for a malformed entry
            instead of skipping it.
    """

    def __init__(
        self,
        config: PipelineConfig,
        provider: Optional[RemoteSessionProvider] = None,
        strict: bool = False,
    ) -> None:
        self._config = config
        self._provider = provider or RemoteSessionProvider(config)
        self._strict = strict

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def scroll_page(self, page: Any) -> int:
        """Scroll until the page stops growing; return the number of growing scrolls.

        A growing scroll resets the no-growth counter.  The loop ends after
        ``max_no_growth_attempts`` consecutive scrolls without growth, or as
        soon as ``max_scrolls`` growing scrolls have happened.
        """
        max_scrolls = self._config.max_scrolls
        max_attempts = self._config.max_no_growth_attempts
        previous_height = 0
        scroll_count = 0
        attempt = 0

        print("[SCROLL] Starting scroll process …")
        while attempt < max_attempts:
            attempt += 1
            page.evaluate(SCROLL_TO_BOTTOM_JS)
            page.wait_for_timeout(ms(self._config.scroll_settle))
            new_height = page.evaluate(PAGE_HEIGHT_JS)

            if new_height > previous_height:
                print(
                    f"[SCROLL] Attempt {attempt}: height changed from "
                    f"{previous_height}px to {new_height}px"
                )
                previous_height = new_height
                scroll_count += 1
                attempt = 0
                if max_scrolls is not None and scroll_count >= max_scrolls:
                    print(f"[SCROLL] Reached maximum number of scrolls ({max_scrolls})")
                    break
            else:
                print(f"[SCROLL] Attempt {attempt}/{max_attempts}: no height change detected")

        print(f"[SCROLL] Finished after {scroll_count} successful scroll(s)")
        return scroll_count

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract_record(self, item: Any) -> Record:
        """Extract one record from a listing entry container.

        Raises:
            ExtractionError: If the name, description or comment element is absent.
        """
        name = _required(item, NAME_SELECTOR, "name")
        description = _required(item, DESCRIPTION_SELECTOR, "description")
        comment = _required(item, COMMENT_SELECTOR, "comment")
        image = item.query_selector(IMAGE_SELECTOR)

        return Record(
            title=name.inner_text().strip(),
            description=description.inner_text().strip(),
            image=image.get_attribute("src") if image is not None else None,
            tags=[tag.inner_text().strip() for tag in item.query_selector_all(TAG_SELECTOR)],
            comment=comment.inner_text().strip(),
            link=name.get_attribute("href") or "",
        )

    def extract_records(self, page: Any) -> List[Record]:
        """Extract a record for every listing entry on *page*, in page order."""
        records: List[Record] = []
        items = page.query_selector_all(ITEM_SELECTOR)
        for index, item in enumerate(items):
            try:
                records.append(self.extract_record(item))
            except ExtractionError as exc:
                if self._strict:
                    raise
                print(f"[SCRAPE] ✗ Skipping entry {index + 1}/{len(items)}: {exc}")
        return records

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def scrape(self, url: str) -> List[Record]:
        """Open *url* in a fresh browser, paginate, and extract all entries.

        Returns ``[]`` if the browser cannot be started or the listing cannot
        be loaded.
        """
        try:
            with self._provider.connect(SessionMode.FRESH) as session:
                page = session.new_page()
                try:
                    print(f"[SCRAPE] Loading {url}")
                    page.goto(
                        url,
                        wait_until="networkidle",
                        timeout=ms(self._config.navigation_timeout),
                    )
                    self.scroll_page(page)
                    records = self.extract_records(page)
                finally:
                    page.close()
        except (PlaywrightError, NavigationError, BrowserConnectionError) as exc:
            print(f"[SCRAPE] ✗ Error during scraping: {exc}")
            return []

        print(f"[SCRAPE] Extracted {len(records)} record(s).")
        return records
