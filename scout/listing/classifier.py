"""Technology classification through a third-party inspection site.

The inspection site requires a logged-in account, so classification never
launches its own browser: it opens pages in an *attached* session that the
operator has already authenticated.  Results are read from the categorised
result rows, bucketed by the category segment of each row's detail link.
"""

from __future__ import annotations

from typing import Any, List
from urllib.parse import urlsplit, urlunsplit

from scout.browser.session import BrowserSession
from scout.config import PipelineConfig, ms
from scout.models import Technologies

SEARCH_INPUT_SELECTOR = ".form-control.mr-sm-1.topSB"
RESULT_ROW_SELECTOR = ".row.mb-1.mt-1 .col-12"
RESULT_LINK_SELECTOR = "h2 a"

# Link path segment -> Technologies attribute
_CATEGORY_SEGMENTS = (
    ("/framework/", "frameworks"),
    ("/javascript/", "javascript_libraries"),
    ("/cms/", "cms"),
)


def strip_tracking_suffix(url: str, param: str = "ref", value: str = "producthunt") -> str:
    """Remove the ``?ref=producthunt`` tracking parameter from *url*.

    Only the matching ``param=value`` pair is dropped; the rest of the query
    string is kept byte for byte.  When nothing else remains, a trailing ``/``
    on the path goes too, so ``https://example.com/?ref=producthunt`` becomes
    ``https://example.com``.
    """
    parts = urlsplit(url)
    pair = f"{param}={value}"
    fields = parts.query.split("&") if parts.query else []
    kept = [f for f in fields if f != pair]
    if len(kept) == len(fields):
        return url
    path = parts.path
    if not kept and path.endswith("/"):
        path = path[:-1]
    return urlunsplit((parts.scheme, parts.netloc, path, "&".join(kept), parts.fragment))


def parse_technologies(page: Any) -> Technologies:
    """Bucket the inspection result rows on *page* into a :class:`Technologies`."""
    technologies = Technologies()
    for row in page.query_selector_all(RESULT_ROW_SELECTOR):
        anchor = row.query_selector(RESULT_LINK_SELECTOR)
        if anchor is None:
            continue
        name = (anchor.text_content() or "").strip()
        href = anchor.get_attribute("href") or ""
        if not name:
            continue
        for segment, attr in _CATEGORY_SEGMENTS:
            if segment in href:
                bucket: List[str] = getattr(technologies, attr)
                if name not in bucket:
                    bucket.append(name)
                break
    return technologies


class TechnologyClassifier:
    """Drives the inspection site's search form for one destination at a time."""

    def __init__(self, config: PipelineConfig) -> None:
        self._config = config

    def destination_for(self, record: dict[str, Any]) -> str:
        return strip_tracking_suffix(
            record["websiteLink"],
            param=self._config.tracking_param,
            value=self._config.tracking_value,
        )

    def classify(self, session: BrowserSession, destination: str) -> Technologies:
        """Look up *destination* on the inspection site and return its technologies.

        There is no reliable marker for "results rendered", so the page is
        given a fixed ``classify_settle`` delay after submitting.
        """
        page = session.new_page()
        try:
            page.goto(
                self._config.inspection_url,
                wait_until="networkidle",
                timeout=ms(self._config.navigation_timeout),
            )
            page.wait_for_selector(SEARCH_INPUT_SELECTOR)
            page.type(SEARCH_INPUT_SELECTOR, destination)
            page.keyboard.press("Enter")
            page.wait_for_timeout(ms(self._config.classify_settle))
            return parse_technologies(page)
        finally:
            page.close()
