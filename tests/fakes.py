"""Fake page / element / session objects implementing the query contract the
pipeline uses on Playwright objects.

Only the calls the pipeline actually makes are implemented; each fake records
what happened to it so tests can assert on navigation, typing and cleanup.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from scout.browser.session import SessionMode
from scout.listing.scraper import PAGE_HEIGHT_JS, SCROLL_TO_BOTTOM_JS

Children = dict[str, Any]  # selector -> list[FakeElement] | callable returning one


def _lookup(children: Children, selector: str) -> list:
    found = children.get(selector, [])
    if callable(found):
        found = found()
    return list(found)


class FakeElement:
    def __init__(
        self,
        text: str = "",
        attrs: Optional[dict[str, str]] = None,
        children: Optional[Children] = None,
        value: str = "",
        echo: Optional[str] = None,
        on_click: Optional[Callable[[], None]] = None,
    ) -> None:
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.value = value
        self.echo = echo
        self.on_click = on_click
        self.clicks = 0

    def query_selector(self, selector: str) -> Optional["FakeElement"]:
        found = _lookup(self.children, selector)
        return found[0] if found else None

    def query_selector_all(self, selector: str) -> list["FakeElement"]:
        return _lookup(self.children, selector)

    def inner_text(self) -> str:
        return self.text

    def text_content(self) -> str:
        return self.text

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    def click(self, **_: Any) -> None:
        self.clicks += 1
        if self.on_click:
            self.on_click()

    def type(self, text: str, **_: Any) -> None:
        self.value = self.echo if self.echo is not None else self.value + text

    def input_value(self) -> str:
        return self.value


class FakeTab:
    """A tab spawned by clicking a link."""

    def __init__(self, url: str, load_error: Optional[Exception] = None) -> None:
        self.url = url
        self.load_error = load_error
        self.closed = False

    def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        if self.load_error:
            raise self.load_error

    def close(self) -> None:
        self.closed = True


class _TabInfo:
    value: Any = None


class FakeContext:
    def __init__(self, popup: Optional[FakeTab] = None) -> None:
        self.popup = popup
        self.expect_timeouts: list[Optional[float]] = []

    @contextmanager
    def expect_page(self, timeout: Optional[float] = None) -> Iterator[_TabInfo]:
        self.expect_timeouts.append(timeout)
        info = _TabInfo()
        yield info
        if self.popup is None:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded while waiting for event \"page\"")
        info.value = self.popup


class FakeKeyboard:
    def __init__(self) -> None:
        self.pressed: list[str] = []

    def press(self, key: str) -> None:
        self.pressed.append(key)


class FakePage(FakeElement):
    """A page whose height follows *heights* (indexed by scroll count)."""

    def __init__(
        self,
        children: Optional[Children] = None,
        heights: Optional[list[int]] = None,
        height_fn: Optional[Callable[[int], int]] = None,
        url: str = "https://www.producthunt.com/posts/example",
        context: Optional[FakeContext] = None,
        goto_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(children=children)
        self.heights = heights or [0]
        self.height_fn = height_fn
        self.url = url
        self.context = context or FakeContext()
        self.keyboard = FakeKeyboard()
        self.goto_error = goto_error
        self.scrolls = 0
        self.waits: list[float] = []
        self.gotos: list[str] = []
        self.typed: dict[str, str] = {}
        self.clicked: list[str] = []
        self.viewport: Optional[dict[str, int]] = None
        self.closed = False

    def goto(self, url: str, **_: Any) -> None:
        self.gotos.append(url)
        if self.goto_error:
            raise self.goto_error

    def evaluate(self, script: str) -> Any:
        if script == SCROLL_TO_BOTTOM_JS:
            self.scrolls += 1
            return None
        if script == PAGE_HEIGHT_JS:
            if self.height_fn:
                return self.height_fn(self.scrolls)
            index = min(max(self.scrolls - 1, 0), len(self.heights) - 1)
            return self.heights[index]
        raise AssertionError(f"Unexpected script: {script}")

    def wait_for_timeout(self, timeout: float) -> None:
        self.waits.append(timeout)

    def wait_for_selector(self, selector: str, **_: Any) -> FakeElement:
        element = self.query_selector(selector)
        if element is None:
            raise PlaywrightTimeoutError(f"waiting for locator({selector!r})")
        return element

    def type(self, selector: str, text: str, **_: Any) -> None:  # type: ignore[override]
        self.typed[selector] = text

    def click(self, selector: str, **_: Any) -> None:  # type: ignore[override]
        self.clicked.append(selector)
        element = self.query_selector(selector)
        if element is not None:
            element.click()

    def set_viewport_size(self, size: dict[str, int]) -> None:
        self.viewport = size

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Hands out pages from *pages* in order (or builds them with *factory*)."""

    def __init__(
        self,
        pages: Optional[list[FakePage]] = None,
        factory: Optional[Callable[[], FakePage]] = None,
    ) -> None:
        self._pages = list(pages or [])
        self._factory = factory
        self.opened: list[FakePage] = []

    def new_page(self) -> FakePage:
        page = self._pages.pop(0) if self._pages else self._factory()  # type: ignore[misc]
        self.opened.append(page)
        return page


class FakeProvider:
    def __init__(self, session: FakeSession, error: Optional[Exception] = None) -> None:
        self.session = session
        self.error = error
        self.modes: list[SessionMode] = []
        self.closed = 0

    @contextmanager
    def connect(self, mode: SessionMode | str) -> Iterator[FakeSession]:
        self.modes.append(SessionMode(mode))
        if self.error:
            raise self.error
        try:
            yield self.session
        finally:
            self.closed += 1
