"""Remote browser sessions: launch a fresh Chromium or attach to a running one.

``fresh`` sessions are launched through Playwright and torn down on exit;
their pages get ``playwright-stealth`` patches against bot detection.
``attach`` sessions look up the browser's WebSocket descriptor on the local
remote-debugging endpoint and connect over CDP, reusing the browser's default
context so cookies and logins opened by the operator are preserved.  On exit
an attached browser is only disconnected, never closed.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

import httpx
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    sync_playwright,
)
from playwright_stealth import Stealth

from scout.config import PipelineConfig
from scout.errors import BrowserConnectionError


class SessionMode(str, Enum):
    FRESH = "fresh"
    ATTACH = "attach"


def remediation_text(port: int) -> str:
    """Operator instructions for starting Chrome with remote debugging enabled."""
    return (
        "Please make sure Chrome is running with remote debugging enabled:\n"
        f'  Windows: "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe" '
        f"--remote-debugging-port={port}\n"
        f"  Mac: /Applications/Google\\ Chrome.app/Contents/MacOS/Google\\ Chrome "
        f"--remote-debugging-port={port}\n"
        f"  Linux: google-chrome --remote-debugging-port={port}"
    )


def get_ws_endpoint(config: PipelineConfig) -> str:
    """Return the ``webSocketDebuggerUrl`` advertised by the debugging endpoint.

    Raises:
        BrowserConnectionError: If the endpoint is unreachable, answers with an
            error status, or does not return a usable descriptor.
    """
    url = config.debug_version_url
    remediation = remediation_text(config.debug_port)
    try:
        with httpx.Client(timeout=config.debug_endpoint_timeout) as client:
            response = client.get(url)
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise BrowserConnectionError(
            f"Cannot reach remote debugging endpoint: {exc}",
            url=url,
            remediation=remediation,
        ) from exc

    ws_url = data.get("webSocketDebuggerUrl") if isinstance(data, dict) else None
    if not ws_url:
        raise BrowserConnectionError(
            "Remote debugging endpoint returned no webSocketDebuggerUrl",
            url=url,
            remediation=remediation,
        )
    return ws_url


@dataclass
class BrowserSession:
    """A live browser connection plus the context new pages are opened in."""

    browser: Browser
    context: BrowserContext
    mode: SessionMode
    viewport_width: int
    viewport_height: int
    stealth: bool = False

    def new_page(self) -> Page:
        page = self.context.new_page()
        if self.stealth:
            # Patch navigator.webdriver, plugins, WebGL and friends
            Stealth().apply_stealth_sync(page)
        page.set_viewport_size({"width": self.viewport_width, "height": self.viewport_height})
        return page


class RemoteSessionProvider:
    """Hands out :class:`BrowserSession` objects for a given :class:`PipelineConfig`."""

    def __init__(self, config: PipelineConfig) -> None:
        self._config = config

    @contextmanager
    def connect(self, mode: SessionMode | str) -> Iterator[BrowserSession]:
        """Yield a session in *mode*; cleanup always runs on exit.

        Raises:
            BrowserConnectionError: In ``attach`` mode, when no running browser
                can be reached; in ``fresh`` mode, when the browser fails to launch.
        """
        mode = SessionMode(mode)
        ws_url = get_ws_endpoint(self._config) if mode is SessionMode.ATTACH else None

        with sync_playwright() as pw:
            if ws_url is not None:
                print(f"[SESSION] Attaching to {ws_url}")
                try:
                    browser = pw.chromium.connect_over_cdp(ws_url)
                except PlaywrightError as exc:
                    raise BrowserConnectionError(
                        f"Could not attach to running browser: {exc}",
                        url=ws_url,
                        remediation=remediation_text(self._config.debug_port),
                    ) from exc
                context = browser.contexts[0] if browser.contexts else browser.new_context()
            else:
                print(f"[SESSION] Launching browser (headless={self._config.headless})")
                try:
                    browser = pw.chromium.launch(headless=self._config.headless)
                except PlaywrightError as exc:
                    raise BrowserConnectionError(
                        f"Could not launch browser: {exc}",
                        remediation="Install the browser binaries with: playwright install chromium",
                    ) from exc
                context = browser.new_context()

            session = BrowserSession(
                browser=browser,
                context=context,
                mode=mode,
                viewport_width=self._config.viewport_width,
                viewport_height=self._config.viewport_height,
                stealth=mode is SessionMode.FRESH,
            )
            try:
                yield session
            finally:
                # For CDP-attached browsers close() only disconnects.
                browser.close()
                print("[SESSION] Browser disconnected" if ws_url else "[SESSION] Browser closed")
