"""Browser package — remote session discovery and lifecycle."""

from scout.browser.session import (
    BrowserSession,
    RemoteSessionProvider,
    SessionMode,
    get_ws_endpoint,
)

__all__ = ["BrowserSession", "RemoteSessionProvider", "SessionMode", "get_ws_endpoint"]
