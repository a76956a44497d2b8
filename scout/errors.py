"""Exception types raised by the pipeline stages.

Only :class:`BrowserConnectionError` is fatal for a run.  Every other error is
caught at the per-item boundary of the stage that raised it and turned into a
skip, a ``null``/empty marker on the record, or a failure-document entry.
"""

from __future__ import annotations


class ScoutError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Error message describing what went wrong
        url: Optional URL being processed when the error occurred
    """

    def __init__(self, message: str, url: str | None = None):
        self.message = message
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} | url={self.url}"
        return self.message


class BrowserConnectionError(ScoutError, ConnectionError):
    """The remote browser session could not be established.

    Carries operator-facing ``remediation`` text explaining how to start a
    browser with remote debugging enabled.
    """

    def __init__(self, message: str, url: str | None = None, remediation: str = ""):
        super().__init__(message, url=url)
        self.remediation = remediation


class NavigationError(ScoutError):
    """A page could not be reached or an expected navigation never happened."""


class ExtractionError(ScoutError):
    """An expected DOM element was absent while extracting a listing entry."""


class VerificationError(ScoutError):
    """A form input did not echo back the value that was typed into it."""


class GenerationTimeoutError(ScoutError):
    """Polling for a generated value was exhausted without a result."""


class StoreError(ScoutError):
    """A persisted JSON document exists but cannot be used."""
