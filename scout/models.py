"""Data models for the listing and replay pipelines.

Records are persisted as plain JSON objects.  The dataclasses here describe
what each stage *produces*; the stages then merge those values into the
evolving document so keys added by later stages are never lost.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List


@dataclass
class Record:
    """One listing entry as extracted from the listing page."""

    title: str
    description: str
    image: str | None
    tags: List[str] = field(default_factory=list)
    comment: str = ""
    link: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Technologies:
    """Technology labels detected for a destination, bucketed by category."""

    frameworks: List[str] = field(default_factory=list)
    cms: List[str] = field(default_factory=list)
    javascript_libraries: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, List[str]]:
        return {
            "frameworks": list(self.frameworks),
            "cms": list(self.cms),
            "javascriptLibraries": list(self.javascript_libraries),
        }


@dataclass
class ReplayEntry:
    """A source URL (``origin``) whose tracking link ``old`` needs replacing."""

    old: str
    origin: str

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ReplayEntry":
        return cls(old=raw["old"], origin=raw["origin"])


@dataclass
class ReplayResult:
    old: str
    new: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class ReplayFailure:
    old: str
    origin: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
