"""Centralised settings for launch-scout.

Runtime locations and endpoints are resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Timing constants and environment-derived behaviour live in
:class:`PipelineConfig`, an immutable value handed to every pipeline component
at construction time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


class Environment(str, Enum):
    """Run environment.  ``test`` keeps the browser visible and caps scrolling."""

    TEST = "test"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str) -> "Environment":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown environment {value!r}; expected one of: {choices}") from None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Run environment
    # ------------------------------------------------------------------
    environment: str = field(
        default_factory=lambda: os.environ.get("SCOUT_ENV", Environment.TEST.value)
    )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    data_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("SCOUT_DATA_DIR", "."))
    )

    @property
    def records_path(self) -> Path:
        """Listing document shared by the scrape/resolve/classify stages."""
        return self.data_dir / "data.json"

    @property
    def replay_output_path(self) -> Path:
        return self.data_dir / "output.json"

    @property
    def replay_failed_path(self) -> Path:
        return self.data_dir / "failed.json"

    # ------------------------------------------------------------------
    # Target sites
    # ------------------------------------------------------------------
    listing_url: str = field(
        default_factory=lambda: os.environ.get(
            "SCOUT_LISTING_URL", "https://www.producthunt.com/leaderboard/yearly/2025/all"
        )
    )
    site_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "SCOUT_SITE_BASE_URL", "https://www.producthunt.com"
        )
    )
    inspection_url: str = field(
        default_factory=lambda: os.environ.get(
            "SCOUT_INSPECTION_URL", "https://pro.builtwith.com/"
        )
    )
    replay_url: str = field(
        default_factory=lambda: os.environ.get(
            "SCOUT_REPLAY_URL",
            "https://app.impact.com/secure/mediapartner/home/pview.ihtml",
        )
    )

    # ------------------------------------------------------------------
    # Remote debugging endpoint
    # ------------------------------------------------------------------
    debug_host: str = field(
        default_factory=lambda: os.environ.get("SCOUT_DEBUG_HOST", "localhost")
    )
    debug_port: int = field(
        default_factory=lambda: int(os.environ.get("SCOUT_DEBUG_PORT", "9222"))
    )
    debug_endpoint_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SCOUT_DEBUG_ENDPOINT_TIMEOUT", "5.0"))
    )

    # ------------------------------------------------------------------
    # Browser
    # ------------------------------------------------------------------
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SCOUT_NAVIGATION_TIMEOUT", "60.0"))
    )


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable knobs shared by the session provider and every stage.

    All durations are in seconds.
    """

    environment: Environment = Environment.TEST
    site_base_url: str = "https://www.producthunt.com"
    inspection_url: str = "https://pro.builtwith.com/"
    replay_url: str = "https://app.impact.com/secure/mediapartner/home/pview.ihtml"
    debug_host: str = "localhost"
    debug_port: int = 9222
    debug_endpoint_timeout: float = 5.0
    navigation_timeout: float = 60.0

    viewport_width: int = 1350
    viewport_height: int = 850

    # Listing pagination
    test_max_scrolls: int = 3
    scroll_settle: float = 3.0
    max_no_growth_attempts: int = 10

    # Link resolution
    new_tab_timeout: float = 5.0
    new_tab_load_timeout: float = 10.0

    # Classification
    classify_settle: float = 5.0
    tracking_param: str = "ref"
    tracking_value: str = "producthunt"

    # Replay
    replay_submit_wait: float = 1.0
    replay_poll_attempts: int = 10
    replay_poll_interval: float = 2.0

    @property
    def max_scrolls(self) -> Optional[int]:
        """Scroll budget; ``None`` means unbounded (production)."""
        if self.environment is Environment.PRODUCTION:
            return None
        return self.test_max_scrolls

    @property
    def headless(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @property
    def debug_version_url(self) -> str:
        return f"http://{self.debug_host}:{self.debug_port}/json/version"

    @classmethod
    def from_settings(
        cls,
        source: Settings,
        environment: Optional[str] = None,
    ) -> "PipelineConfig":
        """Build a config from *source*, optionally overriding the environment."""
        return cls(
            environment=Environment.parse(environment or source.environment),
            site_base_url=source.site_base_url,
            inspection_url=source.inspection_url,
            replay_url=source.replay_url,
            debug_host=source.debug_host,
            debug_port=source.debug_port,
            debug_endpoint_timeout=source.debug_endpoint_timeout,
            navigation_timeout=source.navigation_timeout,
        )


def ms(seconds: float) -> float:
    """Convert seconds to the millisecond timeouts Playwright expects."""
    return seconds * 1000


# Module-level singleton; import this everywhere:
#   from scout.config import settings
settings = Settings()
