"""Listing pipeline — scrape, resolve destinations, classify technologies."""

from scout.listing.classifier import TechnologyClassifier, parse_technologies, strip_tracking_suffix
from scout.listing.resolver import LinkResolver
from scout.listing.runner import (
    Stage,
    classify_technologies,
    resolve_links,
    run_stages,
    scrape_listing,
)
from scout.listing.scraper import ListingScraper

__all__ = [
    "ListingScraper",
    "LinkResolver",
    "TechnologyClassifier",
    "Stage",
    "scrape_listing",
    "resolve_links",
    "classify_technologies",
    "run_stages",
    "parse_technologies",
    "strip_tracking_suffix",
]
