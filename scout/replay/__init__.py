"""Replay pipeline — regenerate tracking links through a web form."""

from scout.replay.pipeline import ReplayPipeline

__all__ = ["ReplayPipeline"]
