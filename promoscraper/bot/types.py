"""Typed structures shared across bot components."""

from __future__ import annotations

from typing import TypedDict


class CategorizedURLs(TypedDict):
    """URL buckets split into marketplace products and social posts."""

    marketplace: list[str]
    social: list[str]


class ProcessedURLs(TypedDict):
    """URL extraction outcome for one message."""

    urls: list[str]
    categorized: CategorizedURLs
    unsupported: list[str]
