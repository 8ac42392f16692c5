"""Public entry points of the scraping core.

Thin functions over the global router and dispatcher for callers that do
not wire their own instances through the container.
"""

from .fields import get_required_scrape_fields
from .models import (
    LayoutPreferences,
    Marketplace,
    MediaResult,
    ScrapeField,
    ScrapeOptions,
    ScraperResult,
)
from .scrapers import scraper_router
from .social import social_dispatcher

__all__ = [
    "detect_marketplace",
    "get_required_scrape_fields",
    "required_fields_for",
    "scrape_media",
    "scrape_product",
]


async def scrape_product(url: str, options: ScrapeOptions | None = None) -> ScraperResult:
    """Scrape a marketplace product URL (never raises for expected failures)."""
    return await scraper_router.scrape(url, options)


async def scrape_media(url: str) -> MediaResult:
    """Extract media from a social post URL.

    Raises:
        UnsupportedPlatformError: No social scraper accepts the URL.
        MediaExtractionError: The platform's scraper failed.
    """
    return await social_dispatcher.scrape(url)


def detect_marketplace(url: str) -> Marketplace | None:
    """Classify a URL to a marketplace without network access."""
    return scraper_router.detect_marketplace(url)


def required_fields_for(layout: dict | LayoutPreferences | None) -> list[ScrapeField]:
    """Like ``get_required_scrape_fields`` but accepts raw camelCase preferences."""
    if isinstance(layout, dict):
        layout = LayoutPreferences.model_validate(layout)
    return get_required_scrape_fields(layout)
