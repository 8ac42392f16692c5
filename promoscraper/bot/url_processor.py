"""URL extraction and categorisation for incoming messages.

Splits the links of a message into marketplace product links and social
post links. Classification is purely local; nothing is fetched here.
"""

from __future__ import annotations

import logging
import re
from typing import Final

from ..scrapers.router import ScraperRouter
from ..social.dispatcher import SocialDispatcher
from .types import CategorizedURLs, ProcessedURLs

logger = logging.getLogger(__name__)


class URLProcessor:
    """Handles URL detection and categorisation."""

    URL_PATTERN: Final[re.Pattern[str]] = re.compile(r"(https?://[^\s\)\]\}<>\"']+)")

    def __init__(self, scraper_router: ScraperRouter, social_dispatcher: SocialDispatcher):
        self._router = scraper_router
        self._dispatcher = social_dispatcher

    def extract_urls(self, text: str | None) -> list[str]:
        """Extract distinct URLs from free-form text, in order."""
        if not text:
            return []

        urls: list[str] = []
        for raw_url in self.URL_PATTERN.findall(text):
            url = raw_url.rstrip(".,);!")
            if url not in urls:
                urls.append(url)
        logger.debug("Extracted %d URLs from text", len(urls))
        return urls

    def categorize_urls(self, urls: list[str]) -> tuple[CategorizedURLs, list[str]]:
        """Split URLs into marketplace and social buckets.

        Marketplace classification wins when a URL matches both, so a Shopee
        product link is scraped as a product rather than a video.

        Returns:
            The buckets and the URLs no scraper accepts.
        """
        marketplace: list[str] = []
        social: list[str] = []
        unsupported: list[str] = []

        for url in urls:
            if self._router.detect_marketplace(url) is not None:
                marketplace.append(url)
            elif self._dispatcher.can_handle(url):
                social.append(url)
            else:
                unsupported.append(url)

        if unsupported:
            logger.info("Ignoring unsupported URLs: %s", unsupported)
        return CategorizedURLs(marketplace=marketplace, social=social), unsupported

    def process_message(self, text: str | None) -> ProcessedURLs:
        """Full URL processing pipeline used by message handlers."""
        urls = self.extract_urls(text)
        categorized, unsupported = self.categorize_urls(urls)
        return ProcessedURLs(urls=urls, categorized=categorized, unsupported=unsupported)
