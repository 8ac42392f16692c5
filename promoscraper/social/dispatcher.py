"""Social URL dispatch: first matching scraper, single attempt."""

import logging
from collections.abc import Sequence

from ..errors import UnsupportedPlatformError
from ..models import MediaResult
from .base import SocialScraper

logger = logging.getLogger(__name__)


class SocialDispatcher:
    """Routes social post URLs to the scraper that accepts them.

    There is no retry or fallback: a scraper failure propagates to the
    caller as ``MediaExtractionError``.
    """

    def __init__(self, scrapers: Sequence[SocialScraper]):
        self._scrapers = tuple(scrapers)

    def supported_platforms(self) -> list[str]:
        """Display labels of every supported platform, in order."""
        return [scraper.label for scraper in self._scrapers]

    def find_scraper(self, url: str) -> SocialScraper | None:
        return next((scraper for scraper in self._scrapers if scraper.can_handle(url)), None)

    def can_handle(self, url: str) -> bool:
        return self.find_scraper(url) is not None

    async def scrape(self, url: str) -> MediaResult:
        """Extract media from a social post URL.

        Raises:
            UnsupportedPlatformError: When no scraper accepts the URL.
            MediaExtractionError: When the chosen scraper fails.
        """
        scraper = self.find_scraper(url)
        if scraper is None:
            logger.debug(f"No social scraper for {url}")
            raise UnsupportedPlatformError(self.supported_platforms())
        return await scraper.scrape(url)
