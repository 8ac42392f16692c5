"""Error vocabulary of the scraping core.

Marketplace scrapes report failures as ``ScraperResult`` values; only the
social flow raises, because its dispatcher has no retry or fallback and the
caller must stop.
"""

from collections.abc import Sequence


class ScrapingError(Exception):
    """Base class for errors raised by the scraping core."""


class MediaExtractionError(ScrapingError):
    """A social scraper could not extract any media from a post.

    Attributes:
        platform: Display name of the platform that failed.
        reason: What went wrong, without the platform prefix.
    """

    def __init__(self, platform: str, reason: str):
        self.platform = platform
        self.reason = reason
        super().__init__(f"{platform}: {reason}")


class UnsupportedPlatformError(ScrapingError):
    """No social scraper accepts the URL.

    Attributes:
        platforms: Display names of every supported platform.
    """

    def __init__(self, platforms: Sequence[str]):
        self.platforms = list(platforms)
        listing = "\n".join(f"• {platform}" for platform in self.platforms)
        super().__init__(f"Unsupported platform.\n\nSupported platforms:\n{listing}")


class BlockedPageError(ScrapingError):
    """A marketplace answered with an anti-bot challenge instead of the product."""
