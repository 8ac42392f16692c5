"""Social scraper protocol and the shared fetch-and-extract flow."""

import logging
from typing import Protocol

import aiohttp

from ..config import config
from ..errors import MediaExtractionError
from ..fetching import FetchedPage, create_session, fetch_page
from ..models import MediaItem, MediaResult, SocialPlatform
from ..services.expiring_cache import ExpiringCache
from .utils import build_headers, resolve_final_url

logger = logging.getLogger(__name__)


class SocialScraper(Protocol):
    """Protocol defining the interface for all social media scrapers.

    Attributes:
        platform: Platform identifier reported in results.
        label: Display label listed when a URL is unsupported.
    """

    platform: SocialPlatform
    label: str

    def can_handle(self, url: str) -> bool:
        """Check if this scraper accepts the URL (pure, no I/O)."""
        ...

    async def scrape(self, url: str) -> MediaResult:
        """Extract media from a post.

        Raises:
            MediaExtractionError: When no media can be extracted.
        """
        ...


class BaseSocialScraper:
    """Base class for scrapers that fetch the post page and parse it.

    Subclasses implement ``can_handle`` and ``extract_media`` and may
    override ``needs_resolution`` and ``canonical_url``.
    """

    platform: SocialPlatform
    label: str
    name: str

    def __init__(self, cache: ExpiringCache | None = None):
        """Initialize social scraper.

        Args:
            cache: Shared cache of resolved short links.
        """
        self._cache = cache
        self.logger = logging.getLogger(f"{__name__}.{self.platform.value.lower()}")

    def can_handle(self, url: str) -> bool:
        raise NotImplementedError

    def needs_resolution(self, url: str) -> bool:
        """Whether the URL is a short link that must be resolved first."""
        return False

    def canonical_url(self, url: str) -> str:
        """Stable post URL reported in the result."""
        return url.split("?", 1)[0]

    def extract_media(self, html: str, page_url: str) -> list[MediaItem]:
        """Extract media items from the fetched post page."""
        raise NotImplementedError

    def _session(self) -> aiohttp.ClientSession:
        return create_session(headers=build_headers(), timeout=config.scraping.request_timeout)

    async def _load_page(self, url: str) -> tuple[str, FetchedPage]:
        """Resolve short links and fetch the post page.

        Returns:
            Canonical post URL and the fetched page.

        Raises:
            MediaExtractionError: On transport failures.
        """
        try:
            async with self._session() as session:
                target = url
                if self.needs_resolution(url):
                    target = await resolve_final_url(session, url, self._cache)
                canonical = self.canonical_url(target)
                return canonical, await fetch_page(session, canonical)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise MediaExtractionError(self.name, f"could not fetch {url} ({e!r})") from e

    async def scrape(self, url: str) -> MediaResult:
        self.logger.info(f"Extracting {self.name} media: {url}")
        canonical, page = await self._load_page(url)
        items = self.extract_media(page.text, page.url)
        if not items:
            raise MediaExtractionError(self.name, "could not extract media from the post")

        self.logger.info(f"Extracted {len(items)} {self.name} media item(s)")
        return MediaResult(source=self.platform, url=canonical, items=items)
