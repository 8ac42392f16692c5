"""Marketplace classification and retrying scrape dispatch.

The router classifies a URL (affiliate map first, then each scraper's
``can_handle`` in registration order) and drives the chosen scraper through
a bounded retry state machine:

    START -> ATTEMPT(1) -> SUCCEEDED
                        -> RETRY -> ATTEMPT(2) -> SUCCEEDED
                                               -> FAILED

Attempts are sequential with no backoff. A scraper exception counts as a
failed attempt; cancellation is never swallowed.
"""

import logging
from collections.abc import Mapping, Sequence
from enum import StrEnum
from types import MappingProxyType

from ..models import Marketplace, ScrapeOptions, ScraperResult
from .base import MarketplaceScraper

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
UNSUPPORTED_ERROR = "Marketplace not supported"


class ScrapeState(StrEnum):
    START = "START"
    ATTEMPT = "ATTEMPT"
    RETRY = "RETRY"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({ScrapeState.SUCCEEDED, ScrapeState.FAILED})


def next_state(state: ScrapeState, succeeded: bool, attempt: int) -> ScrapeState:
    """Transition function of the retry state machine.

    Args:
        state: Current state.
        succeeded: Outcome of the attempt just made (only read in ATTEMPT).
        attempt: Number of the attempt just made, starting at 1.

    Returns:
        The following state; terminal states map to themselves.
    """
    if state in TERMINAL_STATES:
        return state
    if state in (ScrapeState.START, ScrapeState.RETRY):
        return ScrapeState.ATTEMPT
    if succeeded:
        return ScrapeState.SUCCEEDED
    return ScrapeState.RETRY if attempt < MAX_ATTEMPTS else ScrapeState.FAILED


class ScraperRouter:
    """Routes URLs to marketplace scrapers.

    Provides centralized management of the marketplace scrapers with
    affiliate-link fast path, URL classification and retries.
    """

    def __init__(
        self,
        scrapers: Sequence[MarketplaceScraper],
        affiliate_map: Mapping[str, Marketplace] | None = None,
    ):
        """Initialize router.

        Args:
            scrapers: Scrapers in priority order; the first match wins.
            affiliate_map: Pre-classified affiliate links.
        """
        self._scrapers = tuple(scrapers)
        self._by_marketplace = MappingProxyType(
            {scraper.marketplace: scraper for scraper in reversed(self._scrapers)}
        )
        self._affiliate_map = MappingProxyType(dict(affiliate_map or {}))

    @property
    def scrapers(self) -> tuple[MarketplaceScraper, ...]:
        return self._scrapers

    def _find_scraper(self, url: str) -> MarketplaceScraper | None:
        marketplace = self._affiliate_map.get(url.strip())
        if marketplace is not None and marketplace in self._by_marketplace:
            return self._by_marketplace[marketplace]

        for scraper in self._scrapers:
            if scraper.can_handle(url):
                return scraper
        return None

    def detect_marketplace(self, url: str) -> Marketplace | None:
        """Classify a URL without any network access.

        Returns:
            Marketplace of the first matching scraper, None when unsupported.
        """
        scraper = self._find_scraper(url)
        return scraper.marketplace if scraper else None

    def get_supported_marketplaces(self) -> list[str]:
        """Get display names of all registered marketplaces, in order."""
        return [scraper.marketplace_name for scraper in self._scrapers]

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScraperResult:
        """Scrape a product URL with one retry.

        Args:
            url: Product or affiliate URL as submitted by the caller.
            options: Scrape options; ``original_url`` is always set to ``url``.

        Returns:
            The first successful result, or the last attempt's failure.
        """
        scraper = self._find_scraper(url)
        if scraper is None:
            logger.debug(f"No marketplace scraper for {url}")
            return ScraperResult.fail(UNSUPPORTED_ERROR)

        attempt_options = (options or ScrapeOptions()).model_copy(update={"original_url": url})
        name = scraper.marketplace_name

        state = ScrapeState.START
        attempt = 0
        result = ScraperResult.fail(UNSUPPORTED_ERROR)

        while state not in TERMINAL_STATES:
            if state is ScrapeState.ATTEMPT:
                attempt += 1
                result = await self._attempt(scraper, url, attempt_options, attempt)
                state = next_state(state, result.success, attempt)
            else:
                state = next_state(state, False, attempt)

        if state is ScrapeState.FAILED:
            logger.warning(f"{name} scrape failed after {attempt} attempts: {result.error}")
        return result

    async def _attempt(
        self,
        scraper: MarketplaceScraper,
        url: str,
        options: ScrapeOptions,
        attempt: int,
    ) -> ScraperResult:
        name = scraper.marketplace_name
        try:
            result = await scraper.scrape(url, options)
        except Exception as e:
            logger.error(f"{name} scrape attempt {attempt}/{MAX_ATTEMPTS} crashed: {e!r}")
            return ScraperResult.fail(str(e) or e.__class__.__name__)

        if not result.success:
            logger.warning(
                f"{name} scrape attempt {attempt}/{MAX_ATTEMPTS} failed: {result.error}"
            )
        return result
