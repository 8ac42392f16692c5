"""Global test configuration and fixtures.

Provides shared fixtures for all test levels: sample product data, fake
marketplace scrapers for routing tests and helpers that stand in for HTTP
fetches so no unit or integration test touches the network.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from promoscraper.config import config
from promoscraper.fetching import FetchedPage
from promoscraper.models import Marketplace, ProductData, ScrapeOptions, ScraperResult
from promoscraper.urls import host_matches


class FakeScraper:
    """Marketplace scraper double returning scripted results in order."""

    def __init__(
        self,
        marketplace: Marketplace,
        domains: tuple[str, ...],
        results: list[ScraperResult | BaseException] | None = None,
        name: str | None = None,
    ):
        self.marketplace = marketplace
        self.marketplace_name = name or marketplace.value.title()
        self.domains = domains
        self.results = list(results or [])
        self.calls: list[tuple[str, ScrapeOptions | None]] = []

    def can_handle(self, url: str) -> bool:
        return host_matches(url, self.domains)

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScraperResult:
        self.calls.append((url, options))
        outcome = self.results.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def sample_product() -> ProductData:
    return ProductData(
        title="Fone de Ouvido Bluetooth",
        price=Decimal("89.90"),
        original_price=Decimal("129.90"),
        discount_percentage=31,
        image_url="https://cf.shopee.com.br/file/abc123",
        product_url="https://s.shopee.com.br/4AqTLNvjQx",
        marketplace=Marketplace.SHOPEE,
        rating=4.8,
        review_count=1520,
        sales_quantity=10000,
    )


@pytest.fixture
def fake_scraper_factory():
    return FakeScraper


@pytest.fixture
def no_browser():
    """Disable the headless browser fallback for the duration of a test."""
    with patch.object(config.scraping, "enable_headless_browser", False):
        yield


@pytest.fixture
def make_fetcher():
    """Build an AsyncMock for ``BaseScraper.fetch`` serving one page."""

    def _make(url: str, html: str, status: int = 200) -> AsyncMock:
        return AsyncMock(return_value=FetchedPage(url=url, status=status, text=html))

    return _make
