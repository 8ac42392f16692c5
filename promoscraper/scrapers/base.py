"""Base scraper protocol and abstractions for marketplace product extraction.

Defines the unified interface all marketplace scrapers implement and the
shared fetch, extract and headless-fallback flow most of them reuse.
"""

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any, Protocol

import aiohttp
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from pydantic import ValidationError

from ..config import config
from ..errors import BlockedPageError
from ..fetching import FetchedPage, create_session, fetch_page
from ..models import Marketplace, ProductData, ScrapeField, ScrapeOptions, ScraperResult
from ..urls import host_matches
from .headless import HeadlessBrowser
from .parsing import calculate_discount, coerce_price, normalize_image_url, should_include

logger = logging.getLogger(__name__)

PLAYWRIGHT_SKIPPED_ERROR = "Playwright skipped for validation"
EXTRACTION_FAILED_ERROR = "Failed to extract product data"
BOTH_METHODS_FAILED_ERROR = "Failed to scrape product data with both methods"

SessionFactory = Callable[[], aiohttp.ClientSession]
BrowserFactory = Callable[[], HeadlessBrowser]


class MarketplaceScraper(Protocol):
    """Protocol defining the interface for all marketplace scrapers.

    Attributes:
        marketplace: Marketplace identifier the plugin produces data for.
        marketplace_name: Human-readable marketplace name.
    """

    marketplace: Marketplace
    marketplace_name: str

    def can_handle(self, url: str) -> bool:
        """Check if this scraper can handle the given URL.

        Must be cheap and side-effect free; the router calls it on every
        plugin for every request.
        """
        ...

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScraperResult:
        """Extract product data from a marketplace URL.

        Args:
            url: Product or affiliate URL.
            options: Field hints, attribution and fallback switches.

        Returns:
            Tagged result; expected failures never raise.
        """
        ...


def build_product(
    *,
    marketplace: Marketplace,
    product_url: str,
    title: str | None,
    price: Any,
    image_url: Any,
    original_price: Any = None,
    discount_percentage: int | None = None,
    description: str | None = None,
    rating: float | None = None,
    review_count: int | None = None,
    sales_quantity: int | None = None,
    seller: str | None = None,
    in_stock: bool = True,
    options: ScrapeOptions | None = None,
) -> ProductData | None:
    """Assemble normalized product data from raw extracted values.

    Title, price and image are mandatory; anything else that fails to
    normalize is dropped rather than failing the whole extraction. An
    original price below the current price is discarded and the discount is
    derived from the two prices when the page does not state one.

    Returns:
        ProductData, or None when a mandatory field is missing.
    """
    title = (title or "").strip()
    current_price = coerce_price(price)
    image = normalize_image_url(image_url)
    if not title or current_price is None or image is None:
        return None

    previous_price: Decimal | None = coerce_price(original_price)
    if previous_price is not None and previous_price < current_price:
        previous_price = None

    discount: int | None = None
    if previous_price is not None and previous_price > current_price:
        discount = calculate_discount(previous_price, current_price)
    elif discount_percentage is not None and 0 <= discount_percentage <= 100:
        discount = discount_percentage

    if not isinstance(rating, int | float) or isinstance(rating, bool) or not 0 <= rating <= 5:
        rating = None
    if not isinstance(review_count, int) or isinstance(review_count, bool) or review_count < 0:
        review_count = None
    if (
        not isinstance(sales_quantity, int)
        or isinstance(sales_quantity, bool)
        or sales_quantity < 0
    ):
        sales_quantity = None

    try:
        return ProductData(
            title=title,
            description=(
                description.strip() or None
                if description and should_include(options, ScrapeField.DESCRIPTION)
                else None
            ),
            price=current_price,
            original_price=previous_price,
            discount_percentage=discount,
            image_url=image,
            product_url=product_url,
            marketplace=marketplace,
            rating=rating if should_include(options, ScrapeField.RATING) else None,
            review_count=(
                review_count if should_include(options, ScrapeField.REVIEW_COUNT) else None
            ),
            sales_quantity=(
                sales_quantity if should_include(options, ScrapeField.SALES_QUANTITY) else None
            ),
            seller=(seller or None) if should_include(options, ScrapeField.SELLER) else None,
            in_stock=in_stock,
        )
    except ValidationError as e:
        logger.warning(f"Discarding invalid {marketplace} product data: {e}")
        return None


class BaseScraper:
    """Base class providing the common scrape flow for all marketplace scrapers.

    The default ``scrape`` fetches the page over HTTP, hands the parsed
    document to ``extract_product_data`` and escalates to the headless
    browser when extraction fails, unless the caller forbids it.

    Subclasses set ``marketplace``, ``marketplace_name`` and ``domains`` and
    implement ``extract_product_data``.
    """

    marketplace: Marketplace
    marketplace_name: str
    domains: tuple[str, ...] = ()
    browser_wait_selector: str | None = None

    def __init__(
        self,
        session_factory: SessionFactory = create_session,
        browser_factory: BrowserFactory | None = None,
    ):
        """Initialize base scraper.

        Args:
            session_factory: Creates the HTTP session used for one scrape.
            browser_factory: Creates the headless browser for the fallback.
        """
        self._session_factory = session_factory
        self._browser_factory = browser_factory or HeadlessBrowser
        self.logger = logging.getLogger(f"{__name__}.{self.marketplace.value.lower()}")

    def can_handle(self, url: str) -> bool:
        return host_matches(url, self.domains)

    async def fetch(self, url: str, headers: dict[str, str] | None = None) -> FetchedPage:
        """Fetch a page in a fresh session, following redirects."""
        async with self._session_factory() as session:
            return await fetch_page(session, url, headers=headers)

    async def resolve_url(self, url: str, headers: dict[str, str] | None = None) -> str:
        """Follow redirects of a short or affiliate link.

        Returns:
            Final URL, or the input URL when resolution fails.
        """
        try:
            page = await self.fetch(url, headers=headers)
        except (aiohttp.ClientError, TimeoutError) as e:
            self.logger.debug(f"Could not resolve {url}: {e}")
            return url
        return page.url

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScraperResult:
        """Fetch, extract and fall back to the headless browser if needed."""
        options = options or ScrapeOptions()
        original_url = options.original_url or url
        self._log_scraping_start(url)

        page: FetchedPage | None = None
        try:
            page = await self.fetch(url)
        except (aiohttp.ClientError, TimeoutError) as e:
            self.logger.info(f"HTTP fetch failed for {url}: {e!r}")

        resolved_url = page.url if page else url
        if not self.can_handle(resolved_url) and not self.can_handle(original_url):
            return ScraperResult.fail(f"URL not supported by {self.marketplace_name} scraper")

        if page is not None:
            soup = BeautifulSoup(page.text, "lxml")
            data = self.extract_product_data(soup, resolved_url, original_url, options)
            if data:
                self._log_scraping_success(data)
                return ScraperResult.ok(data)
            self.logger.info(f"HTML extraction found no product data for {resolved_url}")

        return await self._fallback_to_browser(resolved_url, original_url, options)

    async def _fallback_to_browser(
        self, resolved_url: str, original_url: str, options: ScrapeOptions
    ) -> ScraperResult:
        if options.skip_playwright or not config.scraping.enable_headless_browser:
            return ScraperResult.fail(PLAYWRIGHT_SKIPPED_ERROR)

        try:
            data = await self.scrape_with_browser(resolved_url, original_url, options)
        except BlockedPageError as e:
            self._log_scraping_error(resolved_url, e)
            return ScraperResult.fail(str(e))
        except (PlaywrightError, RuntimeError) as e:
            self._log_scraping_error(resolved_url, e)
            return ScraperResult.fail(BOTH_METHODS_FAILED_ERROR)

        if data is None:
            return ScraperResult.fail(EXTRACTION_FAILED_ERROR)

        self._log_scraping_success(data)
        return ScraperResult.ok(data)

    def extract_product_data(
        self,
        soup: BeautifulSoup,
        resolved_url: str,
        original_url: str,
        options: ScrapeOptions,
    ) -> ProductData | None:
        """Extract product data from a parsed marketplace page.

        Args:
            soup: Parsed page document.
            resolved_url: URL the page was served from.
            original_url: URL the caller submitted, used as product URL.
            options: Field hints for the extraction.

        Returns:
            ProductData if the mandatory fields were found, None otherwise.
        """
        raise NotImplementedError

    async def scrape_with_browser(
        self, resolved_url: str, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        """Render the page headlessly and run the HTML extraction on it."""
        async with self._browser_factory() as browser:
            rendered = await browser.render(resolved_url, wait_for=self.browser_wait_selector)
        soup = BeautifulSoup(rendered.html, "lxml")
        return self.extract_product_data(soup, rendered.url, original_url, options)

    def _build(
        self, original_url: str, options: ScrapeOptions, **values: Any
    ) -> ProductData | None:
        return build_product(
            marketplace=self.marketplace, product_url=original_url, options=options, **values
        )

    def _log_scraping_start(self, url: str) -> None:
        self.logger.info(f"Starting {self.marketplace_name} scraping: {url}")

    def _log_scraping_success(self, data: ProductData) -> None:
        self.logger.info(
            f"Successfully scraped {self.marketplace_name} product: {data.title} ({data.price})"
        )

    def _log_scraping_error(self, url: str, error: Exception) -> None:
        self.logger.error(f"Failed to scrape {self.marketplace_name} ({url}): {error}")
