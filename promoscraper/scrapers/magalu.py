"""Magazine Luiza (Magalu) product scraper.

Magalu protects its pages with a perfdrive challenge
(``validate.perfdrive.com``). The scraper unwraps the challenge target when
the redirect carries one, reuses cookies a previous headless session
collected, and reports the challenge as a captcha failure when it cannot get
past it. Promoter links (``/divulgador/oferta/``) are rewritten to the
regular product path.
"""

import json
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlencode, urlparse, urlunparse

import aiohttp
from bs4 import BeautifulSoup

from ..config import config
from ..errors import BlockedPageError
from ..models import Marketplace, ProductData, ScrapeOptions, ScraperResult
from ..urls import host_matches
from .base import BaseScraper
from .headless import HeadlessBrowser
from .parsing import (
    JsonRecord,
    coerce_price,
    extract_count,
    extract_rating,
    find_json_ld,
    find_record,
    json_ld_in_stock,
    json_ld_offer,
    load_next_data,
    meta_content,
    normalize_image_url,
    select_attr,
    select_text,
)

CAPTCHA_ERROR = (
    "Magalu captcha detected. Open the link in a browser, solve the captcha and try again."
)
PERFDRIVE_DOMAIN = "validate.perfdrive.com"
PROMOTER_PATH = "/divulgador/oferta/"
PROMOTER_PARAMS = ("promoter_id", "partner_id")
STORAGE_STATE_FILE = "magalu-playwright.json"

STATE_TITLE_KEYS = ("title", "name")
STATE_PRICE_KEYS = ("price", "priceValue", "salePrice", "bestPrice", "sellingPrice")
STATE_ORIGINAL_PRICE_KEYS = ("originalPrice", "listPrice", "priceFrom")
OUT_OF_STOCK_MARKERS = ("indisponível", "esgotado")


def is_perfdrive(url: str) -> bool:
    """Check whether a URL is the perfdrive anti-bot challenge."""
    return host_matches(url, (PERFDRIVE_DOMAIN,))


def normalize_magalu_url(url: str) -> str:
    """Force https and rewrite promoter offer links to the product path."""
    if url.lower().startswith("http://"):
        url = "https://" + url[len("http://") :]

    parsed = urlparse(url)
    if PROMOTER_PATH not in parsed.path:
        return url

    query = {
        key: values
        for key, values in parse_qs(parsed.query, keep_blank_values=True).items()
        if key not in PROMOTER_PARAMS
    }
    return urlunparse(
        parsed._replace(
            path=parsed.path.replace(PROMOTER_PATH, "/p/"),
            query=urlencode(query, doseq=True),
        )
    )


def extract_perfdrive_target(url: str) -> str | None:
    """Return the product URL a perfdrive challenge was guarding (``ssc`` param)."""
    targets = parse_qs(urlparse(url).query).get("ssc")
    if not targets or not targets[0]:
        return None
    return normalize_magalu_url(unquote(targets[0]))


def is_product_record(record: JsonRecord) -> bool:
    """Check whether a state object looks like a Magalu product."""
    has_name = isinstance(record.get("name"), str) or isinstance(record.get("title"), str)
    has_price = any(
        isinstance(record.get(key), int | float | str) and not isinstance(record.get(key), bool)
        for key in STATE_PRICE_KEYS
    )
    has_image = isinstance(record.get("image"), str) or any(
        isinstance(record.get(key), list)
        and bool(record[key])
        and isinstance(record[key][0], str)
        for key in ("images", "imageUrls")
    )
    return has_name and has_price and has_image


def _first_value(record: JsonRecord, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


class MagaluScraper(BaseScraper):
    """Scraper for magazineluiza.com.br products and Magalu promoter links."""

    marketplace = Marketplace.MAGALU
    marketplace_name = "Magalu"
    domains = ("magazineluiza.com.br", "magalu.com", "magalu.com.br")
    browser_wait_selector = 'h1, [data-testid="heading-product-title"]'

    @property
    def storage_state_path(self) -> Path:
        return Path(config.scraping.browser_state_dir) / STORAGE_STATE_FILE

    def _stored_cookie_header(self) -> str | None:
        """Build a Cookie header from the persisted browser storage state."""
        try:
            with open(self.storage_state_path, encoding="utf-8") as f:
                state = json.load(f)
        except (OSError, json.JSONDecodeError):
            return None

        cookies = [
            f"{cookie['name']}={cookie['value']}"
            for cookie in state.get("cookies", [])
            if "magazineluiza.com.br" in cookie.get("domain", "")
            and "name" in cookie
            and "value" in cookie
        ]
        return "; ".join(cookies) or None

    async def resolve_url(self, url: str, headers: dict[str, str] | None = None) -> str:
        """Resolve a promoter link, getting past the captcha redirect when possible."""
        resolved = await super().resolve_url(url, headers=headers)

        if is_perfdrive(resolved):
            cookie_header = self._stored_cookie_header()
            if cookie_header:
                retried = await super().resolve_url(url, headers={"Cookie": cookie_header})
                if not is_perfdrive(retried):
                    resolved = retried

        if is_perfdrive(resolved):
            target = extract_perfdrive_target(resolved)
            if target:
                self.logger.info(f"Unwrapped Magalu captcha target: {target}")
                return target
            return resolved

        return normalize_magalu_url(resolved)

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScraperResult:
        options = options or ScrapeOptions()
        original_url = options.original_url or url
        self._log_scraping_start(url)

        resolved_url = await self.resolve_url(url)
        browser_allowed = (
            not options.skip_playwright and config.scraping.enable_headless_browser
        )

        if is_perfdrive(resolved_url):
            if not browser_allowed:
                return ScraperResult.fail(CAPTCHA_ERROR)
            return await self._fallback_to_browser(url, original_url, options)

        try:
            page = await self.fetch(resolved_url)
        except (aiohttp.ClientError, TimeoutError) as e:
            self.logger.info(f"HTTP fetch failed for {resolved_url}: {e!r}")
        else:
            if is_perfdrive(page.url):
                return ScraperResult.fail(CAPTCHA_ERROR)
            soup = BeautifulSoup(page.text, "lxml")
            if self._has_invalid_image(soup):
                return ScraperResult.fail(CAPTCHA_ERROR)
            data = self.extract_product_data(soup, page.url, original_url, options)
            if data:
                self._log_scraping_success(data)
                return ScraperResult.ok(data)

        return await self._fallback_to_browser(resolved_url, original_url, options)

    def _has_invalid_image(self, soup: BeautifulSoup) -> bool:
        """Detect challenge pages that render a product shell with a broken image."""
        image = meta_content(soup, 'meta[property="og:image"]')
        title = meta_content(soup, 'meta[property="og:title"]')
        return bool(title and image and normalize_image_url(image) is None)

    def map_state_data(
        self, record: JsonRecord | None, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        """Map a product record from embedded page state."""
        if not record:
            return None

        image = record.get("image")
        if not isinstance(image, str):
            for key in ("images", "imageUrls"):
                images = record.get(key)
                if isinstance(images, list) and images:
                    image = images[0]
                    break

        title = _first_value(record, STATE_TITLE_KEYS)
        return self._build(
            original_url,
            options,
            title=title if isinstance(title, str) else None,
            price=coerce_price(_first_value(record, STATE_PRICE_KEYS)),
            original_price=coerce_price(_first_value(record, STATE_ORIGINAL_PRICE_KEYS)),
            image_url=image,
        )

    def extract_product_data(
        self,
        soup: BeautifulSoup,
        resolved_url: str,
        original_url: str,
        options: ScrapeOptions,
    ) -> ProductData | None:
        next_data = load_next_data(soup)
        if next_data:
            data = self.map_state_data(
                find_record(next_data, is_product_record), original_url, options
            )
            if data:
                return data

        product = find_json_ld(soup, "Product")
        if product:
            offer = json_ld_offer(product)
            aggregate = product.get("aggregateRating") or {}
            data = self._build(
                original_url,
                options,
                title=product.get("name"),
                description=product.get("description"),
                price=coerce_price(offer.get("price")),
                image_url=product.get("image"),
                rating=extract_rating(str(aggregate.get("ratingValue") or "")),
                review_count=extract_count(str(aggregate.get("reviewCount") or "")),
                in_stock=json_ld_in_stock(offer),
            )
            if data:
                return data

        stock_text = (
            select_text(soup, '[data-testid="buy-button"]', 'button[class*="buy"]') or ""
        ).lower()
        in_stock = bool(stock_text) and not any(
            marker in stock_text for marker in OUT_OF_STOCK_MARKERS
        )

        return self._build(
            original_url,
            options,
            title=meta_content(soup, 'meta[property="og:title"]')
            or select_text(soup, 'h1[data-testid="heading-product-title"]', "h1"),
            price=select_text(soup, '[data-testid="price-value"]', ".sc-price-order")
            or meta_content(soup, 'meta[property="product:price:amount"]'),
            original_price=select_text(soup, '[data-testid="price-original"]', ".sc-price-from"),
            image_url=meta_content(soup, 'meta[property="og:image"]')
            or select_attr(soup, 'img[data-testid="image-selected-thumbnail"]', "src")
            or select_attr(soup, 'img[class*="product"]', "src"),
            rating=extract_rating(
                select_attr(soup, '[data-testid="review-star-rating"]', "aria-label")
            ),
            review_count=extract_count(select_text(soup, '[data-testid="review-card-count"]')),
            seller=select_text(soup, '[data-testid="seller-name"]'),
            in_stock=in_stock,
        )

    def _browser(self) -> HeadlessBrowser:
        if self._browser_factory is HeadlessBrowser:
            return HeadlessBrowser(storage_state_path=self.storage_state_path)
        return self._browser_factory()

    async def scrape_with_browser(
        self, resolved_url: str, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        """Render with persisted cookies; a surviving challenge is a captcha failure."""
        async with self._browser() as browser:
            rendered = await browser.render(resolved_url, wait_for=self.browser_wait_selector)
            if is_perfdrive(rendered.url):
                raise BlockedPageError(CAPTCHA_ERROR)
            await browser.save_storage_state()

        if rendered.state:
            data = self.map_state_data(
                find_record(rendered.state, is_product_record), original_url, options
            )
            if data:
                return data

        soup = BeautifulSoup(rendered.html, "lxml")
        if self._has_invalid_image(soup):
            raise BlockedPageError(CAPTCHA_ERROR)
        return self.extract_product_data(soup, rendered.url, original_url, options)
