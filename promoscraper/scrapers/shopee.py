"""Shopee product scraper.

Shopee renders product pages client-side, so the scraper goes to the item
API first using the shop and item ids found in the (resolved) URL. The HTML
extraction over ``__NEXT_DATA__``, JSON-LD and meta tags, and the headless
browser with API response capture, are the fallbacks.
"""

import re
from decimal import Decimal
from typing import Any

import aiohttp
from bs4 import BeautifulSoup

from ..fetching import fetch_json, fetch_page
from ..models import Marketplace, ProductData, ScrapeOptions, ScraperResult
from .base import BaseScraper
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
    select_attr,
    select_text,
)

SLASH_IDS_RE = re.compile(r"/(\d+)/(\d+)")
DOTTED_IDS_RE = re.compile(r"i\.(\d+)\.(\d+)")

API_URL = "https://shopee.com.br/api/v4/item/get?shopid={shop_id}&itemid={item_id}"
PRODUCT_URL = "https://shopee.com.br/product/{shop_id}/{item_id}"
IMAGE_URL = "https://cf.shopee.com.br/file/{image}"
CAPTURED_API_PATHS = ("/api/v4/item/get", "/api/v4/pdp/get_pc")

PRICE_KEYS = ("price", "price_min", "price_max", "item_price")
ORIGINAL_PRICE_KEYS = (
    "price_before_discount",
    "price_max_before_discount",
    "item_price_before_discount",
)


def extract_ids(url: str) -> tuple[str, str] | None:
    """Extract ``(shop_id, item_id)`` from a Shopee product URL.

    Supports both ``/product/<shop>/<item>`` and ``...-i.<shop>.<item>``.
    """
    for pattern in (SLASH_IDS_RE, DOTTED_IDS_RE):
        match = pattern.search(url)
        if match:
            return match.group(1), match.group(2)
    return None


def canonical_product_url(shop_id: str, item_id: str) -> str:
    return PRODUCT_URL.format(shop_id=shop_id, item_id=item_id)


def normalize_api_price(value: Any) -> Decimal | None:
    """Scale an API price to currency units.

    The item API reports prices in 1/100000 units; some older payloads use
    cents. Values above 1,000,000 are divided by 100,000 and values above
    10,000 by 100.
    """
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        return None
    price = Decimal(str(value))
    if price > 1_000_000:
        return price / 100_000
    if price > 10_000:
        return price / 100
    return price


def is_item_record(record: JsonRecord) -> bool:
    """Check whether a state object looks like a Shopee item (name, price, image)."""
    has_name = isinstance(record.get("name"), str) or isinstance(record.get("item_name"), str)
    has_price = any(
        isinstance(record.get(key), int | float) and not isinstance(record.get(key), bool)
        for key in PRICE_KEYS
    )
    images = record.get("images")
    has_image = isinstance(record.get("image"), str) or (
        isinstance(images, list) and bool(images) and isinstance(images[0], str)
    )
    return has_name and has_price and has_image


def _first_present(record: JsonRecord, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


class ShopeeScraper(BaseScraper):
    """Scraper for shopee.com.br products and s.shopee.com.br short links."""

    marketplace = Marketplace.SHOPEE
    marketplace_name = "Shopee"
    domains = ("shopee.com.br", "shopee.com", "shp.ee")
    browser_wait_selector = 'meta[property="og:title"], script[type="application/ld+json"], h1'

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScraperResult:
        """Try the item API first, then the generic HTML and browser flow."""
        options = options or ScrapeOptions()
        original_url = options.original_url or url
        self._log_scraping_start(url)

        resolved_url = await self.resolve_url(url)
        ids = extract_ids(resolved_url) or extract_ids(url)
        canonical_url = canonical_product_url(*ids) if ids else resolved_url

        if ids:
            data = await self.fetch_from_api(ids[0], ids[1], canonical_url, original_url, options)
            if data:
                self._log_scraping_success(data)
                return ScraperResult.ok(data)
            self.logger.info(f"Shopee API gave no product for {canonical_url}")

        return await super().scrape(
            canonical_url, options.model_copy(update={"original_url": original_url})
        )

    async def fetch_from_api(
        self,
        shop_id: str,
        item_id: str,
        landing_url: str,
        original_url: str,
        options: ScrapeOptions,
    ) -> ProductData | None:
        """Query the item API with the cookies set by the product landing page.

        Args:
            shop_id: Shop identifier.
            item_id: Item identifier.
            landing_url: Canonical product page, fetched first for cookies.
            original_url: URL the caller submitted.
            options: Field hints.

        Returns:
            ProductData if the API answered with a usable item, None otherwise.
        """
        api_headers = {
            "Accept": "application/json, text/plain, */*",
            "Origin": "https://shopee.com.br",
            "Referer": landing_url,
            "X-Requested-With": "XMLHttpRequest",
            "X-Api-Source": "pc",
        }
        try:
            async with self._session_factory() as session:
                # Landing cookies stay in the session cookie jar for the API call.
                await fetch_page(session, landing_url, raise_for_status=False)
                payload = await fetch_json(
                    session, API_URL.format(shop_id=shop_id, item_id=item_id), headers=api_headers
                )
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            self.logger.warning(f"Shopee API request failed for {shop_id}/{item_id}: {e!r}")
            return None

        data = payload.get("data") if isinstance(payload, dict) else None
        return self.map_api_data(data, original_url, options)

    def map_api_data(
        self, data: Any, original_url: str, options: ScrapeOptions | None
    ) -> ProductData | None:
        """Map an item API or inline state record to ProductData."""
        if not isinstance(data, dict):
            return None
        item = data.get("item") if isinstance(data.get("item"), dict) else data

        name = item.get("name") or item.get("item_name")
        description = item.get("description")
        images = item.get("images")
        image = item.get("image") or (images[0] if isinstance(images, list) and images else None)
        if isinstance(image, str) and not image.startswith("http"):
            image = IMAGE_URL.format(image=image)

        sold = _first_present(item, ("historical_sold", "sold"))
        rating_info = item.get("item_rating") if isinstance(item.get("item_rating"), dict) else {}
        rating_counts = rating_info.get("rating_count")
        review_count = (
            rating_counts[0] if isinstance(rating_counts, list) and rating_counts else None
        )

        if isinstance(item.get("stock"), int | float):
            in_stock = item["stock"] > 0
        elif isinstance(item.get("normal_stock"), int | float):
            in_stock = item["normal_stock"] > 0
        else:
            in_stock = True

        return self._build(
            original_url,
            options,
            title=name if isinstance(name, str) else None,
            description=description if isinstance(description, str) else None,
            price=normalize_api_price(_first_present(item, PRICE_KEYS)),
            original_price=normalize_api_price(_first_present(item, ORIGINAL_PRICE_KEYS)),
            image_url=image,
            rating=rating_info.get("rating_star"),
            review_count=review_count if isinstance(review_count, int) else None,
            sales_quantity=sold if isinstance(sold, int) and not isinstance(sold, bool) else None,
            in_stock=in_stock,
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
            data = self.map_api_data(find_record(next_data, is_item_record), original_url, options)
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

        return self._build(
            original_url,
            options,
            title=meta_content(soup, 'meta[property="og:title"]') or select_text(soup, "h1"),
            description=meta_content(
                soup, 'meta[property="og:description"]', 'meta[name="description"]'
            ),
            price=meta_content(soup, 'meta[property="product:price:amount"]')
            or select_text(soup, ".price", '[class*="price"]', '[data-testid*="price"]'),
            image_url=meta_content(soup, 'meta[property="og:image"]')
            or select_attr(soup, 'img[itemprop="image"]', "src"),
            rating=extract_rating(select_text(soup, ".rating", '[class*="rating"]')),
            review_count=extract_count(select_text(soup, ".reviews", '[class*="review"]')),
            sales_quantity=extract_count(
                select_text(soup, ".sold", '[class*="sold"]', '[data-testid*="sold"]')
            ),
        )

    async def scrape_with_browser(
        self, resolved_url: str, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        """Render the page, preferring the item API response the page itself requests."""
        async with self._browser_factory() as browser:
            rendered = await browser.render(
                resolved_url,
                wait_for=self.browser_wait_selector,
                capture=lambda url: any(path in url for path in CAPTURED_API_PATHS),
            )

        payload = rendered.api_payload
        if payload:
            api_data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
            data = self.map_api_data(api_data, original_url, options)
            if data:
                return data

        if rendered.state:
            data = self.map_api_data(
                find_record(rendered.state, is_item_record), original_url, options
            )
            if data:
                return data

        soup = BeautifulSoup(rendered.html, "lxml")
        return self.extract_product_data(soup, rendered.url, original_url, options)
