"""Amazon product scraper for amazon.com.br and its short-link domains."""

import re

from bs4 import BeautifulSoup

from ..models import Marketplace, ProductData, ScrapeOptions
from .base import BaseScraper
from .parsing import (
    extract_count,
    extract_rating,
    meta_content,
    normalize_image_url,
    parse_price,
    select_attr,
    select_text,
)

OUT_OF_STOCK_MARKERS = ("indisponível", "unavailable", "out of stock")


def _whole_fraction_price(soup: BeautifulSoup) -> str | None:
    """Join the split price spans as ``<digits>.<fraction>``.

    The whole part carries the locale thousands separator (``1.299,`` on
    amazon.com.br, ``1,299.`` on amazon.com), so only its digits are kept.
    """
    whole = re.sub(r"\D", "", select_text(soup, ".a-price-whole") or "")
    if not whole:
        return None
    fraction = re.sub(r"\D", "", select_text(soup, ".a-price-fraction") or "")
    return f"{whole}.{fraction}" if fraction else whole


class AmazonScraper(BaseScraper):
    """Scraper for Amazon product pages (``/dp/``) and a.co / amzn.to links."""

    marketplace = Marketplace.AMAZON
    marketplace_name = "Amazon"
    domains = ("amazon.com.br", "amazon.com", "a.co", "amzn.to")
    browser_wait_selector = "#productTitle, h1#title"

    def extract_product_data(
        self,
        soup: BeautifulSoup,
        resolved_url: str,
        original_url: str,
        options: ScrapeOptions,
    ) -> ProductData | None:
        image = None
        for selector in ("#landingImage", "#imgBlkFront", ".a-dynamic-image"):
            image = normalize_image_url(select_attr(soup, selector, "data-old-hires", "src"))
            if image:
                break
        image = image or meta_content(soup, 'meta[property="og:image"]')

        price_text = (
            select_text(
                soup,
                ".a-price:not(.a-text-price) .a-offscreen",
                "#priceblock_ourprice",
                "#priceblock_dealprice",
            )
            or _whole_fraction_price(soup)
        )

        stock_text = (select_text(soup, "#availability") or "").lower()
        in_stock = not any(marker in stock_text for marker in OUT_OF_STOCK_MARKERS)

        return self._build(
            original_url,
            options,
            title=select_text(soup, "#productTitle", "h1#title")
            or meta_content(soup, 'meta[name="title"]'),
            description=select_text(soup, "#feature-bullets"),
            price=parse_price(price_text),
            original_price=parse_price(
                select_text(soup, ".a-price.a-text-price .a-offscreen", "#priceblock_saleprice")
            ),
            image_url=image,
            rating=extract_rating(
                select_text(soup, ".a-icon-star .a-icon-alt", '[data-hook="rating-out-of-text"]')
            ),
            review_count=extract_count(
                select_text(soup, "#acrCustomerReviewText", '[data-hook="total-review-count"]')
            ),
            seller=select_text(soup, "#sellerProfileTriggerId", "#bylineInfo"),
            in_stock=in_stock,
        )
