"""Mercado Livre product scraper.

Affiliate links (``mercadolivre.com/sec/...``) land on a social page whose
first poly-card is the promoted product; regular links land on the product
detail page. Both layouts are covered, with JSON-LD in between.
"""

import re
from decimal import Decimal

from bs4 import BeautifulSoup, Tag

from ..models import Marketplace, ProductData, ScrapeOptions
from .base import BaseScraper
from .parsing import (
    coerce_price,
    extract_count,
    extract_rating,
    find_json_ld,
    json_ld_in_stock,
    json_ld_offer,
    meta_content,
    parse_price,
    select_attr,
    select_text,
)

ARIA_REAIS_RE = re.compile(
    r"(\d[\d.]*)\s*reais(?:\s*com\s*(\d{1,2})\s*centavos?)?", re.IGNORECASE
)
ARIA_NUMBER_RE = re.compile(r"[\d.]+(?:,\d+)?")

PRICE_ARIA_SELECTORS = (
    ".poly-price__current [aria-label]",
    '.poly-price__current [role="img"][aria-label]',
    '.andes-money-amount[role="img"][aria-label]',
)


def parse_aria_price(label: str | None) -> Decimal | None:
    """Parse the spoken price in an ``aria-label``.

    Handles ``"1299 reais com 90 centavos"`` as well as plain formatted
    numbers such as ``"R$ 1.299,90"``.
    """
    if not label:
        return None

    spoken = ARIA_REAIS_RE.search(label)
    if spoken:
        reais = spoken.group(1).replace(".", "")
        cents = (spoken.group(2) or "0").rjust(2, "0")
        value = Decimal(f"{reais}.{cents}")
        return value if value > 0 else None

    match = ARIA_NUMBER_RE.search(label)
    if not match:
        return None
    return parse_price(match.group(0))


def _card_image(card: Tag) -> str | None:
    picture = card.select_one(".poly-component__picture")
    if picture is not None:
        srcset = picture.get("data-srcset")
        for candidate in (
            picture.get("data-src"),
            srcset.split(" ")[0] if isinstance(srcset, str) else None,
            picture.get("src"),
        ):
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
    return select_attr(card, "img[alt]", "data-src", "src")


class MercadoLivreScraper(BaseScraper):
    """Scraper for mercadolivre.com.br products and affiliate pages."""

    marketplace = Marketplace.MERCADO_LIVRE
    marketplace_name = "Mercado Livre"
    domains = ("mercadolivre.com.br", "mercadolivre.com", "mercadolibre.com")
    browser_wait_selector = ".poly-card, h1.ui-pdp-title, h1"

    def extract_product_data(
        self,
        soup: BeautifulSoup,
        resolved_url: str,
        original_url: str,
        options: ScrapeOptions,
    ) -> ProductData | None:
        return (
            self._extract_poly_card(soup, original_url, options)
            or self._extract_json_ld(soup, original_url, options)
            or self._extract_detail_page(soup, original_url, options)
        )

    def _extract_poly_card(
        self, soup: BeautifulSoup, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        card = soup.select_one(".poly-card")
        if card is None:
            return None

        price = parse_aria_price(
            select_attr(card, ".poly-price__current [aria-label]", "aria-label")
        ) or parse_price(select_text(card, ".poly-price__current .andes-money-amount__fraction"))

        return self._build(
            original_url,
            options,
            title=select_text(card, ".poly-component__title"),
            price=price,
            original_price=parse_price(select_text(card, ".andes-money-amount--previous")),
            image_url=_card_image(card),
            seller=select_text(card, ".poly-component__seller"),
        )

    def _extract_json_ld(
        self, soup: BeautifulSoup, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        product = find_json_ld(soup, "Product")
        if product is None:
            return None

        offer = json_ld_offer(product)
        aggregate = product.get("aggregateRating") or {}
        brand = product.get("brand")
        return self._build(
            original_url,
            options,
            title=product.get("name"),
            description=product.get("description"),
            price=coerce_price(offer.get("price")),
            image_url=product.get("image"),
            rating=extract_rating(str(aggregate.get("ratingValue") or "")),
            review_count=extract_count(str(aggregate.get("reviewCount") or "")),
            seller=brand.get("name") if isinstance(brand, dict) else None,
            in_stock=json_ld_in_stock(offer),
        )

    def _extract_detail_page(
        self, soup: BeautifulSoup, original_url: str, options: ScrapeOptions
    ) -> ProductData | None:
        price = None
        for selector in PRICE_ARIA_SELECTORS:
            price = parse_aria_price(select_attr(soup, selector, "aria-label"))
            if price:
                break
        if price is None:
            price = parse_price(
                meta_content(soup, 'meta[property="product:price:amount"]')
                or select_text(
                    soup,
                    ".poly-price__current .andes-money-amount__fraction",
                    ".ui-pdp-price__second-line .andes-money-amount__fraction",
                    ".andes-money-amount__fraction",
                    ".price-tag-fraction",
                )
            )

        image = meta_content(soup, 'meta[property="og:image"]')
        for selector in ("figure.ui-pdp-gallery__figure img", 'img[class*="ui-pdp"]'):
            if image:
                break
            image = select_attr(soup, selector, "data-zoom", "src")

        return self._build(
            original_url,
            options,
            title=select_text(soup, ".poly-component__title")
            or meta_content(soup, 'meta[property="og:title"]')
            or select_text(soup, "h1.ui-pdp-title", "h1"),
            description=select_text(soup, ".ui-pdp-description__content"),
            price=price,
            original_price=parse_price(select_text(soup, ".andes-money-amount--previous")),
            image_url=image,
            rating=extract_rating(select_text(soup, ".ui-pdp-review__rating")),
            review_count=extract_count(select_text(soup, ".ui-pdp-review__amount")),
            sales_quantity=extract_count(select_text(soup, ".ui-pdp-header__subtitle")),
            seller=select_text(soup, ".ui-pdp-seller__header__title"),
        )
