"""Marketplace scrapers and the router that dispatches to them."""

from ..config import config
from .affiliate import AffiliateLinkClassifier, load_affiliate_links
from .amazon import AmazonScraper
from .base import BaseScraper, MarketplaceScraper, build_product
from .magalu import MagaluScraper
from .mercadolivre import MercadoLivreScraper
from .router import MAX_ATTEMPTS, ScraperRouter, ScrapeState, next_state
from .shopee import ShopeeScraper


def create_default_scrapers() -> list[MarketplaceScraper]:
    """Instantiate the marketplace scrapers in routing priority order."""
    return [ShopeeScraper(), MercadoLivreScraper(), AmazonScraper(), MagaluScraper()]


def create_default_router() -> ScraperRouter:
    """Build a router with the bundled affiliate links pre-classified."""
    scrapers = create_default_scrapers()
    links = load_affiliate_links(config.affiliate_links_path)
    affiliate_map = AffiliateLinkClassifier(scrapers).classify(links)
    return ScraperRouter(scrapers, affiliate_map)


# Global router instance
scraper_router = create_default_router()

__all__ = [
    "MAX_ATTEMPTS",
    "AffiliateLinkClassifier",
    "AmazonScraper",
    "BaseScraper",
    "MagaluScraper",
    "MarketplaceScraper",
    "MercadoLivreScraper",
    "ScrapeState",
    "ScraperRouter",
    "ShopeeScraper",
    "build_product",
    "create_default_router",
    "create_default_scrapers",
    "load_affiliate_links",
    "next_state",
    "scraper_router",
]
