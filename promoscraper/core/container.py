"""Dependency-injection container.

Wires the scrapers, the router, the social dispatcher and the bot components
together so that callers (the Telegram bot, the link audit) share one set of
instances and tests can override any of them.
"""

from collections.abc import Iterable, Mapping

from dependency_injector import containers, providers

from ..bot.response_formatter import ResponseFormatter
from ..bot.url_processor import URLProcessor
from ..config import config as app_config
from ..models import Marketplace
from ..scrapers import create_default_scrapers
from ..scrapers.affiliate import AffiliateLinkClassifier, load_affiliate_links
from ..scrapers.router import ScraperRouter
from ..services.expiring_cache import ExpiringCache
from ..social import create_default_social_scrapers
from ..social.dispatcher import SocialDispatcher


def _classify_links(
    classifier: AffiliateLinkClassifier, links: Iterable[str]
) -> Mapping[str, Marketplace]:
    return classifier.classify(links)


class Container(containers.DeclarativeContainer):
    """DI container for the application."""

    config = providers.Configuration()

    # Services
    resolved_url_cache = providers.Singleton(ExpiringCache, ttl=config.resolved_url_ttl)

    # Marketplace scraping
    marketplace_scrapers = providers.Singleton(create_default_scrapers)
    affiliate_links = providers.Singleton(load_affiliate_links, config.affiliate_links_path)
    affiliate_classifier = providers.Singleton(
        AffiliateLinkClassifier, scrapers=marketplace_scrapers
    )
    affiliate_map = providers.Singleton(
        _classify_links, classifier=affiliate_classifier, links=affiliate_links
    )
    scraper_router = providers.Singleton(
        ScraperRouter, scrapers=marketplace_scrapers, affiliate_map=affiliate_map
    )

    # Social media
    social_scrapers = providers.Singleton(create_default_social_scrapers, cache=resolved_url_cache)
    social_dispatcher = providers.Singleton(SocialDispatcher, scrapers=social_scrapers)

    # Bot components
    url_processor = providers.Singleton(
        URLProcessor, scraper_router=scraper_router, social_dispatcher=social_dispatcher
    )
    response_formatter = providers.Singleton(ResponseFormatter)


def create_container() -> Container:
    """Build a container configured from the application settings."""
    container = Container()
    container.config.from_dict(
        {
            "resolved_url_ttl": app_config.scraping.resolved_url_ttl,
            "affiliate_links_path": str(app_config.affiliate_links_path),
        }
    )
    return container
