"""Social media scrapers and their dispatcher.

Scrapers are tried in order: Instagram, TikTok, Pinterest, YouTube, Shopee.
"""

from ..services.expiring_cache import ExpiringCache
from .base import BaseSocialScraper, SocialScraper
from .dispatcher import SocialDispatcher
from .instagram import InstagramScraper
from .pinterest import PinterestScraper
from .shopee import ShopeeVideoScraper, remove_watermark
from .tiktok import TikTokScraper
from .utils import (
    build_headers,
    extract_og_media,
    find_media_urls,
    normalize_escaped_json_payload,
    resolve_final_url,
)
from .youtube import YouTubeScraper, extract_video_id, normalize_youtube_url


def create_default_social_scrapers(cache: ExpiringCache | None = None) -> list[SocialScraper]:
    """Instantiate the social scrapers in dispatch order."""
    return [
        InstagramScraper(cache),
        TikTokScraper(cache),
        PinterestScraper(cache),
        YouTubeScraper(),
        ShopeeVideoScraper(cache),
    ]


# Global dispatcher instance, uncached; the container wires the shared cache
social_dispatcher = SocialDispatcher(create_default_social_scrapers())

__all__ = [
    "BaseSocialScraper",
    "InstagramScraper",
    "PinterestScraper",
    "ShopeeVideoScraper",
    "SocialDispatcher",
    "SocialScraper",
    "TikTokScraper",
    "YouTubeScraper",
    "build_headers",
    "create_default_social_scrapers",
    "extract_og_media",
    "extract_video_id",
    "find_media_urls",
    "normalize_escaped_json_payload",
    "normalize_youtube_url",
    "remove_watermark",
    "resolve_final_url",
    "social_dispatcher",
]
