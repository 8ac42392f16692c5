"""Shopee video extraction.

Video pages expose the stream in several places depending on the page
version. Lookup order is meta tags, JSON-LD ``VideoObject``, the ``<video>``
element and finally the Next.js media info. The watermarked variant of the
file is swapped for the clean one.
"""

import json
import re

from bs4 import BeautifulSoup

from ..models import MediaItem, MediaType, SocialPlatform
from ..urls import host_matches
from .base import BaseSocialScraper
from .utils import build_headers, sanitize_url

SHOPEE_DOMAINS = ("shopee.com.br", "shopee.com", "shp.ee")
WATERMARK_RE = re.compile(r"\.(\d+)\.(\d+)\.mp4$", re.IGNORECASE)

META_SELECTORS = (
    'meta[property="og:video:secure_url"]',
    'meta[property="og:video:url"]',
    'meta[property="og:video"]',
    'meta[name="og:video:secure_url"]',
    'meta[name="og:video:url"]',
    'meta[name="og:video"]',
    'meta[property="twitter:player:stream"]',
)
NEXT_DATA_VIDEO_KEYS = ("watermarkVideoUrl", "videoUrl", "playUrl", "playAddr", "downloadAddr")


def remove_watermark(url: str) -> str:
    """Strip the ``.<timestamp>.<id>.mp4`` suffix that selects the watermarked file."""
    return WATERMARK_RE.sub(".mp4", url)


def video_from_meta(soup: BeautifulSoup) -> str | None:
    for selector in META_SELECTORS:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        url = sanitize_url(tag.get("content") or tag.get("value"))
        if url:
            return url
    return None


def video_from_json_ld(soup: BeautifulSoup) -> str | None:
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or script.get_text() or "null")
        except json.JSONDecodeError:
            continue
        for entry in data if isinstance(data, list) else [data]:
            if isinstance(entry, dict) and entry.get("@type") == "VideoObject":
                url = sanitize_url(entry.get("contentUrl")) or sanitize_url(entry.get("embedUrl"))
                if url:
                    return url
    return None


def video_from_tag(soup: BeautifulSoup) -> str | None:
    for selector in ("video", "video source"):
        tag = soup.select_one(selector)
        if tag is None:
            continue
        url = sanitize_url(tag.get("src")) or sanitize_url(tag.get("data-src"))
        if url:
            return url
    return None


def video_from_next_data(soup: BeautifulSoup) -> str | None:
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None:
        return None
    try:
        data = json.loads(script.string or script.get_text() or "null")
    except json.JSONDecodeError:
        return None

    video = data
    for key in ("props", "pageProps", "mediaInfo", "video"):
        video = video.get(key) if isinstance(video, dict) else None
    if not isinstance(video, dict):
        return None

    for key in NEXT_DATA_VIDEO_KEYS:
        url = sanitize_url(video.get(key))
        if url:
            return url
    return None


class ShopeeVideoScraper(BaseSocialScraper):
    """Extracts the clean video file of a Shopee video post."""

    platform = SocialPlatform.SHOPEE
    label = "Shopee (video)"
    name = "Shopee"

    def can_handle(self, url: str) -> bool:
        return host_matches(url, SHOPEE_DOMAINS)

    def needs_resolution(self, url: str) -> bool:
        return True

    def canonical_url(self, url: str) -> str:
        return url

    def extract_media(self, html: str, page_url: str) -> list[MediaItem]:
        soup = BeautifulSoup(html, "lxml")
        video = (
            video_from_meta(soup)
            or video_from_json_ld(soup)
            or video_from_tag(soup)
            or video_from_next_data(soup)
        )
        if video is None:
            return []

        clean = remove_watermark(video)
        if clean != video:
            self.logger.debug(f"Removed watermark suffix from {video}")

        return [
            MediaItem(
                media_type=MediaType.VIDEO,
                direct_url=clean,
                filename_hint="shopee-video.mp4",
                headers=build_headers(page_url),
            )
        ]
