"""Pinterest pin media extraction."""

import re

from bs4 import BeautifulSoup

from ..models import MediaItem, MediaType, SocialPlatform
from ..urls import host_matches
from .base import BaseSocialScraper
from .utils import extract_og_media, find_media_urls, normalize_escaped_json_payload

PIN_RE = re.compile(r"^https?://(?:[\w-]+\.)*pinterest\.[a-z.]+/pin/([\w-]+)", re.IGNORECASE)
SHORT_LINK_DOMAINS = ("pin.it",)
VIDEO_RE = re.compile(r"https://v\d*\.pinimg\.com/videos/[^\"'\s<>\\]+?\.mp4")
IMAGE_RE = re.compile(
    r"https://i\.pinimg\.com/originals/[^\"'\s<>\\]+?\.(?:jpg|jpeg|png|gif|webp)", re.IGNORECASE
)


class PinterestScraper(BaseSocialScraper):
    """Extracts the video or original image of a Pinterest pin."""

    platform = SocialPlatform.PINTEREST
    label = "Pinterest (pin)"
    name = "Pinterest"

    def can_handle(self, url: str) -> bool:
        return PIN_RE.search(url.strip()) is not None or self.needs_resolution(url)

    def needs_resolution(self, url: str) -> bool:
        return host_matches(url, SHORT_LINK_DOMAINS)

    def canonical_url(self, url: str) -> str:
        match = PIN_RE.search(url.strip())
        if not match:
            return super().canonical_url(url)
        return f"https://www.pinterest.com/pin/{match.group(1)}/"

    def extract_media(self, html: str, page_url: str) -> list[MediaItem]:
        og_video, og_image = extract_og_media(BeautifulSoup(html, "lxml"))
        body = normalize_escaped_json_payload(html)

        video = og_video or next(iter(find_media_urls(body, VIDEO_RE)), None)
        if video:
            return [
                MediaItem(
                    media_type=MediaType.VIDEO,
                    direct_url=video,
                    filename_hint="pinterest-video.mp4",
                )
            ]

        image = og_image or next(iter(find_media_urls(body, IMAGE_RE)), None)
        if image:
            return [
                MediaItem(
                    media_type=MediaType.IMAGE,
                    direct_url=image,
                    filename_hint="pinterest-image.jpg",
                )
            ]
        return []
