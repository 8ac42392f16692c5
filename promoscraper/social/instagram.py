"""Instagram post and reel media extraction."""

import re

from bs4 import BeautifulSoup

from ..models import MediaItem, MediaType, SocialPlatform
from .base import BaseSocialScraper
from .utils import extract_og_media, find_media_urls, normalize_escaped_json_payload

POST_RE = re.compile(
    r"^https?://(?:[\w-]+\.)*instagram\.com/(?:[\w.]+/)?(p|reels?|tv)/([\w-]+)", re.IGNORECASE
)
VIDEO_URL_RE = re.compile(r'"video_url"\s*:\s*"(?P<url>https://[^"]+)"')
DISPLAY_URL_RE = re.compile(r'"display_url"\s*:\s*"(?P<url>https://[^"]+)"')


class InstagramScraper(BaseSocialScraper):
    """Extracts the video or images of an Instagram post, reel or IGTV link."""

    platform = SocialPlatform.INSTAGRAM
    label = "Instagram (post/reel)"
    name = "Instagram"

    def can_handle(self, url: str) -> bool:
        return POST_RE.search(url.strip()) is not None

    def canonical_url(self, url: str) -> str:
        match = POST_RE.search(url.strip())
        if not match:
            return super().canonical_url(url)
        kind = "reel" if match.group(1).lower().startswith("reel") else match.group(1).lower()
        return f"https://www.instagram.com/{kind}/{match.group(2)}/"

    def extract_media(self, html: str, page_url: str) -> list[MediaItem]:
        og_video, og_image = extract_og_media(BeautifulSoup(html, "lxml"))
        if og_video:
            return [_video(og_video)]

        body = normalize_escaped_json_payload(html)
        videos = find_media_urls(body, VIDEO_URL_RE)
        images = find_media_urls(body, DISPLAY_URL_RE)

        # Carousel posts list one display_url per slide.
        if len(images) > 1 or (videos and not og_image):
            items = [_video(url) for url in videos]
            items += [_image(url, index) for index, url in enumerate(images, start=1)]
            return items

        if og_image:
            return [_image(og_image)]
        return [_image(url, index) for index, url in enumerate(images, start=1)]


def _video(url: str) -> MediaItem:
    return MediaItem(
        media_type=MediaType.VIDEO, direct_url=url, filename_hint="instagram-video.mp4"
    )


def _image(url: str, index: int | None = None) -> MediaItem:
    suffix = f"-{index}" if index else ""
    return MediaItem(
        media_type=MediaType.IMAGE, direct_url=url, filename_hint=f"instagram-image{suffix}.jpg"
    )
