"""TikTok video extraction."""

import re

from bs4 import BeautifulSoup

from ..models import MediaItem, MediaType, SocialPlatform
from ..urls import host_matches
from .base import BaseSocialScraper
from .utils import build_headers, extract_og_media, find_media_urls, normalize_escaped_json_payload

VIDEO_PAGE_RE = re.compile(
    r"^https?://(?:[\w-]+\.)*tiktok\.com/(@[\w.-]+)/video/(\d+)", re.IGNORECASE
)
SHORT_LINK_DOMAINS = ("vm.tiktok.com", "vt.tiktok.com")
PLAY_ADDR_RE = re.compile(r'"playAddr"\s*:\s*"(?P<url>https://[^"]+)"')
DOWNLOAD_ADDR_RE = re.compile(r'"downloadAddr"\s*:\s*"(?P<url>https://[^"]+)"')

REFERER = "https://www.tiktok.com/"


class TikTokScraper(BaseSocialScraper):
    """Extracts the video of a TikTok post, resolving vm./vt. short links."""

    platform = SocialPlatform.TIKTOK
    label = "TikTok (video)"
    name = "TikTok"

    def can_handle(self, url: str) -> bool:
        return VIDEO_PAGE_RE.search(url.strip()) is not None or self.needs_resolution(url)

    def needs_resolution(self, url: str) -> bool:
        return host_matches(url, SHORT_LINK_DOMAINS)

    def canonical_url(self, url: str) -> str:
        match = VIDEO_PAGE_RE.search(url.strip())
        if not match:
            return super().canonical_url(url)
        return f"https://www.tiktok.com/{match.group(1)}/video/{match.group(2)}"

    def extract_media(self, html: str, page_url: str) -> list[MediaItem]:
        og_video, _ = extract_og_media(BeautifulSoup(html, "lxml"))
        if og_video:
            candidates = [og_video]
        else:
            body = normalize_escaped_json_payload(html)
            candidates = find_media_urls(body, PLAY_ADDR_RE) or find_media_urls(
                body, DOWNLOAD_ADDR_RE
            )

        if not candidates:
            return []
        return [
            MediaItem(
                media_type=MediaType.VIDEO,
                direct_url=candidates[0],
                filename_hint="tiktok-video.mp4",
                headers=build_headers(REFERER),
            )
        ]
