"""YouTube link normalization.

YouTube media cannot be fetched directly; the scraper only canonicalizes
the link and tags the item for a specialized downloader.
"""

import logging
import re
from urllib.parse import parse_qs, urlparse

from ..errors import MediaExtractionError
from ..models import DownloadStrategy, MediaItem, MediaResult, MediaType, SocialPlatform
from ..urls import hostname

logger = logging.getLogger(__name__)

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
YOUTUBE_HOSTS = ("youtube.com", "youtube-nocookie.com")
SHORT_HOST = "youtu.be"
PATH_PREFIXES = ("shorts", "embed", "live", "v")


def extract_video_id(url: str) -> str | None:
    """Extract the video id from any YouTube URL shape.

    Supports ``watch?v=``, ``youtu.be/<id>``, ``/shorts/<id>``,
    ``/embed/<id>``, ``/live/<id>`` and ``/v/<id>``.

    Returns:
        Video id, None when the URL is not a YouTube video link.
    """
    host = hostname(url)
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    segments = [segment for segment in parsed.path.split("/") if segment]

    video_id: str | None = None
    if host == SHORT_HOST:
        video_id = segments[0] if segments else None
    elif any(host == domain or host.endswith("." + domain) for domain in YOUTUBE_HOSTS):
        if segments[:1] == ["watch"]:
            video_id = next(iter(parse_qs(parsed.query).get("v", [])), None)
        elif len(segments) >= 2 and segments[0] in PATH_PREFIXES:
            video_id = segments[1]

    if video_id and VIDEO_ID_RE.match(video_id):
        return video_id
    return None


def normalize_youtube_url(url: str) -> str | None:
    """Canonical ``https://www.youtube.com/watch?v=<id>`` form of a YouTube link."""
    video_id = extract_video_id(url)
    if video_id is None:
        return None
    return f"https://www.youtube.com/watch?v={video_id}"


class YouTubeScraper:
    """Canonicalizes YouTube links without any network access."""

    platform = SocialPlatform.YOUTUBE
    label = "YouTube (video link)"
    name = "YouTube"

    def can_handle(self, url: str) -> bool:
        return extract_video_id(url) is not None

    async def scrape(self, url: str) -> MediaResult:
        video_id = extract_video_id(url)
        if video_id is None:
            raise MediaExtractionError(self.name, f"not a video link: {url}")

        canonical = f"https://www.youtube.com/watch?v={video_id}"
        logger.info(f"Normalized YouTube link {url} to {canonical}")
        return MediaResult(
            source=self.platform,
            url=canonical,
            items=[
                MediaItem(
                    media_type=MediaType.VIDEO,
                    direct_url=canonical,
                    filename_hint=f"youtube-{video_id}.mp4",
                    download_strategy=DownloadStrategy.YOUTUBE,
                )
            ],
        )
