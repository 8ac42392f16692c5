"""Helpers shared by the social media scrapers.

Social pages embed media URLs in JSON blobs whose slashes and ampersands
are escaped. Un-escaping (``normalize_escaped_json_payload``) and pattern
scanning (``find_media_urls``) are separate steps so each can be tested on
its own.
"""

import logging
import re

import aiohttp
from bs4 import BeautifulSoup

from ..config import config
from ..services.expiring_cache import ExpiringCache

logger = logging.getLogger(__name__)

ESCAPED_SEQUENCES = (
    ("\\u002F", "/"),
    ("\\u002f", "/"),
    ("\\u0026", "&"),
    ("\\u003D", "="),
    ("\\u003d", "="),
    ("\\u003C", "<"),
    ("\\u003c", "<"),
    ("\\u003E", ">"),
    ("\\u003e", ">"),
    ("\\/", "/"),
)

OG_VIDEO_SELECTORS = (
    'meta[property="og:video:secure_url"]',
    'meta[property="og:video:url"]',
    'meta[property="og:video"]',
    'meta[name="og:video:secure_url"]',
    'meta[name="og:video:url"]',
    'meta[name="og:video"]',
)
OG_IMAGE_SELECTORS = (
    'meta[property="og:image"]',
    'meta[name="og:image"]',
)


def normalize_escaped_json_payload(payload: str) -> str:
    """Un-escape the JSON sequences social pages use inside inline scripts.

    Replaces ``\\u002F``, ``\\u0026``, ``\\u003D``, ``\\u003C``, ``\\u003E``
    and ``\\/`` with the characters they stand for.
    """
    for escaped, char in ESCAPED_SEQUENCES:
        payload = payload.replace(escaped, char)
    return payload


def find_media_urls(body: str, pattern: re.Pattern[str]) -> list[str]:
    """Collect media URLs matching a pattern, in order and without duplicates.

    Args:
        body: Page body, already normalized.
        pattern: Compiled pattern; a named group ``url`` is used when present,
            the whole match otherwise.

    Returns:
        Distinct URLs in order of first appearance.
    """
    urls: list[str] = []
    for match in pattern.finditer(body):
        url = match.group("url") if "url" in pattern.groupindex else match.group(0)
        if url and url not in urls:
            urls.append(url)
    return urls


def sanitize_url(value: object) -> str | None:
    """Return the value stripped if it is an absolute http(s) URL."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if value.startswith(("http://", "https://")):
        return value
    return None


def _first_meta(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    for selector in selectors:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        url = sanitize_url(tag.get("content") or tag.get("value"))
        if url:
            return url
    return None


def extract_og_media(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    """Read the Open Graph video and image URLs of a page.

    Returns:
        ``(video_url, image_url)``; either may be None.
    """
    return _first_meta(soup, OG_VIDEO_SELECTORS), _first_meta(soup, OG_IMAGE_SELECTORS)


def build_headers(referer: str | None = None) -> dict[str, str]:
    """Build the headers used for social page fetches and media downloads."""
    headers = {"User-Agent": config.user_agent, **config.social_headers}
    if referer:
        headers["Referer"] = referer
    return headers


async def resolve_final_url(
    session: aiohttp.ClientSession,
    url: str,
    cache: ExpiringCache | None = None,
) -> str:
    """Follow a short link's redirects to its final URL.

    Any status code is accepted; only the final location matters. Failures
    are logged at debug level and the input URL is returned.

    Args:
        session: HTTP session for requests.
        url: Short or canonical URL.
        cache: Optional shared cache of previous resolutions.

    Returns:
        Final URL after at most the configured number of redirects.
    """
    if cache is not None:
        cached = await cache.get(url)
        if cached:
            return cached

    try:
        async with session.get(
            url,
            allow_redirects=True,
            max_redirects=config.scraping.max_redirects,
            timeout=aiohttp.ClientTimeout(total=config.scraping.resolve_timeout),
        ) as response:
            final_url = str(response.url)
    except (aiohttp.ClientError, TimeoutError) as e:
        logger.debug(f"Could not resolve {url}, using it as is: {e!r}")
        return url

    if cache is not None:
        await cache.set(url, final_url)
    return final_url
