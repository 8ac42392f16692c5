"""HTTP session management for the scrapers.

Every scrape opens its own session so concurrent calls never share mutable
state beyond the connection pool settings below. Each request carries an
explicit timeout and a bounded redirect count.
"""

import logging
from dataclasses import dataclass

import aiohttp

from .config import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedPage:
    """Body of a fetched page together with the URL it was served from.

    Attributes:
        url: Final URL after following redirects.
        status: HTTP status code.
        text: Decoded response body.
    """

    url: str
    status: int
    text: str


def create_session(
    headers: dict[str, str] | None = None, timeout: float | None = None
) -> aiohttp.ClientSession:
    """Create configured aiohttp session for web scraping.

    Sets up session with connection limits, timeouts, and browser-like headers
    so marketplace pages are served the same markup a desktop browser gets.

    Args:
        headers: Header set to send, defaults to the marketplace headers.
        timeout: Total request timeout in seconds, defaults to config.

    Returns:
        aiohttp.ClientSession: Configured HTTP session for making requests.
    """
    connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
    client_timeout = aiohttp.ClientTimeout(total=timeout or config.scraping.request_timeout)

    session_headers = {"User-Agent": config.user_agent}
    session_headers.update(headers if headers is not None else config.default_headers)

    return aiohttp.ClientSession(
        connector=connector, timeout=client_timeout, headers=session_headers
    )


async def fetch_page(
    session: aiohttp.ClientSession,
    url: str,
    headers: dict[str, str] | None = None,
    raise_for_status: bool = True,
) -> FetchedPage:
    """Fetch a page following at most the configured number of redirects.

    Args:
        session: HTTP session for requests.
        url: URL to fetch.
        headers: Extra headers for this request only.
        raise_for_status: Raise on 4xx/5xx responses.

    Returns:
        FetchedPage with the final URL, status and body.

    Raises:
        aiohttp.ClientError: On transport errors, redirect overflow or bad status.
        TimeoutError: When the request exceeds the session timeout.
    """
    async with session.get(
        url,
        headers=headers,
        allow_redirects=True,
        max_redirects=config.scraping.max_redirects,
    ) as response:
        if raise_for_status:
            response.raise_for_status()
        text = await response.text(errors="replace")
        final_url = str(response.url)

    if final_url != url:
        logger.debug("Fetched %s via redirect to %s", url, final_url)
    return FetchedPage(url=final_url, status=response.status, text=text)


async def fetch_json(
    session: aiohttp.ClientSession, url: str, headers: dict[str, str] | None = None
) -> object:
    """Fetch and decode a JSON endpoint.

    Args:
        session: HTTP session for requests.
        url: Endpoint URL.
        headers: Extra headers for this request only.

    Returns:
        Decoded JSON payload.
    """
    async with session.get(
        url,
        headers=headers,
        allow_redirects=True,
        max_redirects=config.scraping.max_redirects,
    ) as response:
        response.raise_for_status()
        return await response.json(content_type=None)
