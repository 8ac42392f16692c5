"""Tests for HTTP fetching helpers with a mocked aiohttp session."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from promoscraper.config import config
from promoscraper.fetching import create_session, fetch_json, fetch_page


def _session(response: MagicMock) -> MagicMock:
    session = MagicMock()
    session.get.return_value.__aenter__.return_value = response
    session.get.return_value.__aexit__.return_value = False
    return session


def _response(url: str, status: int = 200, text: str = "<html></html>") -> MagicMock:
    response = MagicMock()
    response.url = url
    response.status = status
    response.text = AsyncMock(return_value=text)
    response.json = AsyncMock(return_value={"data": {"name": "x"}})
    return response


@pytest.mark.asyncio
async def test_fetch_page_returns_final_url():
    response = _response("https://www.amazon.com.br/dp/B0CHX2F5QT", text="<p>ok</p>")
    session = _session(response)

    page = await fetch_page(session, "https://amzn.to/abc")

    assert page.url == "https://www.amazon.com.br/dp/B0CHX2F5QT"
    assert page.status == 200
    assert page.text == "<p>ok</p>"
    response.raise_for_status.assert_called_once()
    kwargs = session.get.call_args.kwargs
    assert kwargs["allow_redirects"] is True
    assert kwargs["max_redirects"] == config.scraping.max_redirects


@pytest.mark.asyncio
async def test_fetch_page_can_skip_status_check():
    response = _response("https://shopee.com.br/product/1/2", status=403)

    page = await fetch_page(
        _session(response), "https://shopee.com.br/product/1/2", raise_for_status=False
    )

    assert page.status == 403
    response.raise_for_status.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_page_propagates_http_errors():
    response = _response("https://example.com/")
    response.raise_for_status.side_effect = aiohttp.ClientResponseError(
        request_info=MagicMock(), history=(), status=503
    )

    with pytest.raises(aiohttp.ClientResponseError):
        await fetch_page(_session(response), "https://example.com/")


@pytest.mark.asyncio
async def test_fetch_json_passes_headers():
    response = _response("https://shopee.com.br/api/v4/item/get")
    session = _session(response)

    payload = await fetch_json(
        session, "https://shopee.com.br/api/v4/item/get", headers={"X-A": "1"}
    )

    assert payload == {"data": {"name": "x"}}
    assert session.get.call_args.kwargs["headers"] == {"X-A": "1"}


@pytest.mark.asyncio
async def test_create_session_uses_configured_headers():
    session = create_session()
    try:
        assert session.headers["User-Agent"] == config.user_agent
        assert session.timeout.total == config.scraping.request_timeout
    finally:
        await session.close()
