"""Tests for the Amazon marketplace scraper."""

from decimal import Decimal
from unittest.mock import patch

import aiohttp
import pytest
from bs4 import BeautifulSoup

from promoscraper.models import Marketplace, ScrapeOptions
from promoscraper.scrapers.amazon import AmazonScraper
from promoscraper.scrapers.base import PLAYWRIGHT_SKIPPED_ERROR
from promoscraper.scrapers.router import ScraperRouter

SHORT_URL = "https://amzn.to/3XkP2Qa"
PRODUCT_URL = "https://www.amazon.com.br/dp/B09B8V1LZ3"

PRODUCT_PAGE = """
<html><head>
<meta property="og:image" content="https://m.media-amazon.com/images/I/og.jpg">
</head><body>
<span id="productTitle">   Echo Dot 5ª geração | Smart speaker com Alexa   </span>
<img id="landingImage" src="data:image/gif;base64,R0lGOD"
     data-old-hires="https://m.media-amazon.com/images/I/echo-dot.jpg">
<span class="a-price a-text-price"><span class="a-offscreen">R$ 449,00</span></span>
<span class="a-price"><span class="a-offscreen">R$ 379,05</span></span>
<i class="a-icon a-icon-star"><span class="a-icon-alt">4,7 de 5 estrelas</span></i>
<span id="acrCustomerReviewText">12.345 avaliações de clientes</span>
<div id="availability"><span>Em estoque</span></div>
<a id="bylineInfo">Visite a loja Amazon</a>
</body></html>
"""

WHOLE_FRACTION_PAGE = """
<html><body>
<span id="productTitle">Notebook Lenovo IdeaPad</span>
<img id="landingImage" src="https://m.media-amazon.com/images/I/notebook.jpg">
<span class="a-price-whole">3.299,</span><span class="a-price-fraction">90</span>
<div id="availability"><span>Atualmente indisponível.</span></div>
</body></html>
"""


class TestAmazonScraper:
    def setup_method(self) -> None:
        self.scraper = AmazonScraper()

    def _extract(self, html: str, options: ScrapeOptions | None = None):
        return self.scraper.extract_product_data(
            BeautifulSoup(html, "lxml"), PRODUCT_URL, SHORT_URL, options or ScrapeOptions()
        )

    @pytest.mark.parametrize(
        "url",
        [SHORT_URL, "https://a.co/d/9kXb2Yf", PRODUCT_URL, "https://amazon.com/dp/B0CHX2F5QT"],
    )
    def test_can_handle(self, url):
        assert self.scraper.can_handle(url)

    def test_rejects_other_hosts(self):
        assert not self.scraper.can_handle("https://amazonas.gov.br/noticia")

    def test_product_page(self):
        product = self._extract(PRODUCT_PAGE)

        assert product is not None
        assert product.marketplace is Marketplace.AMAZON
        assert product.title == "Echo Dot 5ª geração | Smart speaker com Alexa"
        assert product.price == Decimal("379.05")
        assert product.original_price == Decimal("449.00")
        assert product.discount_percentage == 16
        assert product.image_url == "https://m.media-amazon.com/images/I/echo-dot.jpg"
        assert product.rating == 4.7
        assert product.review_count == 12345
        assert product.seller == "Visite a loja Amazon"
        assert product.in_stock is True
        assert product.product_url == SHORT_URL

    def test_whole_and_fraction_price_and_stock(self):
        product = self._extract(WHOLE_FRACTION_PAGE)

        assert product is not None
        assert product.price == Decimal("3299.90")
        assert product.in_stock is False

    def test_whole_and_fraction_price_on_amazon_com(self):
        html = (
            "<html><body>"
            '<span id="productTitle">Kindle Paperwhite</span>'
            '<img id="landingImage" src="https://m.media-amazon.com/images/I/kindle.jpg">'
            '<span class="a-price-whole">1,299.</span><span class="a-price-fraction">99</span>'
            "</body></html>"
        )

        product = self.scraper.extract_product_data(
            BeautifulSoup(html, "lxml"),
            "https://www.amazon.com/dp/B0CFPJYX7P",
            "https://www.amazon.com/dp/B0CFPJYX7P",
            ScrapeOptions(),
        )

        assert product is not None
        assert product.price == Decimal("1299.99")

    def test_placeholder_image_falls_back_to_og_image(self):
        html = PRODUCT_PAGE.replace(
            'data-old-hires="https://m.media-amazon.com/images/I/echo-dot.jpg"', ""
        )

        product = self._extract(html)

        assert product is not None
        assert product.image_url == "https://m.media-amazon.com/images/I/og.jpg"

    def test_missing_image_yields_nothing(self):
        html = WHOLE_FRACTION_PAGE.replace(
            'src="https://m.media-amazon.com/images/I/notebook.jpg"', ""
        )

        assert self._extract(html) is None

    @pytest.mark.asyncio
    async def test_price_without_image_is_a_failed_result(self, make_fetcher, no_browser):
        html = WHOLE_FRACTION_PAGE.replace(
            'src="https://m.media-amazon.com/images/I/notebook.jpg"', ""
        )
        router = ScraperRouter([self.scraper])
        fetch = make_fetcher(PRODUCT_URL, html)

        with patch.object(self.scraper, "fetch", fetch):
            result = await router.scrape(SHORT_URL)

        assert result.success is False
        assert result.data is None
        assert result.error == PLAYWRIGHT_SKIPPED_ERROR
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_scrape_resolves_short_link(self, make_fetcher):
        with patch.object(self.scraper, "fetch", make_fetcher(PRODUCT_URL, PRODUCT_PAGE)):
            result = await self.scraper.scrape(SHORT_URL, ScrapeOptions(original_url=SHORT_URL))

        assert result.success is True
        assert result.data.product_url == SHORT_URL

    @pytest.mark.asyncio
    async def test_scrape_http_failure_without_browser(self, no_browser):
        with patch.object(
            self.scraper, "fetch", side_effect=aiohttp.ClientConnectionError("reset")
        ):
            result = await self.scraper.scrape(SHORT_URL)

        assert result.success is False
        assert result.error == PLAYWRIGHT_SKIPPED_ERROR
