"""Tests for the Mercado Livre marketplace scraper."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from promoscraper.models import Marketplace, ScrapeOptions
from promoscraper.scrapers.base import PLAYWRIGHT_SKIPPED_ERROR
from promoscraper.scrapers.mercadolivre import MercadoLivreScraper, parse_aria_price

AFFILIATE_URL = "https://mercadolivre.com/sec/2Xq8Lw9"

POLY_CARD_PAGE = """
<html><body>
<div class="poly-card">
  <img class="poly-component__picture" src="data:image/gif;base64,R0lGOD"
       data-src="https://http2.mlstatic.com/D_Q_NP_galaxy-a15.webp" alt="Galaxy A15">
  <a class="poly-component__title" href="#">Smartphone Samsung Galaxy A15 128GB</a>
  <span class="poly-component__seller">Por Samsung</span>
  <s class="andes-money-amount andes-money-amount--previous" aria-label="Antes: 1299 reais">
    <span class="andes-money-amount__currency-symbol">R$</span>
    <span class="andes-money-amount__fraction">1.299</span>
  </s>
  <div class="poly-price__current">
    <span class="andes-money-amount" role="img" aria-label="999 reais com 90 centavos">
      <span class="andes-money-amount__fraction">999</span>
    </span>
  </div>
</div>
</body></html>
"""

DETAIL_PAGE = """
<html><head>
<meta property="og:image" content="https://http2.mlstatic.com/D_NQ_NP_air-fryer.jpg">
</head><body>
<h1 class="ui-pdp-title">Air Fryer 4L Mondial</h1>
<span class="ui-pdp-header__subtitle">Novo | +5mil vendidos</span>
<span class="ui-pdp-review__rating">4.7</span>
<span class="ui-pdp-review__amount">(2.345)</span>
<span class="andes-money-amount" role="img" aria-label="349 reais com 90 centavos">
  <span class="andes-money-amount__fraction">349</span>
</span>
<p class="ui-pdp-description__content">Fritadeira sem óleo</p>
<span class="ui-pdp-seller__header__title">MONDIAL LOJA OFICIAL</span>
</body></html>
"""

JSON_LD_PAGE = """
<html><head>
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "Product", "name": "Cafeteira Expresso",
 "image": ["https://http2.mlstatic.com/cafeteira.jpg"],
 "brand": {"@type": "Brand", "name": "Oster"},
 "offers": {"@type": "Offer", "price": 599.0, "availability": "https://schema.org/InStock"}}
</script>
</head><body></body></html>
"""


@pytest.mark.parametrize(
    "label, expected",
    [
        ("999 reais com 90 centavos", Decimal("999.90")),
        ("1.299 reais com 9 centavos", Decimal("1299.09")),
        ("Agora: 49 reais", Decimal("49.00")),
        ("R$ 1.299,90", Decimal("1299.90")),
        (None, None),
        ("sem preço", None),
    ],
)
def test_parse_aria_price(label, expected):
    assert parse_aria_price(label) == expected


class TestMercadoLivreScraper:
    def setup_method(self) -> None:
        self.scraper = MercadoLivreScraper()

    def _extract(self, html: str):
        return self.scraper.extract_product_data(
            BeautifulSoup(html, "lxml"), AFFILIATE_URL, AFFILIATE_URL, ScrapeOptions()
        )

    @pytest.mark.parametrize(
        "url",
        [
            AFFILIATE_URL,
            "https://www.mercadolivre.com.br/smartphone-samsung-galaxy-a15/p/MLB29276343",
            "https://produto.mercadolivre.com.br/MLB-3456789012-air-fryer-4l-_JM",
            "https://articulo.mercadolibre.com/MLA-123",
        ],
    )
    def test_can_handle(self, url):
        assert self.scraper.can_handle(url)

    def test_rejects_lookalike_host(self):
        assert not self.scraper.can_handle("https://mercadolivre.com.br.evil.example/p/1")

    def test_poly_card(self):
        product = self._extract(POLY_CARD_PAGE)

        assert product is not None
        assert product.marketplace is Marketplace.MERCADO_LIVRE
        assert product.title == "Smartphone Samsung Galaxy A15 128GB"
        assert product.price == Decimal("999.90")
        assert product.original_price == Decimal("1299")
        assert product.discount_percentage == 23
        assert product.image_url == "https://http2.mlstatic.com/D_Q_NP_galaxy-a15.webp"
        assert product.seller == "Por Samsung"
        assert product.product_url == AFFILIATE_URL

    def test_detail_page(self):
        product = self._extract(DETAIL_PAGE)

        assert product is not None
        assert product.title == "Air Fryer 4L Mondial"
        assert product.price == Decimal("349.90")
        assert product.image_url.endswith("air-fryer.jpg")
        assert product.rating == 4.7
        assert product.review_count == 2345
        assert product.sales_quantity == 5000
        assert product.description == "Fritadeira sem óleo"

    def test_json_ld(self):
        product = self._extract(JSON_LD_PAGE)

        assert product is not None
        assert product.title == "Cafeteira Expresso"
        assert product.price == Decimal("599.0")
        assert product.seller == "Oster"
        assert product.in_stock is True

    def test_missing_image_yields_nothing(self):
        html = DETAIL_PAGE.replace(
            '<meta property="og:image" content="https://http2.mlstatic.com/D_NQ_NP_air-fryer.jpg">',
            "",
        )

        assert self._extract(html) is None

    @pytest.mark.asyncio
    async def test_scrape_reports_skipped_browser(self, make_fetcher):
        landing = "https://www.mercadolivre.com.br/social/promo"

        with patch.object(self.scraper, "fetch", make_fetcher(landing, "<html></html>")):
            result = await self.scraper.scrape(
                AFFILIATE_URL, ScrapeOptions(skip_playwright=True)
            )

        assert result.success is False
        assert result.error == PLAYWRIGHT_SKIPPED_ERROR

    @pytest.mark.asyncio
    async def test_scrape_rejects_redirect_off_marketplace(self, make_fetcher):
        with patch.object(
            self.scraper, "fetch", make_fetcher("https://example.com/", "<html></html>")
        ):
            result = await self.scraper.scrape("https://example.org/x", ScrapeOptions())

        assert result.success is False
        assert result.error == "URL not supported by Mercado Livre scraper"
