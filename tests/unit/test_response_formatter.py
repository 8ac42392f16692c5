"""Tests for bot response formatting."""

from decimal import Decimal

import pytest

from promoscraper.bot.messages import LOADING_SINGLE
from promoscraper.bot.response_formatter import CAPTION_LIMIT, ResponseFormatter, format_brl
from promoscraper.errors import MediaExtractionError, UnsupportedPlatformError
from promoscraper.models import (
    DownloadStrategy,
    MediaItem,
    MediaResult,
    MediaType,
    ScraperResult,
    SocialPlatform,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("89.9"), "R$ 89,90"),
        (Decimal("1234.56"), "R$ 1.234,56"),
        (Decimal("1299999"), "R$ 1.299.999,00"),
    ],
)
def test_format_brl(value, expected):
    assert format_brl(value) == expected


class TestResponseFormatter:
    def setup_method(self) -> None:
        self.formatter = ResponseFormatter()

    def test_format_product(self, sample_product):
        text = self.formatter.format_product(sample_product)

        assert text.splitlines() == [
            "🛍 Fone de Ouvido Bluetooth",
            "",
            "~R$ 129,90~",
            "💰 R$ 89,90 (-31%)",
            "⭐ 4.8 (1520 reviews)",
            "📦 10000 sold",
            "",
            "🔗 https://s.shopee.com.br/4AqTLNvjQx",
        ]

    def test_format_product_minimal(self, sample_product):
        product = sample_product.model_copy(
            update={
                "original_price": None,
                "discount_percentage": None,
                "rating": None,
                "review_count": None,
                "sales_quantity": None,
                "in_stock": False,
            }
        )

        text = self.formatter.format_product(product)

        assert "~" not in text
        assert "💰 R$ 89,90\n" in text
        assert "🚫 Out of stock" in text

    def test_caption_is_truncated(self, sample_product):
        product = sample_product.model_copy(update={"title": "x" * 2000})

        assert len(self.formatter.format_product(product)) == CAPTION_LIMIT

    def test_failed_result(self):
        text = self.formatter.format_product_response(ScraperResult.fail("Timeout"))

        assert text == "❌ Could not read this product: Timeout"

    def test_media_caption_and_links(self):
        media = MediaResult(
            source=SocialPlatform.YOUTUBE,
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            items=[
                MediaItem(
                    media_type=MediaType.VIDEO,
                    direct_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
                    download_strategy=DownloadStrategy.YOUTUBE,
                ),
                MediaItem(media_type=MediaType.IMAGE, direct_url="https://i.example.com/1.jpg"),
            ],
        )

        assert self.formatter.format_media_caption(media) == (
            "YouTube · https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        )
        assert self.formatter.format_media_links(media).splitlines() == [
            "▶️ YouTube video: https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "image: https://i.example.com/1.jpg",
        ]

    @pytest.mark.parametrize(
        "error, expected",
        [
            (MediaExtractionError("TikTok", "no video"), "❌ Could not extract media: no video"),
            (
                UnsupportedPlatformError(["TikTok (video)"]),
                "❌ Could not extract media: platform not supported",
            ),
            (RuntimeError("boom"), "❌ Could not extract media: unexpected error"),
        ],
    )
    def test_media_errors(self, error, expected):
        assert self.formatter.format_media_error(error) == expected

    def test_loading_message(self):
        assert self.formatter.format_loading_message(["https://a.co/d/1"]) == LOADING_SINGLE
        assert self.formatter.format_loading_message(["a", "b", "c"]) == "⏳ Processing 3 links..."
