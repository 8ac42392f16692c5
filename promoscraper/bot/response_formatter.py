"""Response formatting for bot messages.

Turns scrape results into the captions and texts sent back to the user.
Prices are shown in Brazilian real notation.
"""

import logging
from decimal import Decimal

from ..errors import MediaExtractionError, UnsupportedPlatformError
from ..models import DownloadStrategy, MediaResult, ProductData, ScraperResult, SocialPlatform
from .messages import (
    ERROR_MEDIA_NOT_FOUND,
    ERROR_PRODUCT_NOT_FOUND,
    LOADING_MULTIPLE,
    LOADING_SINGLE,
    YOUTUBE_MEDIA,
)

logger = logging.getLogger(__name__)

# Telegram photo captions are limited to 1024 characters
CAPTION_LIMIT = 1024

PLATFORM_NAMES = {
    SocialPlatform.INSTAGRAM: "Instagram",
    SocialPlatform.TIKTOK: "TikTok",
    SocialPlatform.PINTEREST: "Pinterest",
    SocialPlatform.YOUTUBE: "YouTube",
    SocialPlatform.SHOPEE: "Shopee",
}


def format_brl(value: Decimal) -> str:
    """Format a price as ``R$ 1.234,56``.

    Args:
        value: Price in reais.

    Returns:
        Price with dot thousands and comma decimal separators.
    """
    formatted = f"{value:,.2f}"
    return "R$ " + formatted.replace(",", "_").replace(".", ",").replace("_", ".")


class ResponseFormatter:
    """Formats bot responses for products, media and errors."""

    def format_product(self, product: ProductData) -> str:
        """Format a product summary.

        Args:
            product: Successfully scraped product.

        Returns:
            Multi-line caption with title, prices and the product link.
        """
        lines = [f"🛍 {product.title}", ""]

        if product.original_price is not None and product.original_price > product.price:
            lines.append(f"~{format_brl(product.original_price)}~")
        price_line = f"💰 {format_brl(product.price)}"
        if product.discount_percentage:
            price_line += f" (-{product.discount_percentage}%)"
        lines.append(price_line)

        if product.rating is not None:
            rating_line = f"⭐ {product.rating:.1f}"
            if product.review_count:
                rating_line += f" ({product.review_count} reviews)"
            lines.append(rating_line)
        if product.sales_quantity:
            lines.append(f"📦 {product.sales_quantity} sold")
        if not product.in_stock:
            lines.append("🚫 Out of stock")

        lines.extend(["", f"🔗 {product.product_url}"])
        return "\n".join(lines)[:CAPTION_LIMIT]

    def format_product_response(self, result: ScraperResult) -> str:
        """Format a marketplace scrape result, successful or not."""
        if result.success and result.data is not None:
            return self.format_product(result.data)

        logger.info(f"Reporting product failure to user: {result.error}")
        return ERROR_PRODUCT_NOT_FOUND.format(error=result.error)

    def format_media_caption(self, media: MediaResult) -> str:
        """Short caption naming the platform and the post."""
        return f"{PLATFORM_NAMES[media.source]} · {media.url}"

    def format_media_links(self, media: MediaResult) -> str:
        """Plain-text listing of media items that cannot be sent as files."""
        lines = []
        for item in media.items:
            if item.download_strategy is DownloadStrategy.YOUTUBE:
                lines.append(YOUTUBE_MEDIA.format(url=item.direct_url))
            else:
                lines.append(f"{item.media_type.value}: {item.direct_url}")
        return "\n".join(lines)

    def format_media_error(self, error: Exception) -> str:
        """Format a social scrape failure.

        Args:
            error: Exception raised by the social dispatcher.

        Returns:
            User-facing error message.
        """
        if isinstance(error, MediaExtractionError):
            return ERROR_MEDIA_NOT_FOUND.format(error=error.reason)
        if isinstance(error, UnsupportedPlatformError):
            return ERROR_MEDIA_NOT_FOUND.format(error="platform not supported")

        logger.error(f"Unexpected media error: {error}")
        return ERROR_MEDIA_NOT_FOUND.format(error="unexpected error")

    def format_loading_message(self, urls: list[str]) -> str:
        """Format loading message for URL processing.

        Args:
            urls: List of URLs being processed.

        Returns:
            Loading message string.
        """
        if len(urls) == 1:
            return LOADING_SINGLE
        return LOADING_MULTIPLE.format(count=len(urls))
