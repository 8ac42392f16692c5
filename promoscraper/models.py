"""Data models for the scraping core.

Defines Pydantic models for all data structures produced or consumed by the
scrapers including normalized product data, scrape options, tagged scrape
results, social media results and layout preferences. All models include
validation and type checking; none of them is persisted by the core.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Self

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

_HTTP_URL = TypeAdapter(AnyHttpUrl)


class Marketplace(StrEnum):
    """Supported e-commerce sites."""

    SHOPEE = "SHOPEE"
    MERCADO_LIVRE = "MERCADO_LIVRE"
    AMAZON = "AMAZON"
    MAGALU = "MAGALU"


class ScrapeField(StrEnum):
    """Extractable product fields, named the way callers request them."""

    TITLE = "title"
    DESCRIPTION = "description"
    PRICE = "price"
    ORIGINAL_PRICE = "originalPrice"
    DISCOUNT_PERCENTAGE = "discountPercentage"
    IMAGE_URL = "imageUrl"
    MARKETPLACE = "marketplace"
    RATING = "rating"
    REVIEW_COUNT = "reviewCount"
    SALES_QUANTITY = "salesQuantity"
    SELLER = "seller"
    IN_STOCK = "inStock"


class ProductData(BaseModel):
    """Normalized product data extracted from a marketplace page.

    Attributes:
        title: Product title.
        description: Product description, when requested and available.
        price: Current (promotional) price.
        original_price: Price before discount, never lower than price.
        discount_percentage: Discount in whole percent (0-100).
        image_url: Primary product image URL.
        product_url: URL the caller originally submitted.
        marketplace: Marketplace the product belongs to.
        rating: Average rating on a 0-5 scale.
        review_count: Number of reviews.
        sales_quantity: Number of units sold.
        seller: Seller display name.
        in_stock: Whether the product can currently be bought.
        scraped_at: When the scrape completed.
    """

    title: str = Field(min_length=1)
    description: str | None = None
    price: Decimal = Field(gt=0)
    original_price: Decimal | None = Field(default=None, gt=0)
    discount_percentage: int | None = Field(default=None, ge=0, le=100)
    image_url: str
    product_url: str
    marketplace: Marketplace
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    sales_quantity: int | None = Field(default=None, ge=0)
    seller: str | None = None
    in_stock: bool = True
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("image_url", "product_url")
    @classmethod
    def _validate_http_url(cls, value: str) -> str:
        _HTTP_URL.validate_python(value)
        return value

    @model_validator(mode="after")
    def _check_original_price(self) -> Self:
        if self.original_price is not None and self.original_price < self.price:
            raise ValueError("original_price must be greater than or equal to price")
        return self


class ScrapeOptions(BaseModel):
    """Per-call scrape options.

    Attributes:
        fields: Fields the caller needs; a hint, plugins may extract more.
        original_url: URL the caller submitted before any redirect.
        skip_playwright: Forbid escalation to the headless browser.
        user_id: Platform user for attribution.
        telegram_user_id: Telegram user for attribution.
        origin: Free-form caller tag for attribution.
    """

    fields: list[ScrapeField] | None = None
    original_url: str | None = None
    skip_playwright: bool = False
    user_id: str | None = None
    telegram_user_id: str | int | None = None
    origin: str | None = None


class ScraperResult(BaseModel):
    """Tagged success/failure result of a marketplace scrape.

    Extraction is all-or-nothing: a successful result always carries data and
    a failed one always carries an error message.
    """

    success: bool
    data: ProductData | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_tag(self) -> Self:
        if self.success and self.data is None:
            raise ValueError("successful result requires data")
        if not self.success and (self.data is not None or not self.error):
            raise ValueError("failed result requires an error and no data")
        return self

    @classmethod
    def ok(cls, data: ProductData) -> "ScraperResult":
        """Build a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ScraperResult":
        """Build a failed result."""
        return cls(success=False, error=error)


class SocialPlatform(StrEnum):
    """Supported social platforms."""

    INSTAGRAM = "INSTAGRAM"
    TIKTOK = "TIKTOK"
    PINTEREST = "PINTEREST"
    YOUTUBE = "YOUTUBE"
    SHOPEE = "SHOPEE"


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class DownloadStrategy(StrEnum):
    """How a media item has to be fetched."""

    DIRECT = "direct"
    YOUTUBE = "youtube"


class MediaItem(BaseModel):
    """Single fetchable media item.

    Attributes:
        media_type: Image or video.
        direct_url: URL the media can be fetched from.
        filename_hint: Suggested file name for downloads.
        headers: HTTP headers required to fetch the media (e.g. Referer).
        download_strategy: Direct HTTP fetch or specialized extractor.
    """

    media_type: MediaType
    direct_url: str
    filename_hint: str | None = None
    headers: dict[str, str] | None = None
    download_strategy: DownloadStrategy = DownloadStrategy.DIRECT


class MediaResult(BaseModel):
    """Media extracted from a social post.

    Attributes:
        source: Platform the post belongs to.
        url: Canonical post URL, stable across URL shapes.
        items: Ordered media items; carousels yield several.
    """

    source: SocialPlatform
    url: str
    items: list[MediaItem] = Field(min_length=1)


class LayoutPreferences(BaseModel):
    """Which product fields a rendering template shows.

    Accepts both snake_case attribute names and the camelCase names used by
    API callers (``feedShowPrice``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    feed_show_title: bool = False
    feed_show_description: bool = False
    feed_show_price: bool = False
    feed_show_original_price: bool = False
    feed_show_product_url: bool = False
    feed_show_coupon: bool = False
    feed_show_disclaimer: bool = False
    feed_show_sales_quantity: bool = False
    feed_show_custom_text: bool = False
    feed_order: list[str] = Field(default_factory=list)

    story_show_title: bool = False
    story_show_price: bool = False
    story_show_original_price: bool = False
    story_show_coupon: bool = False
    story_show_custom_text: bool = False
    story_order: list[str] = Field(default_factory=list)


DEFAULT_LAYOUT_PREFERENCES = LayoutPreferences(
    feed_show_title=True,
    feed_show_description=True,
    feed_show_price=True,
    feed_show_original_price=True,
    feed_show_product_url=True,
    feed_show_coupon=True,
    feed_order=[
        "title",
        "description",
        "price",
        "originalPrice",
        "productUrl",
        "coupon",
        "disclaimer",
        "salesQuantity",
        "customText",
    ],
    story_show_title=True,
    story_show_price=True,
    story_show_original_price=True,
    story_show_coupon=True,
    story_order=["title", "price", "originalPrice", "coupon", "customText"],
)
