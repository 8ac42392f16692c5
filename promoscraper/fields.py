"""Scrape-field selection from rendering layout preferences."""

from .models import LayoutPreferences, ScrapeField

DEFAULT_FIELDS = (
    ScrapeField.IMAGE_URL,
    ScrapeField.TITLE,
    ScrapeField.PRICE,
    ScrapeField.ORIGINAL_PRICE,
    ScrapeField.DESCRIPTION,
    ScrapeField.SALES_QUANTITY,
)


def get_required_scrape_fields(layout: LayoutPreferences | None = None) -> list[ScrapeField]:
    """Derive the minimal set of fields a layout needs.

    The image is always required. Without a layout the default field set is
    returned; otherwise a field is required when the feed or story template
    shows it (description and sales quantity exist only in the feed).

    Args:
        layout: Layout preferences of the caller, if any.

    Returns:
        Ordered, duplicate-free list of fields, image first.
    """
    if layout is None:
        return list(DEFAULT_FIELDS)

    fields = [ScrapeField.IMAGE_URL]
    wanted = (
        (ScrapeField.TITLE, layout.feed_show_title or layout.story_show_title),
        (ScrapeField.DESCRIPTION, layout.feed_show_description),
        (ScrapeField.PRICE, layout.feed_show_price or layout.story_show_price),
        (
            ScrapeField.ORIGINAL_PRICE,
            layout.feed_show_original_price or layout.story_show_original_price,
        ),
        (ScrapeField.SALES_QUANTITY, layout.feed_show_sales_quantity),
    )
    for field, shown in wanted:
        if shown and field not in fields:
            fields.append(field)
    return fields
