"""Tests for scrape-field selection from layout preferences."""

from promoscraper.api import required_fields_for
from promoscraper.fields import DEFAULT_FIELDS, get_required_scrape_fields
from promoscraper.models import DEFAULT_LAYOUT_PREFERENCES, LayoutPreferences, ScrapeField


def test_no_layout_returns_defaults():
    assert get_required_scrape_fields() == list(DEFAULT_FIELDS)
    assert get_required_scrape_fields(None)[0] is ScrapeField.IMAGE_URL


def test_empty_layout_requires_only_image():
    assert get_required_scrape_fields(LayoutPreferences()) == [ScrapeField.IMAGE_URL]


def test_story_only_fields_are_included():
    layout = LayoutPreferences(story_show_title=True, story_show_original_price=True)

    assert get_required_scrape_fields(layout) == [
        ScrapeField.IMAGE_URL,
        ScrapeField.TITLE,
        ScrapeField.ORIGINAL_PRICE,
    ]


def test_feed_only_fields():
    layout = LayoutPreferences(feed_show_description=True, feed_show_sales_quantity=True)

    assert get_required_scrape_fields(layout) == [
        ScrapeField.IMAGE_URL,
        ScrapeField.DESCRIPTION,
        ScrapeField.SALES_QUANTITY,
    ]


def test_no_duplicates_when_feed_and_story_overlap():
    fields = get_required_scrape_fields(DEFAULT_LAYOUT_PREFERENCES)

    assert len(fields) == len(set(fields))
    assert fields == [
        ScrapeField.IMAGE_URL,
        ScrapeField.TITLE,
        ScrapeField.DESCRIPTION,
        ScrapeField.PRICE,
        ScrapeField.ORIGINAL_PRICE,
    ]


def test_required_fields_for_raw_camel_case_dict():
    assert required_fields_for({"feedShowPrice": True}) == [
        ScrapeField.IMAGE_URL,
        ScrapeField.PRICE,
    ]
