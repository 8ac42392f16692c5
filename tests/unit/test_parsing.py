"""Tests for price, rating and structured-data parsing helpers."""

from decimal import Decimal

import pytest
from bs4 import BeautifulSoup

from promoscraper.models import ScrapeField, ScrapeOptions
from promoscraper.scrapers.parsing import (
    calculate_discount,
    coerce_price,
    extract_count,
    extract_rating,
    find_json_ld,
    find_record,
    json_ld_in_stock,
    json_ld_offer,
    load_next_data,
    normalize_image_url,
    parse_price,
    should_include,
)


class TestParsePrice:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("R$ 1.299,90", Decimal("1299.90")),
            ("$1,299.90", Decimal("1299.90")),
            ("R$ 49,90", Decimal("49.90")),
            ("19.99", Decimal("19.99")),
            ("1.299", Decimal("1299")),
            ("1,299", Decimal("1299")),
            ("R$ 1.234.567", Decimal("1234567")),
            ("por apenas R$ 7,5 hoje", Decimal("7.5")),
        ],
    )
    def test_pt_br_and_en_formats(self, text, expected):
        assert parse_price(text) == expected

    @pytest.mark.parametrize("text", [None, "", "grátis", "R$ 0,00"])
    def test_unusable_text_returns_none(self, text):
        assert parse_price(text) is None

    def test_coerce_price_from_numbers_and_strings(self):
        assert coerce_price(59.9) == Decimal("59.9")
        assert coerce_price(120) == Decimal("120")
        assert coerce_price("R$ 10,00") == Decimal("10.00")
        assert coerce_price(True) is None
        assert coerce_price(0) is None
        assert coerce_price({"value": 1}) is None


class TestRatingAndCounts:
    def test_rating_with_comma(self):
        assert extract_rating("4,6 de 5 estrelas") == 4.6

    def test_rating_out_of_range(self):
        assert extract_rating("7.5") is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("+10mil vendidos", 10000),
            ("1,2 mil avaliações", 1200),
            ("2k sold", 2000),
            ("1.234 avaliações", 1234),
            ("(328)", 328),
        ],
    )
    def test_counts(self, text, expected):
        assert extract_count(text) == expected

    def test_count_without_digits(self):
        assert extract_count("sem avaliações") is None


class TestDiscount:
    def test_rounds_half_up(self):
        assert calculate_discount(Decimal("8"), Decimal("7")) == 13

    def test_regular_discount(self):
        assert calculate_discount(Decimal("199.90"), Decimal("149.90")) == 25

    def test_no_markdown(self):
        assert calculate_discount(Decimal("50"), Decimal("50")) == 0


def test_should_include_defaults_to_everything():
    assert should_include(None, ScrapeField.RATING)
    assert should_include(ScrapeOptions(), ScrapeField.RATING)

    options = ScrapeOptions(fields=[ScrapeField.TITLE, ScrapeField.PRICE])
    assert should_include(options, ScrapeField.TITLE)
    assert not should_include(options, ScrapeField.RATING)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://img.example.com/a.jpg", "https://img.example.com/a.jpg"),
        ("//img.example.com/a.jpg", "https://img.example.com/a.jpg"),
        (["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"],
         "https://img.example.com/1.jpg"),
        ({"@type": "ImageObject", "url": "https://img.example.com/b.jpg"},
         "https://img.example.com/b.jpg"),
        ("data:image/gif;base64,R0lGOD", None),
        ([], None),
        (None, None),
    ],
)
def test_normalize_image_url(value, expected):
    assert normalize_image_url(value) == expected


class TestStructuredData:
    HTML = """
    <html><head>
    <script type="application/ld+json">not json</script>
    <script type="application/ld+json">
    {"@context": "https://schema.org", "@graph": [
        {"@type": "BreadcrumbList"},
        {"@type": ["Product", "Thing"], "name": "Air Fryer",
         "offers": [{"price": "399.90", "availability": "https://schema.org/OutOfStock"}]}
    ]}
    </script>
    <script id="__NEXT_DATA__" type="application/json">
    {"props": {"pageProps": {"data": {"product": {"title": "Deep", "price": 10}}}}}
    </script>
    </head><body></body></html>
    """

    def setup_method(self) -> None:
        self.soup = BeautifulSoup(self.HTML, "lxml")

    def test_find_json_ld_in_graph_with_type_list(self):
        product = find_json_ld(self.soup, "Product")

        assert product is not None
        assert product["name"] == "Air Fryer"

    def test_offer_and_availability(self):
        offer = json_ld_offer(find_json_ld(self.soup, "Product"))

        assert offer["price"] == "399.90"
        assert json_ld_in_stock(offer) is False
        assert json_ld_in_stock({}) is True

    def test_find_record_in_next_data(self):
        next_data = load_next_data(self.soup)

        record = find_record(next_data, lambda r: "title" in r and "price" in r)

        assert record == {"title": "Deep", "price": 10}

    def test_find_record_prefers_shallowest_match(self):
        payload = {"a": {"b": {"c": {"name": "deep"}}}, "d": {"name": "shallow"}}

        record = find_record(payload, lambda r: "name" in r)

        assert record == {"name": "shallow"}

    def test_find_record_without_match(self):
        assert find_record({"a": [1, 2, {"b": None}]}, lambda r: "name" in r) is None
