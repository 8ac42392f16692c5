"""Tests for the curated affiliate-link list and its classification."""

import logging

import pytest

from promoscraper.config import config
from promoscraper.models import Marketplace
from promoscraper.scrapers import create_default_scrapers
from promoscraper.scrapers.affiliate import AffiliateLinkClassifier, load_affiliate_links
from promoscraper.scrapers.router import ScraperRouter

EXPECTED_PREFIXES = {
    "https://s.shopee.com.br/": Marketplace.SHOPEE,
    "https://shopee.com.br/": Marketplace.SHOPEE,
    "https://mercadolivre.com/sec/": Marketplace.MERCADO_LIVRE,
    "https://www.mercadolivre.com.br/": Marketplace.MERCADO_LIVRE,
    "https://produto.mercadolivre.com.br/": Marketplace.MERCADO_LIVRE,
    "https://amzn.to/": Marketplace.AMAZON,
    "https://a.co/": Marketplace.AMAZON,
    "https://www.amazon.com.br/": Marketplace.AMAZON,
    "https://divulgador.magalu.com/": Marketplace.MAGALU,
    "https://www.magazineluiza.com.br/": Marketplace.MAGALU,
}


def _expected(link: str) -> Marketplace:
    return next(mp for prefix, mp in EXPECTED_PREFIXES.items() if link.startswith(prefix))


class TestLoadAffiliateLinks:
    def test_bundled_list_skips_comments_and_blanks(self):
        links = load_affiliate_links(config.affiliate_links_path)

        assert links
        assert all(link.startswith("http") for link in links)
        assert len(links) == len(set(links))

    def test_trims_lines(self, tmp_path):
        path = tmp_path / "links.txt"
        path.write_text("  https://amzn.to/abc  \n# note\n\nnot a link\n", encoding="utf-8")

        assert load_affiliate_links(path) == ["https://amzn.to/abc"]

    def test_unreadable_file_returns_empty_list(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            links = load_affiliate_links(tmp_path / "missing.txt")

        assert links == []
        assert "Failed to read affiliate links" in caplog.text


class TestAffiliateLinkClassifier:
    def test_every_bundled_link_classifies_to_its_marketplace(self):
        links = load_affiliate_links(config.affiliate_links_path)
        classifier = AffiliateLinkClassifier(create_default_scrapers())

        mapping = classifier.classify(links)

        assert classifier.unmatched == ()
        assert set(mapping) == set(links)
        for link, marketplace in mapping.items():
            assert marketplace is _expected(link), link

    def test_unmatched_links_are_reported(self, caplog):
        classifier = AffiliateLinkClassifier(create_default_scrapers())

        with caplog.at_level(logging.WARNING):
            mapping = classifier.classify(["https://amzn.to/x", "https://bit.ly/promo"])

        assert dict(mapping) == {"https://amzn.to/x": Marketplace.AMAZON}
        assert classifier.unmatched == ("https://bit.ly/promo",)
        assert "https://bit.ly/promo" in caplog.text

    def test_mapping_is_read_only(self):
        mapping = AffiliateLinkClassifier(create_default_scrapers()).classify(["https://amzn.to/x"])

        with pytest.raises(TypeError):
            mapping["https://amzn.to/y"] = Marketplace.AMAZON  # type: ignore[index]

    def test_router_detects_bundled_links_without_network(self):
        scrapers = create_default_scrapers()
        links = load_affiliate_links(config.affiliate_links_path)
        router = ScraperRouter(scrapers, AffiliateLinkClassifier(scrapers).classify(links))

        for link in links:
            assert router.detect_marketplace(link) is _expected(link)
