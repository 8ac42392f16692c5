"""Curated affiliate-link list and its startup pre-classification.

The list is read once, every link is classified against the registered
scrapers and the result is frozen into a read-only mapping the router checks
before its linear ``can_handle`` scan.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from types import MappingProxyType

from ..models import Marketplace
from .base import MarketplaceScraper

logger = logging.getLogger(__name__)


def load_affiliate_links(path: str | Path) -> list[str]:
    """Read the newline-delimited affiliate-link list.

    Lines are trimmed; only lines starting with ``http`` are kept, so blank
    lines and ``#`` comments are skipped.

    Args:
        path: Location of the list.

    Returns:
        Links in file order, empty when the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read affiliate links from {path}: {e}")
        return []

    links = [line.strip() for line in lines]
    return [link for link in links if link.startswith("http")]


class AffiliateLinkClassifier:
    """Classifies affiliate links to marketplaces once, at startup."""

    def __init__(self, scrapers: Sequence[MarketplaceScraper]):
        self._scrapers = tuple(scrapers)
        self.unmatched: tuple[str, ...] = ()

    def classify(self, links: Iterable[str]) -> Mapping[str, Marketplace]:
        """Map every link to the first scraper that accepts it.

        Links no scraper accepts are left out of the mapping, logged as a
        warning and kept in ``unmatched``.

        Args:
            links: Affiliate links to classify.

        Returns:
            Read-only mapping from link to marketplace.
        """
        classified: dict[str, Marketplace] = {}
        unmatched: list[str] = []

        for link in links:
            scraper = next((s for s in self._scrapers if s.can_handle(link)), None)
            if scraper is None:
                unmatched.append(link)
                continue
            classified[link] = scraper.marketplace

        self.unmatched = tuple(unmatched)
        for link in self.unmatched:
            logger.warning(f"Affiliate link matches no marketplace scraper: {link}")

        logger.info(
            f"Classified {len(classified)} affiliate links ({len(self.unmatched)} unmatched)"
        )
        return MappingProxyType(classified)
