"""Affiliate link audit.

Classifies every curated affiliate link and scrapes it with the minimal field
set, without the headless browser, to catch links that stopped working.

Usage:
    python -m promoscraper.link_audit [path/to/affiliate_links.txt]
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from .config import config
from .core.container import Container, create_container
from .models import ScrapeField, ScrapeOptions

AUDIT_FIELDS = [ScrapeField.IMAGE_URL, ScrapeField.TITLE, ScrapeField.PRICE]


@dataclass
class AuditEntry:
    """Outcome of auditing one link."""

    url: str
    marketplace: str | None
    ok: bool
    detail: str

    def render(self) -> str:
        status = "OK" if self.ok else "FAIL"
        marketplace = self.marketplace or "UNMATCHED"
        return f"[{status}] {marketplace} {self.url} - {self.detail}"


async def audit_links(container: Container, links: list[str]) -> list[AuditEntry]:
    """Scrape each link sequentially and collect the outcome.

    Args:
        container: DI container providing the router.
        links: Affiliate links to audit.

    Returns:
        One entry per link, in input order.
    """
    router = container.scraper_router()
    options = ScrapeOptions(fields=AUDIT_FIELDS, skip_playwright=True, origin="link_audit")
    entries: list[AuditEntry] = []

    for url in links:
        marketplace = router.detect_marketplace(url)
        if marketplace is None:
            entries.append(AuditEntry(url, None, False, "no scraper accepts this link"))
            continue

        result = await router.scrape(url, options)
        if result.success and result.data is not None:
            detail = f"{result.data.title[:60]} | R$ {result.data.price}"
            entries.append(AuditEntry(url, marketplace.value, True, detail))
        else:
            entries.append(AuditEntry(url, marketplace.value, False, result.error or "unknown"))

    return entries


async def run(path: Path) -> int:
    container = create_container()
    container.config.affiliate_links_path.from_value(str(path))
    links = container.affiliate_links()

    print(f"🔗 Auditing {len(links)} affiliate links from {path}")
    entries = await audit_links(container, links)
    for entry in entries:
        print(entry.render())

    failed = sum(1 for entry in entries if not entry.ok)
    print(f"📊 {len(entries) - failed} ok, {failed} failed")
    return 1 if failed else 0


def main() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else config.affiliate_links_path
    sys.exit(asyncio.run(run(path)))


if __name__ == "__main__":
    main()
