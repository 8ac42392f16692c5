"""Parsing helpers shared by the marketplace scrapers.

Price, rating and count normalization for Brazilian and English page text,
plus lookups over the structured data marketplaces embed in their pages
(JSON-LD blocks, ``__NEXT_DATA__`` and other inline state objects).
"""

import json
import logging
import re
from collections import deque
from collections.abc import Callable, Iterator
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..models import ScrapeField, ScrapeOptions

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"\d[\d.,]*")
RATING_RE = re.compile(r"(\d+(?:[.,]\d+)?)")
COUNT_RE = re.compile(r"(\d[\d.,]*)\s*(mil|k)?\b", re.IGNORECASE)

JsonRecord = dict[str, Any]


def parse_price(text: str | None) -> Decimal | None:
    """Parse a price string into a Decimal.

    Strips currency symbols and resolves thousands/decimal separators for
    both pt-BR (``R$ 1.299,90``) and en (``$1,299.90``) formats. A single
    separator followed by exactly three digits is read as a thousands
    separator.

    Args:
        text: Raw price text as found on the page.

    Returns:
        Positive Decimal price, None if no usable number is present.
    """
    if not text:
        return None

    match = NUMBER_RE.search(str(text))
    if not match:
        return None

    number = match.group(0).rstrip(".,")
    has_comma = "," in number
    has_dot = "." in number

    if has_comma and has_dot:
        if number.rfind(",") > number.rfind("."):
            number = number.replace(".", "").replace(",", ".")
        else:
            number = number.replace(",", "")
    elif has_comma:
        head, _, tail = number.rpartition(",")
        if number.count(",") == 1 and len(tail) != 3:
            number = f"{head}.{tail}"
        else:
            number = number.replace(",", "")
    elif has_dot:
        tail = number.rpartition(".")[2]
        if number.count(".") > 1 or len(tail) == 3:
            number = number.replace(".", "")

    try:
        value = Decimal(number)
    except InvalidOperation:
        return None

    return value if value > 0 else None


def coerce_price(value: Any) -> Decimal | None:
    """Convert a numeric or textual price from structured data into a Decimal."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value > 0 else None
    if isinstance(value, int | float):
        price = Decimal(str(value))
        return price if price > 0 else None
    if isinstance(value, str):
        return parse_price(value)
    return None


def extract_rating(text: str | None) -> float | None:
    """Extract a 0-5 rating from text such as ``4,6 de 5 estrelas``."""
    if not text:
        return None
    match = RATING_RE.search(text)
    if not match:
        return None
    rating = float(match.group(1).replace(",", "."))
    return rating if 0 <= rating <= 5 else None


def extract_count(text: str | None) -> int | None:
    """Extract a review or sales count from text.

    Understands thousands suffixes used by Brazilian marketplaces
    (``+10mil vendidos``, ``1,2 mil``) and grouped digits (``1.234``).
    """
    if not text:
        return None
    match = COUNT_RE.search(text)
    if not match:
        return None

    number, suffix = match.groups()
    number = number.rstrip(".,")
    if suffix:
        if "," in number:
            number = number.replace(".", "").replace(",", ".")
        try:
            return int(Decimal(number) * 1000)
        except InvalidOperation:
            return None

    digits = re.sub(r"\D", "", number)
    return int(digits) if digits else None


def calculate_discount(original_price: Decimal, price: Decimal) -> int:
    """Discount in whole percent, rounded half up.

    Returns:
        ``round((original_price - price) / original_price * 100)``, 0 when
        there is no markdown.
    """
    if original_price <= price:
        return 0
    ratio = (original_price - price) / original_price * 100
    return int(ratio.quantize(Decimal("1"), ROUND_HALF_UP))


def should_include(options: ScrapeOptions | None, field: ScrapeField) -> bool:
    """Check whether the caller asked for a field; no field list means all."""
    if options is None or not options.fields:
        return True
    return field in options.fields


def normalize_image_url(value: Any) -> str | None:
    """Pick an absolute http(s) image URL out of a JSON-LD or DOM value."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    if not isinstance(value, str):
        return None

    value = value.strip()
    if value.startswith("//"):
        value = "https:" + value
    if value.startswith(("http://", "https://")):
        return value
    return None


def meta_content(soup: BeautifulSoup | Tag, *selectors: str) -> str | None:
    """Return the first non-empty ``content`` attribute among meta selectors."""
    for selector in selectors:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def select_text(soup: BeautifulSoup | Tag, *selectors: str) -> str | None:
    """Return the first non-empty stripped text among CSS selectors."""
    for selector in selectors:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        text = tag.get_text(" ", strip=True)
        if text:
            return text
    return None


def select_attr(soup: BeautifulSoup | Tag, selector: str, *attrs: str) -> str | None:
    """Return the first non-empty attribute value of the first matching tag."""
    tag = soup.select_one(selector)
    if tag is None:
        return None
    for attr in attrs:
        value = tag.get(attr)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def iter_json_ld(soup: BeautifulSoup) -> Iterator[JsonRecord]:
    """Yield every JSON-LD object on the page, flattening lists and ``@graph``."""
    for script in soup.find_all("script", type="application/ld+json"):
        text = script.string or script.get_text()
        if not text:
            continue
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Skipping invalid JSON-LD block")
            continue

        pending = data if isinstance(data, list) else [data]
        while pending:
            entry = pending.pop(0)
            if not isinstance(entry, dict):
                continue
            graph = entry.get("@graph")
            if isinstance(graph, list):
                pending.extend(graph)
            yield entry


def _has_type(entry: JsonRecord, type_name: str) -> bool:
    entry_type = entry.get("@type")
    if isinstance(entry_type, list):
        return type_name in entry_type
    return entry_type == type_name


def find_json_ld(soup: BeautifulSoup, type_name: str) -> JsonRecord | None:
    """Return the first JSON-LD object of the given ``@type``."""
    for entry in iter_json_ld(soup):
        if _has_type(entry, type_name):
            return entry
    return None


def json_ld_offer(product: JsonRecord) -> JsonRecord:
    """Return the first offer of a JSON-LD product, empty when absent."""
    offers = product.get("offers")
    if isinstance(offers, list):
        offers = next((offer for offer in offers if isinstance(offer, dict)), None)
    if isinstance(offers, dict):
        return offers
    return {}


def json_ld_in_stock(offer: JsonRecord) -> bool:
    """Read schema.org availability; missing availability counts as in stock."""
    availability = offer.get("availability")
    if not isinstance(availability, str):
        return True
    return availability.rstrip("/").endswith("InStock")


def load_next_data(soup: BeautifulSoup) -> JsonRecord | None:
    """Parse the ``#__NEXT_DATA__`` script of Next.js pages."""
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None:
        return None
    text = script.string or script.get_text()
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Failed to parse __NEXT_DATA__ payload")
        return None
    return data if isinstance(data, dict) else None


def find_record(payload: Any, predicate: Callable[[JsonRecord], bool]) -> JsonRecord | None:
    """Breadth-first search for the first nested object matching a predicate.

    Args:
        payload: Decoded JSON state (dicts and lists of arbitrary depth).
        predicate: Test applied to every dict encountered.

    Returns:
        The shallowest matching dict, None if nothing matches.
    """
    queue: deque[Any] = deque([payload])
    seen: set[int] = set()

    while queue:
        current = queue.popleft()
        if not isinstance(current, dict | list) or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, dict):
            if predicate(current):
                return current
            children = current.values()
        else:
            children = current

        queue.extend(child for child in children if isinstance(child, dict | list))

    return None
