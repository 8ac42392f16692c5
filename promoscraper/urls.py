"""Hostname helpers shared by marketplace and social URL classification."""

from collections.abc import Iterable
from urllib.parse import urlparse


def hostname(url: str) -> str:
    """Return the lower-cased hostname of a URL, empty when unparsable."""
    try:
        return (urlparse(url.strip()).hostname or "").lower()
    except ValueError:
        return ""


def host_matches(url: str, domains: Iterable[str]) -> bool:
    """Check whether a URL's host is one of the domains or a subdomain of one.

    Args:
        url: URL to check.
        domains: Registrable domains such as ``shopee.com.br``.

    Returns:
        True when the host equals a domain or ends with ``.<domain>``.
    """
    host = hostname(url)
    if not host:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in domains)
