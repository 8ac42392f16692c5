"""Supporting services for the scrapers."""

from .expiring_cache import ExpiringCache

__all__ = ["ExpiringCache"]
