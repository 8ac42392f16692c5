"""In-memory cache with per-entry expiry.

The cache is injected into whatever needs it rather than living in a module
global, and owns the background task that sweeps expired entries, so its
lifetime is tied to whoever started it.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class ExpiringCache:
    """Lock-guarded TTL map safe for concurrent coroutines.

    Expired entries are never returned; they are dropped lazily on read and
    in bulk by the sweep task started with ``start()``.
    """

    def __init__(
        self,
        ttl: float,
        sweep_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            ttl: Seconds an entry stays valid.
            sweep_interval: Seconds between sweeps, defaults to the TTL.
            clock: Monotonic time source.
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self.sweep_interval = sweep_interval or ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = asyncio.Lock()
        self._sweeper: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        """Return the cached value, None when missing or expired."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._entries[key] = (self._clock() + self.ttl, value)

    async def sweep(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed.
        """
        async with self._lock:
            now = self._clock()
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def start(self) -> None:
        """Start the periodic sweep task on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever())

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            await self.sweep()

    async def __aenter__(self) -> "ExpiringCache":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
