"""Caching of vulnerability lists between scans."""

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..models import Vulnerability
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CacheStats:
    """Cache statistics."""
    entries: int
    hits: int
    misses: int
    expired: int


class ReportCache:
    """
    In-memory cache of vulnerability lists keyed by image reference.

    Only successful lookups are stored; errors are always retried on the
    next scan.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Entry lifetime; 0 disables caching
            clock: Time source, seconds
        """
        self.ttl_seconds = ttl_seconds
        self.enabled = ttl_seconds > 0
        self._clock = clock
        self._entries: Dict[str, Tuple[float, List[Vulnerability]]] = {}
        self._hits = 0
        self._misses = 0
        self._expired = 0

    def get(self, image: str) -> Optional[List[Vulnerability]]:
        """
        Get cached vulnerabilities for an image.

        Args:
            image: Image reference as written in the Dockerfile

        Returns:
            Cached list or None
        """
        if not self.enabled:
            return None

        entry = self._entries.get(image)
        if entry is None:
            self._misses += 1
            return None

        stored_at, vulnerabilities = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[image]
            self._expired += 1
            self._misses += 1
            return None

        self._hits += 1
        logger.debug(f"Cache hit: vulnerabilities for {image}")
        return list(vulnerabilities)

    def set(self, image: str, vulnerabilities: List[Vulnerability]) -> None:
        """Cache the vulnerabilities of an image."""
        if not self.enabled:
            return
        self._entries[image] = (self._clock(), list(vulnerabilities))

    def invalidate(self, image: str) -> bool:
        """Drop one image; returns whether it was cached."""
        return self._entries.pop(image, None) is not None

    def clear(self) -> None:
        """Clear all cached data."""
        self._entries.clear()
        logger.debug("Cache cleared")

    def get_stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            expired=self._expired,
        )
