"""
Result Cache
============

In-memory, content-addressed cache of rendered images with TTL expiry.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from src.config.logging import get_logger
from src.models.schemas import RenderOptions

logger = get_logger(__name__)


def compute_cache_key(html: str, options: RenderOptions) -> str:
    """Fingerprint html plus options.

    The options are serialized with sorted keys, so logically equal options
    always produce the same key regardless of the order they arrived in.
    """
    digest = hashlib.sha256()
    digest.update(html.encode("utf-8"))
    digest.update(options.canonical_json().encode("utf-8"))
    return digest.hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    image_bytes: bytes
    created_at: float


class ResultCache:
    """TTL cache mapping fingerprints to rendered image bytes."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.logger = logger.bind(component="result_cache")

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def size(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl

    def get(self, key: str) -> Optional[bytes]:
        """Return cached bytes, or None on a miss. Expired entries are evicted."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            self.logger.debug("Evicted expired entry on read", key=key)
            return None

        return entry.image_bytes

    def put(self, key: str, image_bytes: bytes) -> None:
        self._entries[key] = CacheEntry(
            key=key, image_bytes=bytes(image_bytes), created_at=self._clock()
        )

    def clear(self) -> int:
        """Remove every entry and return how many there were."""
        count = len(self._entries)
        self._entries.clear()
        self.logger.info("Cache cleared", cleared_entries=count)
        return count

    def sweep(self) -> int:
        """Remove all expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]

        if expired:
            self.logger.info("Cache sweep completed", removed=len(expired), remaining=len(self))
        return len(expired)
