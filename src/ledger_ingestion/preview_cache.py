import asyncio
import logging
import secrets
import threading
import time
from typing import Callable, Optional

from .models import ImportPreview

logger = logging.getLogger(__name__)


class PreviewCache:
    """
    Short-lived, single-consumer store for parsed previews keyed by an opaque id.

    Entries expire `ttl_seconds` after insertion. Expired entries are treated as
    absent on lookup and evicted by `sweep`. Suitable for the single-process
    service; a multi-host deployment would need an external store with native TTL.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self._ttl_seconds = max(1.0, float(ttl_seconds))
        self._clock = clock
        self._entries: dict[str, tuple[float, ImportPreview]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @staticmethod
    def new_key() -> str:
        return secrets.token_urlsafe(16)

    def put(self, key: str, preview: ImportPreview) -> None:
        expires_at = self._clock() + self._ttl_seconds
        with self._lock:
            self._entries[key] = (expires_at, preview)

    def get(self, key: str) -> Optional[ImportPreview]:
        """Return the preview without consuming it; expired entries are removed."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry[0] <= now:
                del self._entries[key]
                return None
            return entry[1]

    def take(self, key: str) -> Optional[ImportPreview]:
        """Remove and return the preview; a second call for the same key returns None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None or entry[0] <= now:
            return None
        return entry[1]

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Evict every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


async def run_sweeper(cache: PreviewCache, interval_seconds: float) -> None:
    """Evict expired previews every `interval_seconds` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        evicted = cache.sweep()
        if evicted:
            logger.info({"event": "preview_sweep", "evicted": evicted, "remaining": len(cache)})
