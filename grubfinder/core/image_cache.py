"""Per-restaurant image memo with in-flight deduplication.

Each key moves ``Idle -> Loading -> Ready | Failed`` exactly once. The key is
marked Loading (a shared future is stored) before the first await, so any
caller arriving while synthesis is in flight awaits the same future instead
of starting a second call. Failed entries carry the placeholder as their
payload.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional

from grubfinder.core.image_synth import PLACEHOLDER_IMAGE_URL

logger = logging.getLogger(__name__)

LOADING = "loading"
READY = "ready"
FAILED = "failed"


def image_cache_key(name: str, address: Optional[str], city: str, cuisine: str) -> str:
    """Composite identity; the name alone does not disambiguate branches."""
    parts = (name, address or "", city, cuisine)
    return "|".join(" ".join((part or "").lower().split()) for part in parts)


@dataclass
class ImageCacheEntry:
    key: str
    state: str
    future: "asyncio.Future[str]"
    payload: Optional[str] = None


class ImageCache:
    def __init__(self, fallback: str = PLACEHOLDER_IMAGE_URL, *, max_entries: Optional[int] = None) -> None:
        self.fallback = fallback
        self.max_entries = max_entries
        self._entries: Dict[str, ImageCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def state(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        return entry.state if entry else None

    async def get(self, key: str, factory: Callable[[], Awaitable[str]]) -> str:
        entry = self._entries.get(key)
        if entry is None:
            future: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
            entry = ImageCacheEntry(key=key, state=LOADING, future=future)
            self._entries[key] = entry
            self._trim()
            await self._fill(entry, factory)
        elif entry.state != LOADING:
            return entry.payload or self.fallback
        return await asyncio.shield(entry.future)

    async def _fill(self, entry: ImageCacheEntry, factory: Callable[[], Awaitable[str]]) -> None:
        state, payload = FAILED, self.fallback
        try:
            result = await factory()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Image synthesis failed for key=%s: %s", entry.key, exc)
        else:
            if result:
                state, payload = READY, result
        finally:
            # Waiters must be released even if the filling task is cancelled.
            entry.state, entry.payload = state, payload
            entry.future.set_result(payload)

    def _trim(self) -> None:
        """Drop the oldest settled entries once the cache grows past ``max_entries``."""
        if self.max_entries is None:
            return
        excess = len(self._entries) - self.max_entries
        if excess <= 0:
            return
        settled = [key for key, entry in self._entries.items() if entry.state != LOADING]
        for key in settled[:excess]:
            del self._entries[key]

    def retain(self, keys: Iterable[str]) -> int:
        """Evict entries whose keys are not in ``keys``; returns the number evicted."""
        keep = set(keys)
        stale = [key for key in self._entries if key not in keep]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Evicted %d image cache entries", len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
