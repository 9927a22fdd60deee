"""Bounded result cache for PageSentinel.

Maps a page URL to its most recent AnalysisResult. Supports:
- Freshness window checked on every read
- Capacity bound with oldest-first eviction
- Optional JSON persistence to a single file
- Thread-safe operations
"""

import asyncio
import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .analyzer.models import AnalysisResult
from .utils.files import atomic_write_text

logger = logging.getLogger(__name__)

_FORMAT_VERSION = 1


class CacheEntry:
    """A cached result with the time it was stored."""

    __slots__ = ("result", "timestamp")

    def __init__(self, result: AnalysisResult, timestamp: float):
        self.result = result
        self.timestamp = timestamp

    def is_fresh(self, now: float, freshness_seconds: float) -> bool:
        return now - self.timestamp < freshness_seconds


class ResultCache:
    """
    URL-keyed store of analysis results.

    Usage:
        cache = ResultCache(capacity=100, freshness_seconds=3600)

        cache.set("https://example.com/", result)
        cached = cache.get("https://example.com/")  # None once stale
    """

    def __init__(
        self,
        capacity: int = 100,
        freshness_seconds: float = 3600,
        persist_path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache.

        Args:
            capacity: Maximum number of entries kept
            freshness_seconds: Age after which an entry is no longer served
            persist_path: JSON file to load from and save to (None keeps it memory-only)
            clock: Time source, seconds since the epoch
        """
        self.capacity = capacity
        self.freshness_seconds = freshness_seconds
        self.persist_path = Path(persist_path) if persist_path else None
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._write_lock = threading.Lock()

        if self.persist_path:
            self._load()

    def get(self, url: str) -> Optional[AnalysisResult]:
        """Return the cached result if present and still fresh."""
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if entry.is_fresh(self._clock(), self.freshness_seconds):
                return entry.result
            # Stale - drop it so it does not count against capacity
            del self._entries[url]
        return None

    def set(self, url: str, result: AnalysisResult) -> None:
        """Store a result stamped with the current time, evicting the oldest entries past capacity."""
        with self._lock:
            self._put(url, result)
        self._save()

    async def store(self, url: str, result: AnalysisResult) -> None:
        """Like set(), but writes the persistence file in a worker thread."""
        with self._lock:
            self._put(url, result)
        if self.persist_path is not None:
            await asyncio.to_thread(self._save)

    def invalidate(self, url: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        with self._lock:
            existed = self._entries.pop(url, None) is not None
        if existed:
            self._save()
        return existed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        self._save()

    def history(self, limit: int = 20) -> list[dict[str, Any]]:
        """Most recently stored entries first."""
        with self._lock:
            ranked = sorted(self._entries.items(), key=lambda kv: kv[1].timestamp, reverse=True)
            return [
                {
                    "url": url,
                    "risk_level": str(entry.result.risk_level),
                    "score": entry.result.score,
                    "timestamp": entry.timestamp,
                }
                for url, entry in ranked[:limit]
            ]

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            now = self._clock()
            fresh = sum(
                1 for e in self._entries.values() if e.is_fresh(now, self.freshness_seconds)
            )
            return {
                "entries": len(self._entries),
                "fresh_entries": fresh,
                "capacity": self.capacity,
                "freshness_seconds": self.freshness_seconds,
                "persistent": self.persist_path is not None,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return self.get(url) is not None

    def _put(self, url: str, result: AnalysisResult) -> None:
        # Re-insert so dict order tracks update order when timestamps tie.
        self._entries.pop(url, None)
        self._entries[url] = CacheEntry(result, self._clock())
        self._evict()

    def _evict(self) -> None:
        overflow = len(self._entries) - self.capacity
        if overflow <= 0:
            return
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].timestamp)[:overflow]
        for url, _ in oldest:
            del self._entries[url]
        logger.debug("Evicted %s cache entries (capacity %s)", overflow, self.capacity)

    def _load(self) -> None:
        """Read persisted entries; any failure leaves the cache empty and memory-only."""
        path = self.persist_path
        if path is None or not path.exists():
            return
        try:
            data = json.loads(path.read_text())
            entries = {}
            for url, raw in (data.get("entries") or {}).items():
                entries[url] = CacheEntry(
                    result=AnalysisResult.from_dict(raw["result"]),
                    timestamp=float(raw["timestamp"]),
                )
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Failed to load result cache from %s, continuing in memory: %s", path, e)
            self.persist_path = None
            return

        self._entries = entries
        self._evict()
        logger.debug("Loaded %s cached results from %s", len(self._entries), path)

    def _save(self) -> None:
        # Serialised so an older snapshot never lands after a newer one.
        with self._write_lock:
            with self._lock:
                path = self.persist_path
                if path is None:
                    return
                payload = {
                    "version": _FORMAT_VERSION,
                    "entries": {
                        url: {"result": entry.result.to_dict(), "timestamp": entry.timestamp}
                        for url, entry in self._entries.items()
                    },
                }
            try:
                atomic_write_text(path, json.dumps(payload))
            except (OSError, TypeError, ValueError) as e:
                logger.warning("Failed to persist result cache to %s, continuing in memory: %s", path, e)
                self.persist_path = None
