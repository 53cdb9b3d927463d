"""
File-based persistent key-value cache with timestamped entries.

Each key maps to one JSON file holding {"value": ..., "timestamp": ...}.
Freshness is decided by the reader against its own TTL, so the same entry
can be "fresh" for one consumer and "stale" for another.

Cache files are stored in a .cache directory by default.
"""

import asyncio
import hashlib
import json
import time
from pathlib import Path
from typing import Any, Callable, Optional

from fula_stats.shared.exceptions import CacheReadError


class CacheEntry:
    """A cached value and the Unix time it was stored."""

    def __init__(self, value: Any, timestamp: float):
        self.value = value
        self.timestamp = timestamp

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_fresh(self, ttl: float, now: float) -> bool:
        """Check if this entry is younger than `ttl` seconds."""
        return 0 <= self.age(now) < ttl

    def to_dict(self) -> dict:
        return {"value": self.value, "timestamp": self.timestamp}


class FileCache:
    """File-based persistent key-value store."""

    def __init__(
        self,
        cache_dir: Path = Path(".cache"),
        namespace: str = "fula_stats",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            cache_dir: Directory for cache files (created on first write)
            namespace: Prefix mixed into every key before hashing
            clock: Time source, injectable for tests
        """
        self._lock = asyncio.Lock()
        self.cache_dir = Path(cache_dir)
        self._namespace = namespace
        self._clock = clock

    def _get_cache_path(self, key: str) -> Path:
        """Get the file path for a cache key."""
        safe_key = hashlib.sha256(
            f"{self._namespace}:{key}".encode()
        ).hexdigest()
        return self.cache_dir / f"{safe_key}.cache"

    async def get_entry(self, key: str) -> Optional[CacheEntry]:
        """
        Return the stored entry, or None if the key was never written.

        Raises:
            CacheReadError: the file exists but is not a valid entry. The
                corrupt file is removed first.
        """
        async with self._lock:
            cache_path = self._get_cache_path(key)
            if not cache_path.exists():
                return None

            try:
                with open(cache_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                return CacheEntry(data["value"], float(data["timestamp"]))
            except (OSError, ValueError, KeyError, TypeError) as e:
                cache_path.unlink(missing_ok=True)
                raise CacheReadError(
                    f"Corrupt cache entry for {key}: {e}"
                ) from e

    async def set(self, key: str, value: Any) -> CacheEntry:
        """Store `value` stamped with the current time."""
        entry = CacheEntry(value, self._clock())
        async with self._lock:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path = self._get_cache_path(key)
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(entry.to_dict(), f)
        return entry

    def now(self) -> float:
        return self._clock()
