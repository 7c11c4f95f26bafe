"""Bounded LRU + TTL cache for per-file extraction results."""

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0
DEFAULT_MAX_ENTRIES = 1000
DEFAULT_MEMORY_LIMIT = 50 * 1024 * 1024
FALLBACK_ENTRY_SIZE = 1024


@dataclass
class CacheEntry:
    key: str
    value: Any
    inserted_at: float
    expires_at: float
    size: int

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


def file_fingerprint(file_path: str, mtime: float) -> str:
    """
    Build a cache key from a file path and its modification time.

    Any change to the file's mtime yields a different key, so stale
    entries are never returned for a modified file.
    """
    digest = hashlib.sha1()
    digest.update(file_path.encode("utf-8"))
    digest.update(b"\0")
    digest.update(repr(float(mtime)).encode("ascii"))
    return digest.hexdigest()


def _encode(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not serializable")


def estimate_size(value: Any) -> int:
    """Rough in-memory footprint: JSON length as UTF-16 bytes."""
    try:
        return len(json.dumps(value, default=_encode)) * 2
    except (TypeError, ValueError):
        return FALLBACK_ENTRY_SIZE


class ResultCache:
    """
    Thread-safe cache with TTL expiry and size-bounded eviction.

    All reads and writes go through a single lock. When inserting would
    exceed either ``max_entries`` or ``memory_limit``, expired entries are
    purged first and then the oldest-inserted entries are evicted.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        memory_limit: int = DEFAULT_MEMORY_LIMIT,
        clock: Callable[[], float] = time.time,
    ):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.memory_limit = memory_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._memory_usage = 0
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for key, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._clock()):
                self._remove_locked(key)
                self._misses += 1
                logger.debug("Cache entry expired: %s", key)
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key (usually a file fingerprint).
            value: Payload to store.
            ttl: Lifetime in seconds; defaults to the cache's default TTL.
        """
        size = estimate_size(value)
        now = self._clock()
        lifetime = self.default_ttl if ttl is None else ttl

        with self._lock:
            if key in self._entries:
                self._remove_locked(key)
            if size > self.memory_limit:
                logger.debug("Value for %s exceeds cache memory limit, not cached", key)
                return
            self._make_room_locked(size, now)
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                inserted_at=now,
                expires_at=now + lifetime,
                size=size,
            )
            self._memory_usage += size

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        with self._lock:
            if key not in self._entries:
                return False
            self._remove_locked(key)
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._memory_usage = 0

    def clear_expired(self) -> int:
        """Purge all expired entries. Returns the number removed."""
        with self._lock:
            return self._purge_expired_locked(self._clock())

    def stats(self) -> Dict[str, float]:
        with self._lock:
            requests = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "memory_usage": self._memory_usage,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / requests if requests else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def _remove_locked(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._memory_usage -= entry.size

    def _purge_expired_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._remove_locked(key)
        return len(expired)

    def _make_room_locked(self, incoming_size: int, now: float) -> None:
        if not self._over_limit(incoming_size):
            return
        self._purge_expired_locked(now)
        evicted = 0
        while self._entries and self._over_limit(incoming_size):
            key, entry = self._entries.popitem(last=False)
            self._memory_usage -= entry.size
            evicted += 1
        if evicted:
            logger.debug("Evicted %d cache entries", evicted)

    def _over_limit(self, incoming_size: int) -> bool:
        return (
            len(self._entries) >= self.max_entries
            or self._memory_usage + incoming_size > self.memory_limit
        )

    def __repr__(self) -> str:
        return f"ResultCache(entries={len(self._entries)}, memory={self._memory_usage})"
