"""Time-boxed cache for egg pool reference data.

Provides a TTLCache with a get-or-fetch contract for large reference lists
(Pokemon, moves, abilities, held items) so they are not downloaded on every
visit.  Entries live in a pluggable storage medium:

- MemoryStorage: process-local dict, used by tests and short-lived tools
- FileStorage: one JSON file per key, survives process restarts

Stored entries that cannot be parsed are treated as absent and refetched;
corruption is never surfaced to callers.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from utils.errors import CacheCorruptionError
from utils.patterns import UNSAFE_KEY_CHARS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the wall-clock time it was fetched."""

    value: Any
    fetched_at: float

    def is_fresh(self, ttl_seconds: float, now: float) -> bool:
        return now - self.fetched_at < ttl_seconds

    def dumps(self) -> str:
        return json.dumps({"value": self.value, "fetched_at": self.fetched_at})

    @classmethod
    def loads(cls, raw: str) -> "CacheEntry":
        """Parse a stored entry.

        Raises:
            CacheCorruptionError: if *raw* is not a well-formed entry.
        """
        try:
            data = json.loads(raw)
            return cls(value=data["value"], fetched_at=float(data["fetched_at"]))
        except (ValueError, TypeError, KeyError) as e:
            raise CacheCorruptionError(f"Unreadable cache entry: {e}") from e


class MemoryStorage:
    """String-keyed in-memory storage of serialized entries."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """Manages file-based storage of cache entries.

    Each key is stored as ``<cache_dir>/<sanitized key>.json``.  An
    unreadable file reads as missing; a failed write is logged and dropped,
    since the cache is an optimisation and never the source of truth.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize file storage.

        Args:
            cache_dir: Directory to store cache files
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Cache file %s unreadable: %s", path, e)
            return None

    def write(self, key: str, raw: str) -> None:
        path = self._path(key)
        try:
            path.write_text(raw, encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write cache file %s: %s", path, e)

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass

    def clear(self) -> None:
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                cache_file.unlink()
            except OSError as e:
                logger.warning("Failed to remove cache file %s: %s", cache_file, e)

    def keys(self) -> list[str]:
        return [p.stem for p in self.cache_dir.glob("*.json")]


class TTLCache:
    """Get-or-fetch cache with time-to-live expiry.

    The TTL is supplied per lookup, so one cache can hold lists with
    different freshness needs.  The clock defaults to wall time because file
    entries must stay comparable across restarts.

    Usage::

        cache = TTLCache(FileStorage(Path(".reference_cache")))
        names = await cache.get_or_fetch("egglocke-moves-gen7", 7 * 86400, load_moves)
    """

    def __init__(self, storage=None,
                 clock: Callable[[], float] = time.time) -> None:
        """Initialise the cache.

        Args:
            storage: Storage medium (default: a fresh MemoryStorage).
            clock: Zero-argument callable returning the current time in seconds.
        """
        self._storage = storage if storage is not None else MemoryStorage()
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._refreshes = 0
        self._failures = 0
        self._inflight: dict[str, asyncio.Future] = {}

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry for *key* regardless of age.

        Corrupt entries read as ``None``.
        """
        raw = self._storage.read(key)
        if raw is None:
            return None
        try:
            return CacheEntry.loads(raw)
        except CacheCorruptionError as e:
            logger.debug("Treating cache key %s as missing: %s", key, e)
            return None

    def get(self, key: str, ttl_seconds: float) -> Any | None:
        """Return the cached value for *key* if younger than *ttl_seconds*."""
        entry = self.peek(key)
        if entry is None or not entry.is_fresh(ttl_seconds, self._clock()):
            return None
        return entry.value

    def set(self, key: str, value: Any) -> CacheEntry:
        """Store *value* under *key*, stamped with the current time."""
        entry = CacheEntry(value=value, fetched_at=self._clock())
        self._storage.write(key, entry.dumps())
        return entry

    async def get_or_fetch(self, key: str, ttl_seconds: float,
                           fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        """Return a fresh cached value or fetch, store and return a new one.

        Concurrent callers missing on the same key share one fetch.  If
        *fetch_fn* raises, every waiter sees the error and whatever was
        stored before (even if stale) is left exactly as it was.

        Args:
            key: Cache key.
            ttl_seconds: Maximum age of a usable entry.
            fetch_fn: Zero-argument coroutine function producing the value.
        """
        entry = self.peek(key)
        if entry is not None and entry.is_fresh(ttl_seconds, self._clock()):
            self._hits += 1
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            self._misses += 1
            task = asyncio.ensure_future(self._refresh(key, fetch_fn))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._fetch_finished(key, done))
        else:
            logger.debug("Joining in-flight fetch for cache key %s", key)
        # A cancelled waiter must not cancel the fetch other callers share.
        return await asyncio.shield(task)

    async def _refresh(self, key: str, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await fetch_fn()
        except Exception:
            self._failures += 1
            raise
        self._refreshes += 1
        self.set(key, value)
        logger.info("Refreshed cache key %s", key, extra={"key": key})
        return value

    def _fetch_finished(self, key: str, task: "asyncio.Future[Any]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the error retrieved even when every waiter was cancelled.
            task.exception()

    def delete(self, key: str) -> None:
        """Remove a single entry (no-op if not present)."""
        self._storage.remove(key)

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        self._storage.clear()
        self._hits = 0
        self._misses = 0
        self._refreshes = 0
        self._failures = 0

    def stats(self) -> dict[str, int]:
        """Return cache statistics.

        Returns:
            Dict with keys ``hits``, ``misses``, ``refreshes``, ``failures``
            and ``size``.
        """
        return {
            "hits": self._hits,
            "misses": self._misses,
            "refreshes": self._refreshes,
            "failures": self._failures,
            "size": len(self._storage.keys()),
        }
