# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Read-through memoization tables for per-file analysis results.

This module implements the cache layer shared by every query of an
analysis context: resolved export sets, resolved import records and
specifier resolutions.

Key Features:
- At most one computation per key, even under concurrent access
- Failed computations are never cached
- Write-once entries; no eviction
- Atomic clear across all tables of a context
- Statistics tracking for cache performance

Thread Safety:
- Each table stores a concurrent.futures.Future per key. The first caller
  for a key installs an unresolved Future and computes; later callers wait
  on it instead of computing again.
- Tables of one context share a single RLock so clear() never exposes a
  half-cleared state.
- The lock is never held while a computation runs.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheStatistics:
    """Performance counters for one cache table."""

    hits: int = 0
    misses: int = 0
    failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class MemoCache(Generic[K, V]):
    """Write-once memo table keyed by file path or resolution key.

    Usage:
        cache = MemoCache("exports")
        names = cache.get_or_compute(path, lambda: extract(path))
    """

    def __init__(self, name: str, lock: Optional[threading.RLock] = None) -> None:
        self.name = name
        self._lock = lock if lock is not None else threading.RLock()
        self._entries: Dict[K, "Future[V]"] = {}
        self._stats = CacheStatistics()

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        """Return the cached value for key, computing it on first request.

        Concurrent callers for the same key block until the first caller's
        computation finishes and then share its result or exception.

        Raises:
            Whatever compute raises. The failed entry is discarded so a
            later call retries.
        """
        with self._lock:
            future = self._entries.get(key)
            if future is None:
                future = Future()
                self._entries[key] = future
                self._stats.misses += 1
                owner = True
            else:
                self._stats.hits += 1
                owner = False

        if not owner:
            return future.result()

        try:
            value = compute()
        except BaseException as e:
            with self._lock:
                # A clear() may already have dropped or replaced the entry
                if self._entries.get(key) is future:
                    del self._entries[key]
                self._stats.failures += 1
            future.set_exception(e)
            raise

        future.set_result(value)
        return value

    def peek(self, key: K) -> Optional[V]:
        """Return a completed value without computing or waiting."""
        with self._lock:
            future = self._entries.get(key)
            if future is None or not future.done() or future.exception() is not None:
                return None
            self._stats.hits += 1
            return future.result()

    def put(self, key: K, value: V) -> V:
        """Store value unless key already has an entry.

        Returns:
            The value now associated with key. Entries are write-once, so an
            existing completed value wins over the new one.
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None and existing.done() and existing.exception() is None:
                return existing.result()
            if existing is None:
                future: "Future[V]" = Future()
                future.set_result(value)
                self._entries[key] = future
        if existing is not None and not existing.done():
            # An in-flight computation owns the key
            return existing.result()
        return value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            future = self._entries.get(key)  # type: ignore[call-overload]
            return future is not None and future.done() and future.exception() is None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats = CacheStatistics()

    def __len__(self) -> int:
        """Number of completed entries; in-flight computations are not counted."""
        with self._lock:
            return sum(
                1 for f in self._entries.values() if f.done() and f.exception() is None
            )

    def get_statistics(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(**asdict(self._stats))


class AnalysisCaches:
    """The cache tables owned by one analysis context.

    Tables:
        exports: canonical path -> frozenset of export names
        imports: canonical path -> ImportRecord
        resolution: (specifier, base dir, extensions) or candidate path -> canonical path
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.exports: MemoCache = MemoCache("exports", self._lock)
        self.imports: MemoCache = MemoCache("imports", self._lock)
        self.resolution: MemoCache = MemoCache("resolution", self._lock)

    def _tables(self):
        return (self.exports, self.imports, self.resolution)

    def clear(self) -> None:
        """Empty every table atomically."""
        with self._lock:
            for table in self._tables():
                table.clear()
        logger.debug("Cleared all analysis caches")

    def stats(self) -> Dict[str, int]:
        """Entry counts per table."""
        with self._lock:
            return {table.name: len(table) for table in self._tables()}

    def get_statistics(self) -> Dict[str, Dict[str, int]]:
        """Hit/miss/failure counters per table."""
        with self._lock:
            return {table.name: table.get_statistics().to_dict() for table in self._tables()}
