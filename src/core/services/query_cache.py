"""
In-process query cache with optimistic updates.

Entries are keyed by tuples such as ("products", "all") and carry their
fetch time. An entry older than the stale window, or explicitly
invalidated, is reloaded on the next fetch. Concurrent fetches of one key
share a single load.

Optimistic writes go through with_optimistic_update: snapshot the touched
entries, apply the speculative change, run the backend call, and restore
the snapshots exactly if it fails.
"""

import asyncio
import copy
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from src.config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
CacheKey = tuple[str, ...]

PRODUCTS_KEY: CacheKey = ("products", "all")


def product_key(barcode: str) -> CacheKey:
    return ("product", barcode)


def history_key(product_id: str) -> CacheKey:
    return ("history", product_id)


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float
    stale: bool = False


@dataclass
class Snapshot:
    """Deep copy of one cache entry, or a record that it was absent."""

    key: CacheKey
    entry: CacheEntry | None


@dataclass
class MutationResult(Generic[T]):
    """Outcome of an optimistic write. Failures carry the error instead of raising."""

    ok: bool
    value: T | None = None
    error: Exception | None = None
    rolled_back: list[CacheKey] = field(default_factory=list)


class QueryCache:
    """Keyed cache with a freshness window and snapshot/restore support."""

    def __init__(
        self,
        stale_time: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_time = stale_time
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, asyncio.Task] = {}
        self._fetch_counts: dict[CacheKey, int] = {}

    # ---- plain access ----

    def has(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> Any | None:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    def update(self, key: CacheKey, fn: Callable[[Any], Any]) -> bool:
        """Replace an existing entry's value with fn(value). Missing keys are left alone."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        entry.value = fn(entry.value)
        return True

    def is_fresh(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return False
        return (self._clock() - entry.fetched_at) < self._stale_time

    def invalidate(self, *prefix: str) -> int:
        """Mark every entry whose key starts with ``prefix`` as stale."""
        count = 0
        for key, entry in self._entries.items():
            if key[: len(prefix)] == prefix:
                entry.stale = True
                count += 1
        if count:
            logger.debug("cache_invalidated", prefix=prefix, entries=count)
        return count

    def clear(self) -> None:
        self._entries.clear()

    # ---- loading ----

    async def fetch(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[T]],
        force: bool = False,
    ) -> T:
        """Return the cached value while fresh, otherwise load and store it."""
        if not force and self.is_fresh(key):
            return self._entries[key].value

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))
        return await task

    async def _load(self, key: CacheKey, loader: Callable[[], Awaitable[T]]) -> T:
        value = await loader()
        self.set(key, value)
        self._fetch_counts[key] = self._fetch_counts.get(key, 0) + 1
        logger.debug("cache_loaded", key=key, fetches=self._fetch_counts[key])
        return value

    def fetch_count(self, key: CacheKey) -> int:
        """How many times ``key`` was loaded from its source."""
        return self._fetch_counts.get(key, 0)

    # ---- snapshots and optimistic writes ----

    def snapshot(self, key: CacheKey) -> Snapshot:
        entry = self._entries.get(key)
        return Snapshot(key=key, entry=copy.deepcopy(entry))

    def restore(self, snapshot: Snapshot) -> None:
        if snapshot.entry is None:
            self._entries.pop(snapshot.key, None)
        else:
            self._entries[snapshot.key] = copy.deepcopy(snapshot.entry)

    async def with_optimistic_update(
        self,
        cache_key: CacheKey,
        mutator: Callable[[Any], Any],
        backend_call: Callable[[], Awaitable[T]],
        related: Mapping[CacheKey, Callable[[Any], Any]] | None = None,
    ) -> MutationResult[T]:
        """
        Apply a speculative change, then confirm it with the backend.

        Args:
            cache_key: Primary entry to mutate.
            mutator: Returns the new value for the primary entry.
            backend_call: The real write.
            related: Further entries to mutate in the same step. Entries not
                present in the cache are skipped.

        Returns:
            MutationResult with the backend value, or the error after every
            touched entry was restored to its snapshot.
        """
        mutators = {cache_key: mutator, **(related or {})}
        snapshots = [self.snapshot(key) for key in mutators]

        for key, fn in mutators.items():
            self.update(key, fn)

        try:
            value = await backend_call()
        except Exception as e:
            for snap in snapshots:
                self.restore(snap)
            logger.warning(
                "optimistic_update_rolled_back",
                key=cache_key,
                error=str(e),
            )
            return MutationResult(
                ok=False,
                error=e,
                rolled_back=[snap.key for snap in snapshots],
            )

        return MutationResult(ok=True, value=value)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {
            "entries": len(self._entries),
            "fresh": sum(1 for key in self._entries if self.is_fresh(key)),
            "inflight": len(self._inflight),
            "fetches": sum(self._fetch_counts.values()),
        }
