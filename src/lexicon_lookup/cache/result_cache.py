"""
TTL- and frequency-aware cache of resolution results.

Entries live in memory and are written through to a KeyValueStore on every
mutation. Persistence is best-effort: a failed or slow write is logged and
the in-memory state stays authoritative for the life of the process.
"""
import asyncio
import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import CacheCorruptionError, StorageError
from ..models import CacheStats
from ..normalization import normalize_query
from .kv_store import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = 24 * 60 * 60
FREQUENT_TTL = 7 * 24 * 60 * 60
FREQUENCY_THRESHOLD = 5
SWEEP_INTERVAL = 60 * 60


@dataclass
class CacheEntry:
    key: str
    payload: Dict[str, Any]
    created_at: float
    ttl: float
    source_tag: str
    ttl_override: bool = False

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "payload": self.payload,
            "created_at": self.created_at,
            "ttl": self.ttl,
            "source_tag": self.source_tag,
            "ttl_override": self.ttl_override,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CacheEntry":
        """:raises: CacheCorruptionError if the persisted form is unusable"""
        try:
            payload = data["payload"]
            if not isinstance(payload, dict):
                raise TypeError("payload is not an object")
            return cls(
                key=str(data["key"]),
                payload=payload,
                created_at=float(data["created_at"]),
                ttl=float(data["ttl"]),
                source_tag=str(data["source_tag"]),
                ttl_override=bool(data.get("ttl_override", False)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CacheCorruptionError(f"Unreadable cache entry: {e}") from e


class ResultCache:
    """
    Cache of resolution payloads keyed by normalized query.

    Frequently requested keys (more than ``frequency_threshold`` hits) are
    stored with the long TTL. Expired entries are evicted on read and by a
    sweep that runs whenever ``sweep_interval`` has elapsed.
    """

    NAMESPACE = "lookup-cache"
    ENTRIES_KEY = "entries"
    FREQUENCY_KEY = "frequency"

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        default_ttl: float = DEFAULT_TTL,
        frequent_ttl: float = FREQUENT_TTL,
        frequency_threshold: int = FREQUENCY_THRESHOLD,
        sweep_interval: float = SWEEP_INTERVAL,
        io_timeout: float = 2.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        :param store: Durable storage; in-memory if omitted
        :param default_ttl: TTL in seconds for ordinary keys
        :param frequent_ttl: TTL in seconds for frequently requested keys
        :param frequency_threshold: Hit count above which frequent_ttl applies
        :param sweep_interval: Seconds between expiry sweeps
        :param io_timeout: Seconds allowed for one storage read or write
        :param clock: Time source, injectable for tests
        """
        self.store = store or InMemoryKeyValueStore()
        self.default_ttl = default_ttl
        self.frequent_ttl = frequent_ttl
        self.frequency_threshold = frequency_threshold
        self.sweep_interval = sweep_interval
        self.io_timeout = io_timeout
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._frequency: Dict[str, int] = {}
        self._last_sweep = clock()
        self._hits = 0
        self._misses = 0
        # Snapshots are numbered so a slow older write never replaces a newer one
        self._version = 0
        self._written_version = 0
        self._write_lock = threading.Lock()

    # Public API

    async def load(self) -> int:
        """
        Restore entries and frequencies from durable storage.

        Unreadable entries are skipped; they disappear from storage on the
        next write. Storage failures leave the cache empty.

        :return: Number of entries restored
        """
        try:
            raw_entries = await self._io(self.store.get, self.NAMESPACE, self.ENTRIES_KEY)
            raw_frequency = await self._io(self.store.get, self.NAMESPACE, self.FREQUENCY_KEY)
        except (StorageError, asyncio.TimeoutError) as e:
            logger.warning(f"Cache load failed, starting empty: {e}")
            return 0

        now = self._clock()
        restored: Dict[str, CacheEntry] = {}
        skipped = 0
        if isinstance(raw_entries, dict):
            for key, raw in raw_entries.items():
                try:
                    entry = CacheEntry.from_dict(raw)
                except CacheCorruptionError as e:
                    skipped += 1
                    logger.debug(f"Dropping cache entry '{key}': {e}")
                    continue
                if not entry.is_expired(now):
                    restored[normalize_query(entry.key)] = entry
        elif raw_entries is not None:
            logger.warning("Persisted cache entries are corrupt, starting empty")

        frequency: Dict[str, int] = {}
        if isinstance(raw_frequency, dict):
            for key, count in raw_frequency.items():
                if isinstance(count, int) and count >= 0:
                    frequency[normalize_query(key)] = count

        self._entries = restored
        self._frequency = frequency
        if skipped:
            logger.warning(f"Skipped {skipped} unreadable cache entr{'y' if skipped == 1 else 'ies'}")
        logger.info(f"Cache restored {len(restored)} entries")
        return len(restored)

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Look up a payload.

        A hit increments the key's frequency and refreshes its timestamp and
        TTL tier; an expired entry is evicted and reported as a miss.

        :return: Copy of the cached payload, or None
        """
        k = normalize_query(key)
        now = self._clock()
        changed = self._sweep_if_due(now) > 0

        entry = self._entries.get(k)
        if entry is not None and entry.is_expired(now):
            del self._entries[k]
            entry = None
            changed = True
            logger.debug(f"Cache entry expired: '{k}'")

        if entry is None:
            self._misses += 1
            if changed:
                await self._persist()
            return None

        self._frequency[k] = self._frequency.get(k, 0) + 1
        entry.created_at = now
        if not entry.ttl_override:
            entry.ttl = self.ttl_for(k)
        self._hits += 1
        await self._persist()
        return copy.deepcopy(entry.payload)

    async def set(
        self,
        key: str,
        payload: Dict[str, Any],
        source_tag: str,
        ttl: Optional[float] = None,
    ) -> CacheEntry:
        """
        Store a payload.

        :param ttl: Explicit TTL in seconds; otherwise chosen by frequency
        :return: The stored entry
        """
        k = normalize_query(key)
        now = self._clock()
        self._sweep_if_due(now)

        entry = CacheEntry(
            key=k,
            payload=copy.deepcopy(payload),
            created_at=now,
            ttl=float(ttl) if ttl is not None else self.ttl_for(k),
            source_tag=source_tag,
            ttl_override=ttl is not None,
        )
        self._entries[k] = entry
        await self._persist()
        return entry

    async def delete(self, key: str) -> bool:
        """Remove a key and its frequency. :return: True if anything was removed"""
        k = normalize_query(key)
        removed = self._entries.pop(k, None) is not None
        removed = self._frequency.pop(k, None) is not None or removed
        if removed:
            await self._persist()
        return removed

    async def clear(self) -> None:
        """Wipe every entry and frequency counter."""
        self._entries.clear()
        self._frequency.clear()
        await self._persist()
        logger.info("Cache cleared")

    async def sweep(self) -> int:
        """Evict every expired entry now. :return: Number evicted"""
        evicted = self._evict_expired(self._clock())
        if evicted:
            await self._persist()
        return evicted

    async def run_periodic_sweep(self) -> None:
        """Sweep every sweep_interval seconds until cancelled."""
        while True:
            await asyncio.sleep(self.sweep_interval)
            await self.sweep()

    def ttl_for(self, key: str) -> float:
        """TTL a write for this key would get without an override."""
        if self._frequency.get(normalize_query(key), 0) > self.frequency_threshold:
            return self.frequent_ttl
        return self.default_ttl

    def frequency(self, key: str) -> int:
        return self._frequency.get(normalize_query(key), 0)

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Entry for a key without touching frequency, expiry or storage."""
        return self._entries.get(normalize_query(key))

    def stats(self, top: int = 10) -> CacheStats:
        frequent: List[Tuple[str, int]] = sorted(
            self._frequency.items(), key=lambda item: (-item[1], item[0])
        )[:top]
        return CacheStats(
            total_entries=len(self._entries),
            frequent_searches=frequent,
            hits=self._hits,
            misses=self._misses,
        )

    def __len__(self) -> int:
        return len(self._entries)

    # Internals

    def _sweep_if_due(self, now: float) -> int:
        if now - self._last_sweep < self.sweep_interval:
            return 0
        return self._evict_expired(now)

    def _evict_expired(self, now: float) -> int:
        self._last_sweep = now
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.info(f"Cache sweep evicted {len(expired)} expired entries")
        return len(expired)

    async def _persist(self) -> None:
        self._version += 1
        entries = {k: entry.to_dict() for k, entry in self._entries.items()}
        frequency = dict(self._frequency)
        try:
            await self._io(self._write_snapshot, self._version, entries, frequency)
        except (StorageError, asyncio.TimeoutError) as e:
            logger.warning(f"Cache write-through failed, keeping in-memory state: {e!r}")

    def _write_snapshot(self, version: int, entries: Dict[str, Any], frequency: Dict[str, int]) -> bool:
        with self._write_lock:
            if version < self._written_version:
                logger.debug(f"Skipping stale cache snapshot {version} (stored {self._written_version})")
                return False
            self.store.set(self.NAMESPACE, self.ENTRIES_KEY, entries)
            self.store.set(self.NAMESPACE, self.FREQUENCY_KEY, frequency)
            self._written_version = version
            return True

    async def _io(self, func: Callable, *args: Any) -> Any:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.io_timeout)
