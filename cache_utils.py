"""
In-process weather cache with single-flight request coalescing.

This module provides:
- CacheEntry / CacheStore: key -> (expiry, payload) with TTL checks on read
- WeatherCache: get-or-fetch wrapper guaranteeing at most one outstanding
  upstream call per key, with optional stale-on-error serving
- make_cache_key: deterministic keys from operation, rounded coordinates and parameters

All state lives on a WeatherCache instance created once at startup and passed
to every client, so tests can build isolated caches.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

FetchFunc = Callable[[], Awaitable[Any]]
StalePredicate = Callable[[BaseException], bool]

# Recent fetch durations kept for avg_fetch_time
FETCH_TIMES_WINDOW = 500


def _retrieve_exception(task: "asyncio.Task[Any]") -> None:
    # A cancelled waiter detaches its shield, so a failed fetch may have no reader left
    if not task.cancelled():
        task.exception()


def _format_coord(value: float) -> str:
    formatted = f"{float(value):.2f}"
    # -0.004 rounds to "-0.00"; keep it identical to 0.00
    return "0.00" if formatted == "-0.00" else formatted


def make_cache_key(operation: str, lat: float, lon: float, units: str, *params: Any) -> str:
    """Build a cache key from operation, coordinates (2 decimal places), units and extra params.

    Args:
        operation: Operation name (e.g. 'realtime', 'forecast')
        lat: Latitude
        lon: Longitude
        units: Unit system
        *params: Window/timestep parameters; None becomes an empty segment

    Returns:
        str: Key in format {operation}|{lat},{lon}|{units}|{param}...
    """
    parts = [operation, f"{_format_coord(lat)},{_format_coord(lon)}", units]
    parts.extend("" if p is None else str(p) for p in params)
    return "|".join(parts)


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the monotonic instant it expires at. Never mutated, only replaced."""
    expires_at: float
    payload: Any

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class CacheStore:
    """Key -> CacheEntry mapping with TTL checks on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the fresh entry for key, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self.now()):
            return entry
        return None

    def get_stale(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key regardless of expiry."""
        return self._entries.get(key)

    def set(self, key: str, payload: Any, ttl: float) -> CacheEntry:
        entry = CacheEntry(expires_at=self.now() + ttl, payload=payload)
        self._entries[key] = entry
        return entry

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class WeatherCache:
    """TTL cache with single-flight protection and metrics.

    Reads prefer a fresh cache hit, then join an in-flight fetch for the same
    key, and only then start a new fetch. The check and the in-flight insert
    happen without an intervening await, which makes them atomic on a single
    event loop.
    """

    def __init__(self, default_ttl: float = 300.0, store: Optional[CacheStore] = None):
        """Initialize the weather cache.

        Args:
            default_ttl: TTL in seconds used when get_or_fetch is called without one
            store: Backing store (a fresh CacheStore by default)
        """
        self.default_ttl = default_ttl
        self.store = store if store is not None else CacheStore()
        self._inflight: Dict[str, "asyncio.Task[Any]"] = {}

        # Metrics tracking
        self.hits = 0
        self.misses = 0
        self.joins = 0
        self.errors = 0
        self.stale_served = 0
        self.fetch_times = deque(maxlen=FETCH_TIMES_WINDOW)

    def is_inflight(self, key: str) -> bool:
        return key in self._inflight

    async def get_or_fetch(
        self,
        key: str,
        fetch_func: FetchFunc,
        ttl: Optional[float] = None,
        serve_stale_on: Optional[StalePredicate] = None,
    ) -> Any:
        """Get from cache or fetch with single-flight protection.

        Args:
            key: Cache key
            fetch_func: Zero-argument coroutine function performing the upstream call
            ttl: Seconds the fetched payload stays fresh (default_ttl if None)
            serve_stale_on: If given and it returns True for the fetch error, an
                existing (possibly expired) entry is returned instead of raising.
                Stale payloads are never re-cached.

        Returns:
            The cached, joined or freshly fetched payload
        """
        entry = self.store.get(key)
        if entry is not None:
            self.hits += 1
            logger.debug(f"✅ CACHE HIT: {key}")
            return entry.payload

        task = self._inflight.get(key)
        if task is not None:
            self.joins += 1
            logger.debug(f"🔗 JOINING IN-FLIGHT FETCH: {key}")
        else:
            self.misses += 1
            logger.debug(f"❌ CACHE MISS: {key}, fetching upstream")
            ttl = self.default_ttl if ttl is None else ttl
            task = asyncio.ensure_future(self._fetch(key, fetch_func, ttl, serve_stale_on))
            task.add_done_callback(_retrieve_exception)
            self._inflight[key] = task

        # Shield so a cancelled waiter doesn't cancel the fetch other callers share
        return await asyncio.shield(task)

    async def _fetch(self, key: str, fetch_func: FetchFunc, ttl: float,
                     serve_stale_on: Optional[StalePredicate]) -> Any:
        start_time = time.time()
        try:
            payload = await fetch_func()
        except Exception as exc:
            self.errors += 1
            stale = self.store.get_stale(key)
            if stale is not None and serve_stale_on is not None and serve_stale_on(exc):
                self.stale_served += 1
                logger.warning(f"⚠️  Serving stale cache for {key} after fetch failure: {exc}")
                return stale.payload
            raise
        else:
            self.store.set(key, payload, ttl)
            self.fetch_times.append(time.time() - start_time)
            return payload
        finally:
            self._inflight.pop(key, None)

    def get_metrics(self) -> Dict[str, Any]:
        """Get cache performance metrics."""
        total_requests = self.hits + self.misses + self.joins
        hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0
        avg_fetch_time = sum(self.fetch_times) / len(self.fetch_times) if self.fetch_times else 0

        return {
            "hits": self.hits,
            "misses": self.misses,
            "joins": self.joins,
            "errors": self.errors,
            "stale_served": self.stale_served,
            "hit_rate": round(hit_rate, 2),
            "total_requests": total_requests,
            "avg_fetch_time": round(avg_fetch_time, 3),
            "entries": len(self.store),
            "inflight": len(self._inflight),
        }
