"""
进程内 TTL 缓存。

过期只在读取时惰性检查并清除，没有后台清理线程。
同一个 key 过期后的并发读取可能各自回源一次（不做请求合并）。
"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from crypto_scanner.log import get_logger
from crypto_scanner.models import PriceSeries

T = TypeVar("T")

logger = get_logger("cache")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.stored_at >= self.ttl


class TTLCache(Generic[T]):
    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[T]] = {}

    def _live_entry(self, key: Hashable) -> Optional[CacheEntry[T]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def get(self, key: Hashable) -> Optional[T]:
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    def set(self, key: Hashable, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=self.ttl)

    def __contains__(self, key: Hashable) -> bool:
        # 缓存的值本身可以是 None
        return self._live_entry(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


SeriesKey = Tuple[str, str, int]


class PriceSeriesCache(TTLCache[PriceSeries]):
    """按 (symbol, interval, limit) 缓存 K 线收盘价序列。"""

    async def get_or_fetch(
        self,
        symbol: str,
        interval: str,
        limit: int,
        fetch: Callable[[], Awaitable[PriceSeries]],
    ) -> PriceSeries:
        key: SeriesKey = (symbol, interval, limit)
        cached = self.get(key)
        if cached is not None:
            return cached

        logger.debug("series cache miss for %s %s x%d", symbol, interval, limit)
        series = await fetch()
        self.set(key, series)
        return series
