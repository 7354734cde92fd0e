import asyncio

from crypto_scanner.config import (
    BINANCE_MAX_CONCURRENT_REQUESTS,
    BINANCE_MIN_REQUEST_INTERVAL,
)


class AsyncConcurrencyLimiter:
    """限制同时在途的请求数，并保证两次请求之间的最小间隔。"""

    def __init__(self, max_concurrent: int, min_interval: float = 0.0) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._sem = asyncio.Semaphore(max_concurrent)
        self._min_interval = min_interval
        self._lock = asyncio.Lock()
        self._last_acquire = 0.0

    async def __aenter__(self):
        await self._sem.acquire()
        if self._min_interval <= 0:
            return self

        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            elapsed = now - self._last_acquire
            wait_for = self._min_interval - elapsed
            if wait_for > 0:
                await asyncio.sleep(wait_for)
                now = loop.time()
            self._last_acquire = now

        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._sem.release()
        return False


def new_binance_limiter() -> AsyncConcurrencyLimiter:
    """Binance 公共接口的默认限流参数；每个 provider 各持一个。"""
    return AsyncConcurrencyLimiter(
        BINANCE_MAX_CONCURRENT_REQUESTS,
        BINANCE_MIN_REQUEST_INTERVAL,
    )
