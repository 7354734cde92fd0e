from typing import Any, Dict, List, Optional

import httpx

from crypto_scanner.config import BINANCE_API_KEY, BINANCE_BASE_URL, REQUEST_TIMEOUT
from crypto_scanner.errors import UpstreamUnavailable
from crypto_scanner.log import get_logger
from crypto_scanner.models import Candle, TickerSnapshot
from crypto_scanner.rate_limiter import AsyncConcurrencyLimiter, new_binance_limiter

logger = get_logger("fetchers.binance")


def build_headers(api_key: str = BINANCE_API_KEY) -> Dict[str, str]:
    headers = {"Accept": "application/json"}
    if api_key:
        headers["X-MBX-APIKEY"] = api_key
    return headers


def parse_ticker(entry: Dict[str, Any]) -> TickerSnapshot:
    return TickerSnapshot(
        symbol=str(entry["symbol"]).upper(),
        last_price=float(entry.get("lastPrice", 0)),
        price_change_percent=float(entry.get("priceChangePercent", 0)),
        volume=float(entry.get("volume", 0)),
        quote_volume=float(entry.get("quoteVolume", 0)),
        trade_count=max(int(entry.get("count", 0)), 0),
    )


async def fetch_binance_24hr_tickers_async(
    client: httpx.AsyncClient,
    limiter: AsyncConcurrencyLimiter,
    base_url: str = BINANCE_BASE_URL,
    headers: Optional[Dict[str, str]] = None,
) -> List[TickerSnapshot]:
    """全市场 24 小时行情，无法解析的条目直接跳过。"""
    async with limiter:
        response = await client.get(
            f"{base_url}/api/v3/ticker/24hr",
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
    response.raise_for_status()
    data = response.json()

    if not isinstance(data, list):
        raise ValueError(f"API 返回格式错误：期望列表，得到 {type(data)}")

    tickers: List[TickerSnapshot] = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("symbol"):
            continue
        try:
            tickers.append(parse_ticker(entry))
        except (TypeError, ValueError) as exc:
            logger.debug("skip malformed ticker %s: %s", entry.get("symbol"), exc)
            continue
    return tickers


async def fetch_binance_klines_async(
    client: httpx.AsyncClient,
    limiter: AsyncConcurrencyLimiter,
    symbol: str,
    interval: str,
    limit: int,
    base_url: str = BINANCE_BASE_URL,
    headers: Optional[Dict[str, str]] = None,
) -> List[Candle]:
    """K 线，保持交易所返回的时间正序（最旧的在前）。"""
    async with limiter:
        response = await client.get(
            f"{base_url}/api/v3/klines",
            params={"symbol": symbol.upper(), "interval": interval, "limit": limit},
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
    response.raise_for_status()
    raw_klines = response.json()

    if not isinstance(raw_klines, list):
        raise ValueError(f"API 返回格式错误：期望列表，得到 {type(raw_klines)}")

    candles: List[Candle] = []
    for entry in raw_klines:
        if not isinstance(entry, list) or len(entry) < 6:
            raise ValueError(f"K 线数据格式错误：{entry}")
        try:
            candle = Candle(
                open_time=int(entry[0]),
                open=float(entry[1]),
                high=float(entry[2]),
                low=float(entry[3]),
                close=float(entry[4]),
                volume=float(entry[5]),
            )
        except (TypeError, ValueError) as exc:
            # 字段为 null 时 float() 抛 TypeError，统一成格式错误
            raise ValueError(f"K 线数据格式错误：{entry}") from exc
        candles.append(candle)
    return candles


async def fetch_binance_server_time_async(
    client: httpx.AsyncClient,
    limiter: AsyncConcurrencyLimiter,
    base_url: str = BINANCE_BASE_URL,
    headers: Optional[Dict[str, str]] = None,
) -> int:
    async with limiter:
        response = await client.get(
            f"{base_url}/api/v3/time",
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict) or "serverTime" not in data:
        raise ValueError(f"API 返回格式错误：{data}")
    return int(data["serverTime"])


class BinanceMarketData:
    """
    扫描流程使用的行情提供者。

    client 由调用方创建和关闭；所有底层错误统一转换为 UpstreamUnavailable。
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = BINANCE_BASE_URL,
        api_key: str = BINANCE_API_KEY,
        limiter: Optional[AsyncConcurrencyLimiter] = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = build_headers(api_key)
        self._limiter = limiter or new_binance_limiter()

    async def get_ticker_24h(self) -> List[TickerSnapshot]:
        try:
            return await fetch_binance_24hr_tickers_async(
                self._client, self._limiter, self._base_url, self._headers
            )
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            logger.error("Error fetching ticker/24hr: %s", exc)
            raise UpstreamUnavailable("ticker/24hr", str(exc)) from exc

    async def get_klines(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        try:
            return await fetch_binance_klines_async(
                self._client, self._limiter, symbol, interval, limit, self._base_url, self._headers
            )
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable(f"klines {symbol}", str(exc)) from exc

    async def ping(self) -> int:
        try:
            return await fetch_binance_server_time_async(
                self._client, self._limiter, self._base_url, self._headers
            )
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable("time", str(exc)) from exc
