from typing import Dict, Iterable, List, Optional

from crypto_scanner.errors import UpstreamUnavailable
from crypto_scanner.models import Candle, TickerSnapshot


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_ticker(
    symbol: str = "ABCUSDT",
    last_price: float = 150.0,
    price_change_percent: float = 10.0,
    volume: float = 1_000_000,
    quote_volume: float = 1_000_000,
    trade_count: int = 10_000,
) -> TickerSnapshot:
    return TickerSnapshot(
        symbol=symbol,
        last_price=last_price,
        price_change_percent=price_change_percent,
        volume=volume,
        quote_volume=quote_volume,
        trade_count=trade_count,
    )


def make_candles(closes: Iterable[float], volume: float = 10.0) -> List[Candle]:
    return [
        Candle(open_time=i * 3_600_000, open=c, high=c, low=c, close=c, volume=volume)
        for i, c in enumerate(closes)
    ]


def alternating_prices(n: int = 50, low: float = 100.0, high: float = 150.0) -> List[float]:
    """低/高交替的价格：波动率很高，且最近 14 个变动涨跌相等（RSI = 50）。"""
    return [low if i % 2 == 0 else high for i in range(n)]


class FakeProvider:
    def __init__(
        self,
        tickers: List[TickerSnapshot],
        closes: Optional[Dict[str, List[float]]] = None,
        failing_symbols: Iterable[str] = (),
    ) -> None:
        self.tickers = tickers
        self.closes = closes or {}
        self.failing_symbols = set(failing_symbols)
        self.ticker_error: Optional[Exception] = None
        self.ping_error: Optional[Exception] = None
        self.ticker_calls = 0
        self.kline_calls: List[str] = []

    async def get_ticker_24h(self) -> List[TickerSnapshot]:
        self.ticker_calls += 1
        if self.ticker_error is not None:
            raise self.ticker_error
        return list(self.tickers)

    async def get_klines(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        self.kline_calls.append(symbol)
        if symbol in self.failing_symbols:
            raise UpstreamUnavailable(f"klines {symbol}", "timeout")
        return make_candles(self.closes.get(symbol, alternating_prices())[-limit:])

    async def ping(self) -> int:
        if self.ping_error is not None:
            raise self.ping_error
        return 1_700_000_000_000


