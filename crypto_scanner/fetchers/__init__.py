from .binance import (
    BinanceMarketData,
    fetch_binance_24hr_tickers_async,
    fetch_binance_klines_async,
    fetch_binance_server_time_async,
)

__all__ = [
    "BinanceMarketData",
    "fetch_binance_24hr_tickers_async",
    "fetch_binance_klines_async",
    "fetch_binance_server_time_async",
]
