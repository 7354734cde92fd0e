"""
新上币启发式识别。

交易所没有直接提供上币时间，这里用成交额、成交笔数和涨跌幅的区间
排除“死币”和已经很成熟的大币，剩下的按 new_listing_score 排序。
"""

from typing import Iterable, List, Tuple

from crypto_scanner.config import POPULAR_TOKENS, QUOTE_ASSET
from crypto_scanner.models import TickerSnapshot

MIN_QUOTE_VOLUME = 50_000
MAX_QUOTE_VOLUME = 10_000_000
MIN_TRADES = 500
MAX_TRADES = 100_000
MIN_PRICE_CHANGE = -50
MAX_PRICE_CHANGE = 200


def is_new_listing_candidate(
    ticker: TickerSnapshot,
    excluded: Iterable[str] = POPULAR_TOKENS,
    quote_asset: str = QUOTE_ASSET,
) -> bool:
    return (
        ticker.symbol not in excluded
        and ticker.symbol.endswith(quote_asset)
        and MIN_QUOTE_VOLUME < ticker.quote_volume < MAX_QUOTE_VOLUME
        and MIN_TRADES < ticker.trade_count < MAX_TRADES
        and MIN_PRICE_CHANGE < ticker.price_change_percent < MAX_PRICE_CHANGE
        and ticker.last_price > 0
    )


def new_listing_score(ticker: TickerSnapshot) -> float:
    change = ticker.price_change_percent
    score = (
        ticker.trade_count / 1000 * 20
        + ticker.quote_volume / 100_000 * 15
        + (change * 2 if change > 0 else 0)
        + (20 if change > 10 else 0)
    )
    return round(min(score, 100), 2)


def detect_new_listings(
    tickers: Iterable[TickerSnapshot],
    excluded: Iterable[str] = POPULAR_TOKENS,
    quote_asset: str = QUOTE_ASSET,
) -> List[Tuple[TickerSnapshot, float]]:
    """返回 (ticker, new_listing_score) 列表，按分数降序；同分保持原顺序。"""
    excluded = frozenset(excluded)
    scored = [
        (ticker, new_listing_score(ticker))
        for ticker in tickers
        if is_new_listing_candidate(ticker, excluded, quote_asset)
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored
