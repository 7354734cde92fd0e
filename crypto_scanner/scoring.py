"""
爆发潜力评分（0-100）。

每个因子按自己的阶梯表独立打分（同一因子只取命中的最高档），
再叠加动量奖励，最终截断到 100。
"""

from typing import Sequence, Tuple

from crypto_scanner.models import TechnicalIndicators, TickerSnapshot

MAX_SCORE = 100

# (阈值, 分数)，按阈值降序；取第一个 value > 阈值 的档位
PRICE_CHANGE_TIERS: Tuple[Tuple[float, int], ...] = (
    (25, 40),
    (20, 35),
    (15, 30),
    (10, 20),
    (5, 10),
)
QUOTE_VOLUME_TIERS: Tuple[Tuple[float, int], ...] = (
    (5_000_000, 25),
    (2_000_000, 20),
    (1_000_000, 15),
    (500_000, 10),
    (100_000, 5),
)
TRADE_COUNT_TIERS: Tuple[Tuple[float, int], ...] = (
    (50_000, 10),
    (20_000, 8),
    (10_000, 6),
    (5_000, 4),
    (1_000, 2),
)
VOLATILITY_TIERS: Tuple[Tuple[float, int], ...] = (
    (20, 15),
    (15, 12),
    (10, 8),
    (5, 5),
)

# (最小涨幅, 最小成交额, 奖励)
MOMENTUM_BONUSES: Tuple[Tuple[float, float, int], ...] = (
    (30, 1_000_000, 15),
    (50, 2_000_000, 20),
)


def tier_points(value: float, tiers: Sequence[Tuple[float, int]]) -> int:
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def rsi_points(rsi: float) -> int:
    if 30 < rsi < 70:
        return 10
    if rsi > 70:
        return 5
    return 0


def momentum_points(price_change: float, quote_volume: float) -> int:
    return sum(
        bonus
        for min_change, min_volume, bonus in MOMENTUM_BONUSES
        if price_change > min_change and quote_volume > min_volume
    )


def calculate_explosion_score(
    ticker: TickerSnapshot, technicals: TechnicalIndicators
) -> int:
    price_change = ticker.price_change_percent
    quote_volume = ticker.quote_volume

    score = (
        tier_points(price_change, PRICE_CHANGE_TIERS)
        + tier_points(quote_volume, QUOTE_VOLUME_TIERS)
        + tier_points(ticker.trade_count, TRADE_COUNT_TIERS)
        + tier_points(technicals.volatility, VOLATILITY_TIERS)
        + rsi_points(technicals.rsi)
        + momentum_points(price_change, quote_volume)
    )
    return max(0, min(score, MAX_SCORE))
