"""
技术指标计算。

所有函数都是纯函数，输入为按时间正序排列的价格序列。
数据长度不足某个指标的窗口时返回该指标的中性默认值，而不是抛错。
"""

import math
from typing import Dict, Sequence, Tuple

from crypto_scanner.models import PriceSeries, TechnicalIndicators, Trend

MIN_POINTS_FOR_ANALYSIS = 20
MACD_FAST = 12
MACD_SLOW = 26
VOLATILITY_MIN_POINTS = 10
SR_WINDOW = 20
VOLUME_SPIKE_LOOKBACK = 20


def calculate_rsi(prices: Sequence[float], period: int = 14) -> float:
    """最近 period 个价格变动的平均涨幅 / 平均跌幅，结果保留两位小数。"""
    if period < 1 or len(prices) < period + 1:
        return 50.0

    window = prices[-(period + 1):]
    gains = 0.0
    losses = 0.0
    for i in range(1, len(window)):
        change = window[i] - window[i - 1]
        if change > 0:
            gains += change
        else:
            losses += -change

    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    rsi = 100 - (100 / (1 + rs))
    return round(min(max(rsi, 0.0), 100.0), 2)


def calculate_ema(prices: Sequence[float], period: int) -> float:
    """以第一个价格为种子，k = 2 / (period + 1) 逐个平滑。"""
    if not prices:
        return 0.0
    k = 2 / (period + 1)
    ema = prices[0]
    for price in prices[1:]:
        ema = price * k + ema * (1 - k)
    return ema


def calculate_macd(prices: Sequence[float]) -> Dict[str, float]:
    # 信号线固定为 0，histogram 与 macd 相同
    if len(prices) < MACD_SLOW:
        return {"macd": 0.0, "signal": 0.0, "histogram": 0.0}
    macd = round(calculate_ema(prices, MACD_FAST) - calculate_ema(prices, MACD_SLOW), 8)
    return {"macd": macd, "signal": 0.0, "histogram": macd}


def calculate_volatility(prices: Sequence[float]) -> float:
    """逐期简单收益率的标准差（百分比），保留两位小数。"""
    if len(prices) < VOLATILITY_MIN_POINTS:
        return 0.0

    returns = [
        (prices[i] - prices[i - 1]) / prices[i - 1]
        for i in range(1, len(prices))
        if prices[i - 1] != 0
    ]
    if not returns:
        return 0.0

    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    return round(math.sqrt(variance) * 100, 2)


def calculate_support_resistance(
    prices: Sequence[float], current_price: float
) -> Tuple[float, float]:
    """
    取最近 20 个价格计算支撑/阻力，并用当前价的 -5% / +15% 作为边界，
    避免历史极值离现价太远。
    """
    window = prices[-SR_WINDOW:]
    if not window:
        return current_price, current_price
    support = max(min(window) * 0.98, current_price * 0.95)
    resistance = min(max(window) * 1.02, current_price * 1.15)
    return round(support, 8), round(resistance, 8)


def _window_ratio(prices: Sequence[float], size: int) -> float:
    window = prices[-size:]
    if len(window) < 2 or window[0] == 0:
        return 1.0
    return window[-1] / window[0]


def classify_trend(prices: Sequence[float]) -> Trend:
    short_trend = _window_ratio(prices, 5)
    mid_trend = _window_ratio(prices, 10)

    # 顺序敏感：先命中先返回
    if short_trend > 1.10:
        return Trend.VERY_BULLISH
    if short_trend > 1.05 and mid_trend > 1.02:
        return Trend.BULLISH
    if short_trend < 0.90:
        return Trend.VERY_BEARISH
    if short_trend < 0.95 and mid_trend < 0.98:
        return Trend.BEARISH
    return Trend.NEUTRAL


def calculate_volume_spike(volumes: Sequence[float]) -> float:
    """最后一根 K 线成交量相对之前（最多 20 根）均量的倍数，最低为 1。"""
    if len(volumes) < 2:
        return 1.0
    previous = volumes[-VOLUME_SPIKE_LOOKBACK - 1:-1]
    avg_volume = sum(previous) / len(previous)
    if avg_volume <= 0:
        return 1.0
    return round(max(volumes[-1] / avg_volume, 1.0), 1)


def calculate_technicals(series: PriceSeries, current_price: float) -> TechnicalIndicators:
    """汇总全部指标；少于 20 个数据点时直接返回中性结果。"""
    prices = series.closes
    if len(prices) < MIN_POINTS_FOR_ANALYSIS:
        return TechnicalIndicators.neutral(current_price)

    macd = calculate_macd(prices)
    support, resistance = calculate_support_resistance(prices, current_price)
    return TechnicalIndicators(
        rsi=calculate_rsi(prices),
        volatility=calculate_volatility(prices),
        macd=macd["macd"],
        macd_signal=macd["signal"],
        macd_histogram=macd["histogram"],
        trend=classify_trend(prices),
        support=support,
        resistance=resistance,
        volume_spike=calculate_volume_spike(series.volumes),
    )
