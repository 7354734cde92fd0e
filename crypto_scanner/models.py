"""
扫描流程中流转的值对象。

所有对象构造后不可变；`to_dict()` 输出下游 HTTP 层使用的 camelCase JSON 结构。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class TickerSnapshot:
    symbol: str
    last_price: float
    price_change_percent: float
    volume: float
    quote_volume: float
    trade_count: int


@dataclass(frozen=True)
class Candle:
    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class PriceSeries:
    """单个 (symbol, interval, limit) 的收盘价序列，按时间正序。"""

    closes: Tuple[float, ...] = ()
    volumes: Tuple[float, ...] = ()

    @classmethod
    def from_candles(cls, candles) -> "PriceSeries":
        return cls(
            closes=tuple(c.close for c in candles),
            volumes=tuple(c.volume for c in candles),
        )

    def __len__(self) -> int:
        return len(self.closes)


class Trend(Enum):
    VERY_BEARISH = "VERY_BEARISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"
    BULLISH = "BULLISH"
    VERY_BULLISH = "VERY_BULLISH"


class Confidence(Enum):
    MUY_BAJA = "MUY BAJA"
    BAJA = "BAJA"
    MEDIA = "MEDIA"
    ALTA = "ALTA"
    MUY_ALTA = "MUY ALTA"
    EXTREMA = "EXTREMA"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_ORDER.index(self)


_CONFIDENCE_ORDER = (
    Confidence.MUY_BAJA,
    Confidence.BAJA,
    Confidence.MEDIA,
    Confidence.ALTA,
    Confidence.MUY_ALTA,
    Confidence.EXTREMA,
)


class Action(Enum):
    IMMEDIATE_BUY = "immediate buy"
    STRONG_BUY = "strong buy"
    MODERATE_BUY = "moderate buy"
    WATCH_CLOSELY = "watch closely"
    MONITOR = "monitor"
    AVOID = "avoid"
    OVERBOUGHT_CAUTION = "overbought - wait for pullback"

    @property
    def is_buy(self) -> bool:
        return self in (Action.IMMEDIATE_BUY, Action.STRONG_BUY, Action.MODERATE_BUY)


@dataclass(frozen=True)
class TechnicalIndicators:
    rsi: float
    volatility: float
    macd: float
    macd_signal: float
    macd_histogram: float
    trend: Trend
    support: float
    resistance: float
    volume_spike: float

    @classmethod
    def neutral(cls, current_price: float) -> "TechnicalIndicators":
        """历史数据不足时的中性默认值。"""
        return cls(
            rsi=50.0,
            volatility=0.0,
            macd=0.0,
            macd_signal=0.0,
            macd_histogram=0.0,
            trend=Trend.NEUTRAL,
            support=current_price,
            resistance=current_price,
            volume_spike=1.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rsi": self.rsi,
            "volatility": self.volatility,
            "macd": {
                "macd": self.macd,
                "signal": self.macd_signal,
                "histogram": self.macd_histogram,
            },
            "trend": self.trend.value,
            "support": self.support,
            "resistance": self.resistance,
            "volumeSpike": self.volume_spike,
        }


@dataclass(frozen=True)
class Recommendation:
    action: Action
    confidence: Confidence
    buy_price: float
    sell_target: float
    stop_loss: float
    time_frame: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "confidence": self.confidence.value,
            "buyPrice": self.buy_price,
            "sellTarget": self.sell_target,
            "stopLoss": self.stop_loss,
            "timeFrame": self.time_frame,
        }


@dataclass(frozen=True)
class CandidateResult:
    symbol: str
    price: float
    price_change_percent: float
    explosion_score: int
    technicals: TechnicalIndicators
    recommendation: Recommendation
    new_listing_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "symbol": self.symbol,
            "price": self.price,
            "priceChangePercent": self.price_change_percent,
            "explosionScore": self.explosion_score,
            "technicals": self.technicals.to_dict(),
            "recommendation": self.recommendation.to_dict(),
        }
        if self.new_listing_score is not None:
            data["newListingScore"] = self.new_listing_score
        return data
