from typing import NamedTuple, Tuple

from crypto_scanner.models import Action, Confidence, Recommendation

OVERBOUGHT_RSI = 80


class Tier(NamedTuple):
    min_score: int
    action: Action
    confidence: Confidence
    target_pct: float
    stop_pct: float
    time_frame: str


# 按 min_score 降序，取第一个满足 score >= min_score 的档位
TIERS: Tuple[Tier, ...] = (
    Tier(85, Action.IMMEDIATE_BUY, Confidence.EXTREMA, 0.35, 0.12, "1-4h"),
    Tier(75, Action.STRONG_BUY, Confidence.MUY_ALTA, 0.25, 0.10, "2-6h"),
    Tier(65, Action.MODERATE_BUY, Confidence.ALTA, 0.18, 0.08, "4-12h"),
    Tier(50, Action.WATCH_CLOSELY, Confidence.MEDIA, 0.12, 0.06, "6-24h"),
    Tier(35, Action.MONITOR, Confidence.BAJA, 0.08, 0.04, "12-48h"),
)
FALLBACK_TIER = Tier(0, Action.AVOID, Confidence.MUY_BAJA, 0.05, 0.03, "N/A")


def select_tier(score: int) -> Tier:
    for tier in TIERS:
        if score >= tier.min_score:
            return tier
    return FALLBACK_TIER


def generate_recommendation(price: float, score: int, rsi: float) -> Recommendation:
    """根据评分映射操作建议；RSI 超过 80 时把买入类建议降级为超买观望。"""
    tier = select_tier(score)
    action = tier.action
    confidence = tier.confidence

    if rsi > OVERBOUGHT_RSI:
        if action.is_buy:
            action = Action.OVERBOUGHT_CAUTION
        if confidence is Confidence.EXTREMA:
            confidence = Confidence.ALTA

    return Recommendation(
        action=action,
        confidence=confidence,
        buy_price=price,
        sell_target=round(price * (1 + tier.target_pct), 8),
        stop_loss=round(price * (1 - tier.stop_pct), 8),
        time_frame=tier.time_frame,
    )
