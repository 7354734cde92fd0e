import pytest

from crypto_scanner.models import Action, Confidence
from crypto_scanner.recommendation import generate_recommendation, select_tier


class TestTierMapping:
    @pytest.mark.parametrize(
        "score,action,confidence",
        [
            (100, Action.IMMEDIATE_BUY, Confidence.EXTREMA),
            (85, Action.IMMEDIATE_BUY, Confidence.EXTREMA),
            (84, Action.STRONG_BUY, Confidence.MUY_ALTA),
            (75, Action.STRONG_BUY, Confidence.MUY_ALTA),
            (74, Action.MODERATE_BUY, Confidence.ALTA),
            (65, Action.MODERATE_BUY, Confidence.ALTA),
            (64, Action.WATCH_CLOSELY, Confidence.MEDIA),
            (50, Action.WATCH_CLOSELY, Confidence.MEDIA),
            (49, Action.MONITOR, Confidence.BAJA),
            (35, Action.MONITOR, Confidence.BAJA),
            (34, Action.AVOID, Confidence.MUY_BAJA),
            (0, Action.AVOID, Confidence.MUY_BAJA),
        ],
    )
    def test_boundaries(self, score, action, confidence):
        rec = generate_recommendation(10.0, score, rsi=50)
        assert rec.action is action
        assert rec.confidence is confidence

    def test_price_targets(self):
        rec = generate_recommendation(100.0, 90, rsi=50)
        assert rec.buy_price == 100.0
        assert rec.sell_target == pytest.approx(135.0)
        assert rec.stop_loss == pytest.approx(88.0)
        assert rec.time_frame == "1-4h"

    def test_avoid_has_no_time_frame(self):
        rec = generate_recommendation(2.0, 10, rsi=50)
        assert rec.time_frame == "N/A"
        assert rec.sell_target == pytest.approx(2.1)
        assert rec.stop_loss == pytest.approx(1.94)

    def test_select_tier_is_ordered(self):
        thresholds = [select_tier(s).min_score for s in range(100, -1, -1)]
        assert thresholds == sorted(thresholds, reverse=True)


class TestOverboughtOverride:
    def test_extreme_buy_is_downgraded(self):
        rec = generate_recommendation(1.0, 90, rsi=85)
        assert rec.action is Action.OVERBOUGHT_CAUTION
        assert rec.confidence is Confidence.ALTA

    def test_other_confidences_unchanged(self):
        rec = generate_recommendation(1.0, 80, rsi=85)
        assert rec.action is Action.OVERBOUGHT_CAUTION
        assert rec.confidence is Confidence.MUY_ALTA

    def test_non_buy_actions_untouched(self):
        rec = generate_recommendation(1.0, 40, rsi=95)
        assert rec.action is Action.MONITOR
        assert rec.confidence is Confidence.BAJA

    def test_threshold_is_exclusive(self):
        rec = generate_recommendation(1.0, 90, rsi=80)
        assert rec.action is Action.IMMEDIATE_BUY
        assert rec.confidence is Confidence.EXTREMA

    def test_targets_follow_original_tier(self):
        rec = generate_recommendation(100.0, 90, rsi=85)
        assert rec.sell_target == pytest.approx(135.0)
        assert rec.buy_price == 100.0

    @pytest.mark.parametrize("score", [0, 40, 55, 70, 80, 90, 100])
    def test_override_never_raises_confidence(self, score):
        plain = generate_recommendation(1.0, score, rsi=50)
        hot = generate_recommendation(1.0, score, rsi=95)
        assert hot.confidence.rank <= plain.confidence.rank


def test_confidence_ordering():
    ranks = [c.rank for c in Confidence]
    assert ranks == sorted(ranks)
    assert Confidence.EXTREMA.rank > Confidence.MUY_ALTA.rank > Confidence.ALTA.rank
