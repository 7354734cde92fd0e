"""Tests for the explosion score."""
import pytest

from crypto_scanner.models import TechnicalIndicators
from crypto_scanner.scoring import (
    MAX_SCORE,
    calculate_explosion_score,
    momentum_points,
    rsi_points,
    tier_points,
    PRICE_CHANGE_TIERS,
    QUOTE_VOLUME_TIERS,
    TRADE_COUNT_TIERS,
    VOLATILITY_TIERS,
)

from helpers import make_ticker


def _technicals(rsi: float = 20.0, volatility: float = 0.0) -> TechnicalIndicators:
    base = TechnicalIndicators.neutral(1.0)
    return TechnicalIndicators(
        rsi=rsi,
        volatility=volatility,
        macd=base.macd,
        macd_signal=base.macd_signal,
        macd_histogram=base.macd_histogram,
        trend=base.trend,
        support=base.support,
        resistance=base.resistance,
        volume_spike=base.volume_spike,
    )


def _quiet_ticker(**overrides):
    fields = dict(price_change_percent=0.0, quote_volume=0.0, trade_count=0)
    fields.update(overrides)
    return make_ticker(**fields)


class TestTiers:
    @pytest.mark.parametrize(
        "change,points",
        [(26, 40), (25, 35), (21, 35), (16, 30), (11, 20), (6, 10), (5, 0), (-30, 0)],
    )
    def test_price_change(self, change, points):
        assert tier_points(change, PRICE_CHANGE_TIERS) == points

    @pytest.mark.parametrize(
        "volume,points",
        [(6e6, 25), (3e6, 20), (1.5e6, 15), (600e3, 10), (200e3, 5), (100e3, 0)],
    )
    def test_quote_volume(self, volume, points):
        assert tier_points(volume, QUOTE_VOLUME_TIERS) == points

    @pytest.mark.parametrize(
        "trades,points",
        [(60_000, 10), (30_000, 8), (15_000, 6), (6_000, 4), (2_000, 2), (1_000, 0)],
    )
    def test_trade_count(self, trades, points):
        assert tier_points(trades, TRADE_COUNT_TIERS) == points

    @pytest.mark.parametrize("vol,points", [(21, 15), (16, 12), (11, 8), (6, 5), (5, 0)])
    def test_volatility(self, vol, points):
        assert tier_points(vol, VOLATILITY_TIERS) == points

    @pytest.mark.parametrize("rsi,points", [(50, 10), (30, 0), (70, 0), (75, 5), (10, 0)])
    def test_rsi_band(self, rsi, points):
        assert rsi_points(rsi) == points

    def test_momentum_bonuses_stack(self):
        assert momentum_points(31, 1_500_000) == 15
        assert momentum_points(51, 2_500_000) == 35
        assert momentum_points(30, 10_000_000) == 0


class TestExplosionScore:
    def test_quiet_market_scores_zero(self):
        assert calculate_explosion_score(_quiet_ticker(), _technicals()) == 0

    def test_sum_of_factors(self):
        ticker = _quiet_ticker(price_change_percent=12, quote_volume=600_000, trade_count=6_000)
        # 20 + 10 + 4 + 8 (volatility) + 10 (rsi)
        assert calculate_explosion_score(ticker, _technicals(rsi=55, volatility=11)) == 52

    def test_capped_at_100(self):
        ticker = _quiet_ticker(price_change_percent=60, quote_volume=9e6, trade_count=90_000)
        assert calculate_explosion_score(ticker, _technicals(rsi=50, volatility=30)) == MAX_SCORE

    def test_top_tiers_without_bonus_reach_100(self):
        ticker = _quiet_ticker(price_change_percent=30, quote_volume=6e6, trade_count=60_000)
        assert calculate_explosion_score(ticker, _technicals(rsi=50, volatility=25)) == 100

    @pytest.mark.parametrize("field", ["price_change_percent", "quote_volume", "trade_count"])
    def test_monotonic(self, field):
        technicals = _technicals(rsi=45, volatility=7)
        values = [0, 3, 6, 12, 17, 22, 28, 35, 55, 150, 600, 1_200, 6_000, 12_000, 25_000,
                  60_000, 150_000, 600_000, 1_500_000, 3_000_000, 7_000_000]
        previous = -1
        for value in values:
            score = calculate_explosion_score(
                _quiet_ticker(
                    price_change_percent=40 if field != "price_change_percent" else value,
                    quote_volume=1_200_000 if field != "quote_volume" else value,
                    trade_count=8_000 if field != "trade_count" else value,
                ),
                technicals,
            )
            assert 0 <= score <= MAX_SCORE
            assert score >= previous
            previous = score
