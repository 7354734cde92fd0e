import pytest

from crypto_scanner.new_listings import (
    detect_new_listings,
    is_new_listing_candidate,
    new_listing_score,
)

from helpers import make_ticker


def _listing(symbol="NEWUSDT", **overrides):
    fields = dict(
        symbol=symbol,
        last_price=0.5,
        price_change_percent=5.0,
        quote_volume=100_000,
        trade_count=1_000,
    )
    fields.update(overrides)
    return make_ticker(**fields)


class TestEnvelope:
    def test_accepts_typical_candidate(self):
        assert is_new_listing_candidate(_listing())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"symbol": "BTCUSDT"},
            {"symbol": "NEWBTC"},
            {"quote_volume": 50_000},
            {"quote_volume": 10_000_000},
            {"trade_count": 500},
            {"trade_count": 100_000},
            {"price_change_percent": -50},
            {"price_change_percent": 200},
            {"last_price": 0.0},
        ],
    )
    def test_rejects_outside_envelope(self, overrides):
        assert not is_new_listing_candidate(_listing(**overrides))

    def test_custom_exclusion_set(self):
        assert not is_new_listing_candidate(_listing(), excluded={"NEWUSDT"})


class TestScore:
    def test_formula(self):
        # 1000/1000*20 + 100000/100000*15 + 5*2
        assert new_listing_score(_listing()) == pytest.approx(45.0)

    def test_big_move_bonus(self):
        # 20 + 15 + 24 + 20
        assert new_listing_score(_listing(price_change_percent=12)) == pytest.approx(79.0)

    def test_negative_change_adds_nothing(self):
        assert new_listing_score(_listing(price_change_percent=-20)) == pytest.approx(35.0)

    def test_capped(self):
        assert new_listing_score(_listing(trade_count=50_000)) == 100


class TestDetect:
    def test_sorted_by_score_and_filtered(self):
        tickers = [
            _listing("AAAUSDT"),
            _listing("BTCUSDT", trade_count=3_000),
            _listing("BBBUSDT", trade_count=2_000),
            _listing("CCCUSDT", quote_volume=20_000),
        ]
        result = detect_new_listings(tickers)
        assert [t.symbol for t, _ in result] == ["BBBUSDT", "AAAUSDT"]
        assert result[0][1] == pytest.approx(65.0)

    def test_ties_keep_input_order(self):
        tickers = [_listing("ZZZUSDT"), _listing("AAAUSDT")]
        assert [t.symbol for t, _ in detect_new_listings(tickers)] == ["ZZZUSDT", "AAAUSDT"]
