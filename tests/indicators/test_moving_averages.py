"""Tests for the EMA pair, RSI and ATR recurrences."""

import pytest

from signaldesk.indicators.atr import AverageTrueRange, atr_signal, true_range
from signaldesk.indicators.ema import EmaPair, ema_cross_signal, ema_step
from signaldesk.indicators.rsi import RelativeStrengthIndex, rsi_from_averages


def _closes(candle_factory, closes):
    return [candle_factory(m, c, c + 1, c - 1, c) for m, c in enumerate(closes)]


# ---------------------------------------------------------------------------
# EMA
# ---------------------------------------------------------------------------

class TestEma:

    def test_step_recurrence(self):
        assert ema_step(6.0, 4.0, 3) == pytest.approx(5.0)

    @pytest.mark.parametrize(
        "short,long,expected",
        [(2.0, 1.0, "Bullish Cross"), (1.0, 2.0, "Bearish Cross"), (1.5, 1.5, "Neutral")],
    )
    def test_cross_signal_is_strict(self, short, long, expected):
        assert ema_cross_signal(short, long) == expected

    def test_seeds_from_simple_averages(self, candle_factory):
        pair = EmaPair(3, 5)
        candles = _closes(candle_factory, [1, 2, 3, 4, 5])
        for candle in candles[:4]:
            assert pair.peek(candle) is None
            pair.commit(candle)
        pair.commit(candles[4])

        assert pair.state.short_ema == pytest.approx(4.0)
        assert pair.state.long_ema == pytest.approx(3.0)

    def test_live_candle_completes_the_seed(self, candle_factory):
        pair = EmaPair(3, 5)
        candles = _closes(candle_factory, [1, 2, 3, 4, 5])
        for candle in candles[:4]:
            pair.commit(candle)

        assert pair.peek(candles[4]) == pytest.approx((4.0, 3.0))
        assert pair.peek(candles[4]) == pytest.approx((4.0, 3.0))
        assert not pair.state.seeded

    def test_peek_does_not_mutate(self, candle_factory):
        pair = EmaPair(3, 5)
        candles = _closes(candle_factory, [1, 2, 3, 4, 5, 6])
        for candle in candles[:5]:
            pair.commit(candle)

        assert pair.peek(candles[5]) == pytest.approx((5.0, 4.0))
        assert pair.peek(candles[5]) == pytest.approx((5.0, 4.0))
        assert pair.state.short_ema == pytest.approx(4.0)

        pair.commit(candles[5])
        assert (pair.state.short_ema, pair.state.long_ema) == pytest.approx((5.0, 4.0))

    def test_vwap_source(self, candle_factory):
        pair = EmaPair(1, 2, source="vwap")
        c1, c2 = _closes(candle_factory, [10, 20])
        c1.vwap, c2.vwap = 1.0, 3.0
        pair.commit(c1)
        pair.commit(c2)
        assert pair.state.long_ema == pytest.approx(2.0)

    def test_unknown_source_raises(self):
        with pytest.raises(ValueError):
            EmaPair(3, 5, source="open")


# ---------------------------------------------------------------------------
# RSI
# ---------------------------------------------------------------------------

class TestRsi:

    def test_no_losses_is_100(self):
        assert rsi_from_averages(1.0, 0.0) == pytest.approx(100.0)

    def test_seed_uses_mean_of_positive_and_negative_deltas(self, candle_factory):
        rsi = RelativeStrengthIndex(3)
        for candle in _closes(candle_factory, [10, 11, 10, 12]):
            rsi.commit(candle)

        # gains [1, 2] -> 1.5; losses [1] -> 1.0
        assert rsi.state.avg_gain == pytest.approx(1.5)
        assert rsi.state.avg_loss == pytest.approx(1.0)
        assert rsi.state.values[-1] == pytest.approx(60.0)

    def test_wilder_smoothing_after_seed(self, candle_factory):
        rsi = RelativeStrengthIndex(3)
        candles = _closes(candle_factory, [10, 11, 10, 12, 11])
        for candle in candles[:4]:
            rsi.commit(candle)

        assert rsi.peek(candles[4]) == pytest.approx(50.0)
        rsi.commit(candles[4])
        assert rsi.state.avg_gain == pytest.approx(1.0)
        assert rsi.state.avg_loss == pytest.approx(1.0)
        assert rsi.state.values[-1] == pytest.approx(50.0)

    def test_live_delta_completes_the_seed(self, candle_factory):
        rsi = RelativeStrengthIndex(3)
        candles = _closes(candle_factory, [10, 11, 10, 12])
        for candle in candles[:3]:
            rsi.commit(candle)

        # deltas [1, -1] committed, live +2: gains 1.5, losses 1.0
        assert rsi.peek(candles[3]) == pytest.approx(60.0)
        assert not rsi.state.seeded
        assert len(rsi.state.values) == 0

    def test_not_seeded_until_period_deltas(self, candle_factory):
        rsi = RelativeStrengthIndex(14)
        for candle in _closes(candle_factory, range(10)):
            rsi.commit(candle)
        assert not rsi.state.seeded
        assert rsi.peek(_closes(candle_factory, [20])[0]) is None

    def test_values_stay_in_bounds(self, candle_factory):
        closes = [100 + ((i * 7) % 11) - 5 + (i % 3) * 0.5 for i in range(80)]
        rsi = RelativeStrengthIndex(5)
        for candle in _closes(candle_factory, closes):
            rsi.commit(candle)
            live = rsi.peek(candle)
            if live is not None:
                assert 0.0 <= live <= 100.0

        assert len(rsi.state.values) == 50
        assert all(0.0 <= v <= 100.0 for v in rsi.state.values)


# ---------------------------------------------------------------------------
# ATR
# ---------------------------------------------------------------------------

class TestAtr:

    def test_true_range_uses_previous_close(self, candle_factory):
        gap_up = candle_factory(0, 110, 112, 109, 111)
        assert true_range(gap_up, prev_close=100) == pytest.approx(12.0)

    def test_seed_then_wilder(self, candle_factory):
        atr = AverageTrueRange(2)
        candles = [
            candle_factory(0, 9, 10, 8, 9),
            candle_factory(1, 9, 11, 9, 10),
            candle_factory(2, 10, 13, 10, 12),
            candle_factory(3, 12, 12, 11, 11.5),
        ]
        for candle in candles[:3]:
            atr.commit(candle)
        assert atr.state.current_atr == pytest.approx(2.5)

        assert atr.peek(candles[3]) == pytest.approx(1.75)
        atr.commit(candles[3])
        assert list(atr.state.values) == pytest.approx([2.5, 1.75])

    def test_peek_before_seed_averages_available_ranges(self, candle_factory):
        atr = AverageTrueRange(3)
        candles = _closes(candle_factory, [10, 11, 14])
        assert atr.peek(candles[0]) is None
        for candle in candles[:2]:
            atr.commit(candle)

        # committed TR 2, live TR 4
        assert atr.peek(candles[2]) == pytest.approx(3.0)
        assert not atr.state.seeded

    @pytest.mark.parametrize(
        "values,expected",
        [
            ([2, 2, 2, 1, 3], "Vol Expanding"),
            ([1, 1, 1, 2, 0.5], "Vol Contracting"),
            ([1, 1, 1, 1, 2], "High Vol"),
            ([2, 2, 2, 1, 1], "Low Vol"),
            ([1, 2], "N/A"),
        ],
    )
    def test_signal(self, values, expected):
        assert atr_signal(values, 3) == expected
