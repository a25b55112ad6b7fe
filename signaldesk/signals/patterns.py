"""Single and multi-candle pattern recognition."""

from typing import Sequence

from signaldesk.marketdata.candle import Candle


VOLUME_CONFIRMATION_RATIO = 0.2
MARUBOZU_BODY_RATIO = 0.95
DOJI_BODY_RATIO = 0.1


def volume_confirmation(current: Candle, previous: Candle) -> str:
    """Suffix noting a volume expansion of more than 20% over *previous*."""
    if previous.volume > 0:
        change = (current.volume - previous.volume) / previous.volume
        if change > VOLUME_CONFIRMATION_RATIO:
            return f" (+{change:.0%} Vol)"
    return ""


def _three_candle_pattern(c3: Candle, c2: Candle, c1: Candle) -> str | None:
    """c1 is the latest candle, c3 the oldest."""
    if c3.is_bearish and max(c2.open, c2.close) < c3.close and c1.is_bullish and c1.close > (c3.open + c3.close) / 2:
        return "Morning Star"
    if c3.is_bullish and min(c2.open, c2.close) > c3.close and c1.is_bearish and c1.close < (c3.open + c3.close) / 2:
        return "Evening Star"
    if (
        c3.is_bullish and c2.is_bullish and c1.is_bullish
        and c2.open > c3.open and c2.close > c3.close
        and c1.open > c2.open and c1.close > c2.close
    ):
        return "Three White Soldiers"
    if (
        c3.is_bearish and c2.is_bearish and c1.is_bearish
        and c2.open < c3.open and c2.close < c3.close
        and c1.open < c2.open and c1.close < c2.close
    ):
        return "Three Black Crows"
    return None


def _engulfing(previous: Candle, current: Candle) -> str | None:
    if current.is_bullish and previous.is_bearish and current.close > previous.open and current.open < previous.close:
        return "Bullish Engulfing"
    if current.is_bearish and previous.is_bullish and current.open > previous.close and current.close < previous.open:
        return "Bearish Engulfing"
    return None


def _single_candle(candle: Candle) -> str | None:
    if candle.range <= 0:
        return None
    ratio = candle.body / candle.range
    if ratio > MARUBOZU_BODY_RATIO:
        if candle.is_bullish:
            return "Bullish Marubozu"
        if candle.is_bearish:
            return "Bearish Marubozu"
    if ratio < DOJI_BODY_RATIO:
        return "Doji"
    return None


def recognize_candlestick_pattern(candles: Sequence[Candle]) -> str:
    """
    Most significant pattern ending at the latest candle.

    Three-candle patterns win over two-candle ones, which win over single
    candle shapes. A volume note is appended when the latest candle traded
    over 20% more than the one before it.
    """
    if not candles:
        return "N/A"

    current = candles[-1]
    vol_info = volume_confirmation(current, candles[-2]) if len(candles) > 1 else ""

    pattern = None
    if len(candles) >= 3:
        pattern = _three_candle_pattern(candles[-3], candles[-2], current)
    if pattern is None and len(candles) >= 2:
        pattern = _engulfing(candles[-2], current)
    if pattern is None:
        pattern = _single_candle(current)

    return f"{pattern}{vol_info}" if pattern else "N/A"
