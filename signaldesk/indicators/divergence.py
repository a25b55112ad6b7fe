"""Swing-point divergence between price and an oscillator."""

from typing import Sequence

import numpy as np


SWING_WINDOW = 3

BEARISH_DIVERGENCE = "Bearish Divergence"
BULLISH_DIVERGENCE = "Bullish Divergence"


def find_swing_points(
    prices: Sequence[float],
    indicator: Sequence[float],
    *,
    is_high: bool,
    window: int = SWING_WINDOW,
) -> list[tuple[float, float]]:
    """
    Return the last two swing points as (price, indicator) pairs, oldest first.

    A bar is a swing high when its price is >= the price of each of the
    ``window`` bars on both sides (swing low: <=). Bars too close to either
    edge are never swings.
    """
    p = np.asarray(prices, dtype=np.float64)
    swings: list[tuple[float, float]] = []
    for i in range(window, len(p) - window):
        neighbours = np.concatenate((p[i - window:i], p[i + 1:i + 1 + window]))
        if is_high:
            is_swing = bool(np.all(p[i] >= neighbours))
        else:
            is_swing = bool(np.all(p[i] <= neighbours))
        if is_swing:
            swings.append((float(p[i]), float(indicator[i])))
    return swings[-2:]


def detect_divergence(
    highs: Sequence[float],
    lows: Sequence[float],
    indicator: Sequence[float],
    lookback: int,
) -> str:
    """
    Compare the two most recent swings of price and indicator.

    Arrays must be aligned bar-for-bar (oldest first). Bearish: price makes a
    higher swing high while the indicator makes a lower one. Bullish: price
    makes a lower swing low while the indicator makes a higher one.
    """
    if lookback <= 0 or len(highs) < lookback or len(indicator) < lookback:
        return "N/A"

    h = list(highs)[-lookback:]
    lo = list(lows)[-lookback:]
    ind = list(indicator)[-lookback:]

    swing_highs = find_swing_points(h, ind, is_high=True)
    if len(swing_highs) == 2:
        (older_price, older_ind), (newer_price, newer_ind) = swing_highs
        if newer_price > older_price and newer_ind < older_ind:
            return BEARISH_DIVERGENCE

    swing_lows = find_swing_points(lo, ind, is_high=False)
    if len(swing_lows) == 2:
        (older_price, older_ind), (newer_price, newer_ind) = swing_lows
        if newer_price < older_price and newer_ind > older_ind:
            return BULLISH_DIVERGENCE

    return "Neutral"
