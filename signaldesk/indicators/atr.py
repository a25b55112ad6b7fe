"""Wilder ATR and the volatility regime signal derived from it."""

from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from signaldesk.marketdata.candle import Candle


ATR_HISTORY = 20


@dataclass
class AtrState:
    current_atr: float = 0.0
    seeded: bool = False
    values: deque[float] = field(default_factory=lambda: deque(maxlen=ATR_HISTORY))


def true_range(candle: Candle, prev_close: float) -> float:
    return max(
        candle.high - candle.low,
        abs(candle.high - prev_close),
        abs(candle.low - prev_close),
    )


class AverageTrueRange:
    """ATR seeded from the mean of the first ``period`` true ranges."""

    def __init__(self, period: int):
        self.period = period
        self.state = AtrState()
        self._prev_close: Optional[float] = None
        self._ranges: list[float] = []

    def commit(self, candle: Candle) -> None:
        if self._prev_close is None:
            self._prev_close = candle.close
            return

        tr = true_range(candle, self._prev_close)
        self._prev_close = candle.close
        s = self.state

        if not s.seeded:
            self._ranges.append(tr)
            if len(self._ranges) < self.period:
                return
            s.current_atr = float(np.mean(self._ranges))
            s.seeded = True
            self._ranges = []
        else:
            s.current_atr = (s.current_atr * (self.period - 1) + tr) / self.period

        s.values.append(s.current_atr)

    def peek(self, candle: Candle) -> Optional[float]:
        """
        Provisional ATR including the live candle.

        Before the seed the live true range joins the committed ones and
        their mean is reported; callers decide how many candles are enough.
        """
        if self._prev_close is None:
            return None
        tr = true_range(candle, self._prev_close)
        if not self.state.seeded:
            return float(np.mean(self._ranges + [tr]))
        return (self.state.current_atr * (self.period - 1) + tr) / self.period


def atr_signal(values: Sequence[float], sma_period: int) -> str:
    """
    Classify volatility by comparing ATR against its own SMA.

    Args:
        values: ATR series, oldest first, the last element being current.
        sma_period: Window of the ATR moving average.
    """
    if sma_period <= 0 or len(values) < sma_period:
        return "N/A"

    series = np.asarray(values, dtype=np.float64)
    current = series[-1]
    sma = series[-sma_period:].mean()
    previous = series[-2] if len(series) > 1 else 0.0
    previous_sma = series[:-1][-sma_period:].mean() if len(series) > sma_period else 0.0

    if current > sma and previous < previous_sma:
        return "Vol Expanding"
    if current < sma and previous > previous_sma:
        return "Vol Contracting"
    return "High Vol" if current > sma else "Low Vol"
