"""On-balance volume and its moving-average cross classification."""

from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from signaldesk.marketdata.candle import Candle


OBV_HISTORY = 50
BUILDING_HISTORY = "Building History..."


@dataclass
class ObvState:
    current_obv: float = 0.0
    moving_average: float = 0.0
    values: deque[float] = field(default_factory=lambda: deque(maxlen=OBV_HISTORY))


def signed_volume(candle: Candle, prev_close: float) -> int:
    if candle.close > prev_close:
        return candle.volume
    if candle.close < prev_close:
        return -candle.volume
    return 0


class OnBalanceVolume:
    def __init__(self, ma_period: int):
        self.ma_period = ma_period
        self.state = ObvState()
        self._prev_close: Optional[float] = None

    def commit(self, candle: Candle) -> None:
        if self._prev_close is None:
            self._prev_close = candle.close
            return

        s = self.state
        s.current_obv += signed_volume(candle, self._prev_close)
        self._prev_close = candle.close
        s.values.append(s.current_obv)
        if self.ma_period > 0 and len(s.values) >= self.ma_period:
            s.moving_average = float(np.mean(list(s.values)[-self.ma_period:]))

    def peek(self, candle: Candle) -> Optional[float]:
        if self._prev_close is None:
            return None
        return self.state.current_obv + signed_volume(candle, self._prev_close)


def obv_signal(values: Sequence[float], period: int) -> tuple[str, float]:
    """
    Classify OBV against its simple moving average.

    Returns:
        (signal, current SMA); the SMA is 0 while history is short.
    """
    if period <= 0 or len(values) < period:
        return BUILDING_HISTORY, 0.0

    series = np.asarray(values, dtype=np.float64)
    current = series[-1]
    previous = series[-2] if len(series) > 1 else 0.0
    sma = float(series[-period:].mean())
    prior = series[:-1][-period:]
    previous_sma = float(prior.mean()) if prior.size else 0.0

    is_above = current > sma
    is_below = current < sma
    if is_above and previous < previous_sma:
        return "Bullish Cross", sma
    if is_below and previous > previous_sma:
        return "Bearish Cross", sma
    if is_above:
        return "Trending Up", sma
    if is_below:
        return "Trending Down", sma
    return "Neutral", sma
