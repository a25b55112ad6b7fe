"""Wilder RSI with a bounded history of values for divergence checks."""

from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from signaldesk.marketdata.candle import Candle


RSI_HISTORY = 50


@dataclass
class RsiState:
    avg_gain: float = 0.0
    avg_loss: float = 0.0
    seeded: bool = False
    values: deque[float] = field(default_factory=lambda: deque(maxlen=RSI_HISTORY))


def rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def _wilder(avg: float, current: float, period: int) -> float:
    return (avg * (period - 1) + current) / period


def _seed_averages(deltas: list[float]) -> tuple[float, float]:
    values = np.array(deltas, dtype=np.float64)
    gains = values[values > 0]
    losses = -values[values < 0]
    return (
        float(gains.mean()) if gains.size else 0.0,
        float(losses.mean()) if losses.size else 0.0,
    )


class RelativeStrengthIndex:
    """
    RSI over candle closes.

    The first ``period`` close-to-close deltas seed the averages: average gain
    is the mean of the positive deltas, average loss the mean magnitude of the
    negative deltas (0 when there are none). Every later closed candle applies
    Wilder smoothing.
    """

    def __init__(self, period: int):
        self.period = period
        self.state = RsiState()
        self._prev_close: Optional[float] = None
        self._deltas: list[float] = []

    def commit(self, candle: Candle) -> None:
        if self._prev_close is None:
            self._prev_close = candle.close
            return

        delta = candle.close - self._prev_close
        self._prev_close = candle.close
        s = self.state

        if not s.seeded:
            self._deltas.append(delta)
            if len(self._deltas) < self.period:
                return
            s.avg_gain, s.avg_loss = _seed_averages(self._deltas)
            s.seeded = True
            self._deltas = []
        else:
            s.avg_gain = _wilder(s.avg_gain, max(0.0, delta), self.period)
            s.avg_loss = _wilder(s.avg_loss, max(0.0, -delta), self.period)

        s.values.append(rsi_from_averages(s.avg_gain, s.avg_loss))

    def peek(self, candle: Candle) -> Optional[float]:
        """
        Unrounded RSI including the live candle, or None before seeding.

        When the committed deltas are one short of a seed, the live delta
        completes it provisionally.
        """
        if self._prev_close is None:
            return None
        delta = candle.close - self._prev_close
        if not self.state.seeded:
            if len(self._deltas) != self.period - 1:
                return None
            return rsi_from_averages(*_seed_averages(self._deltas + [delta]))
        avg_gain = _wilder(self.state.avg_gain, max(0.0, delta), self.period)
        avg_loss = _wilder(self.state.avg_loss, max(0.0, -delta), self.period)
        return rsi_from_averages(avg_gain, avg_loss)
