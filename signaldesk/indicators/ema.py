"""Exponential moving average pair and its cross signal."""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from signaldesk.marketdata.candle import Candle


BULLISH_CROSS = "Bullish Cross"
BEARISH_CROSS = "Bearish Cross"
NEUTRAL = "Neutral"


@dataclass
class EmaState:
    """Current short/long EMA; None until seeded."""
    short_ema: Optional[float] = None
    long_ema: Optional[float] = None

    @property
    def seeded(self) -> bool:
        return self.short_ema is not None and self.long_ema is not None


def ema_step(value: float, previous: float, period: int) -> float:
    multiplier = 2.0 / (period + 1)
    return (value - previous) * multiplier + previous


def ema_cross_signal(short_ema: float, long_ema: float) -> str:
    if short_ema > long_ema:
        return BULLISH_CROSS
    if short_ema < long_ema:
        return BEARISH_CROSS
    return NEUTRAL


def _close(candle: Candle) -> float:
    return candle.close


def _vwap(candle: Candle) -> float:
    return candle.vwap


class EmaPair:
    """
    Short/long EMA over one price source of a candle series.

    Seeded once, from the first ``long_period`` closed candles (short EMA from
    the latest ``short_period`` of them, long EMA from all), then advanced by
    the standard recurrence once per closed candle.
    """

    SOURCES: dict[str, Callable[[Candle], float]] = {"close": _close, "vwap": _vwap}

    def __init__(self, short_period: int, long_period: int, source: str = "close"):
        if source not in self.SOURCES:
            raise ValueError(f"Unknown EMA source: {source!r}")
        self.short_period = short_period
        self.long_period = long_period
        self.source = source
        self._price = self.SOURCES[source]
        self.state = EmaState()
        self._warmup: deque[float] = deque(maxlen=long_period)

    def commit(self, candle: Candle) -> None:
        price = self._price(candle)
        if not self.state.seeded:
            self._warmup.append(price)
            if len(self._warmup) == self.long_period:
                self.state.short_ema, self.state.long_ema = self._seed(list(self._warmup))
                self._warmup.clear()
            return

        self.state.short_ema = ema_step(price, self.state.short_ema, self.short_period)
        self.state.long_ema = ema_step(price, self.state.long_ema, self.long_period)

    def _seed(self, prices: list[float]) -> tuple[float, float]:
        window = np.array(prices, dtype=np.float64)
        return float(window[-self.short_period:].mean()), float(window.mean())

    def peek(self, candle: Candle) -> Optional[tuple[float, float]]:
        """
        Provisional (short, long) including the live candle.

        One closed price short of a seed, the live candle completes the
        warm-up window; earlier than that there is nothing to report.
        """
        price = self._price(candle)
        if not self.state.seeded:
            if len(self._warmup) != self.long_period - 1:
                return None
            return self._seed(list(self._warmup) + [price])
        return (
            ema_step(price, self.state.short_ema, self.short_period),
            ema_step(price, self.state.long_ema, self.long_period),
        )
