"""Implied-volatility rank, in-day percentile and trend per option bucket."""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

import numpy as np

from signaldesk.marketdata.instrument import InstrumentInfo, Tick
from signaldesk.providers.base import IvRangeStore

log = logging.getLogger(__name__)


MONEYNESS_STEP = 50
IV_PERCENTILE_HISTORY = 10
MIN_TREND_HISTORY = 5
MIN_SPIKE_HISTORY = 2
BUILDING_HISTORY = "Building History..."


@dataclass
class IntradayIvState:
    day_high_iv: float = 0.0
    day_low_iv: float = math.inf
    percentile_history: deque[float] = field(
        default_factory=lambda: deque(maxlen=IV_PERCENTILE_HISTORY)
    )

    def observe(self, iv: float) -> None:
        self.day_high_iv = max(self.day_high_iv, iv)
        self.day_low_iv = min(self.day_low_iv, iv)


@dataclass(frozen=True)
class IvReading:
    key: str
    iv_rank: float
    iv_percentile: float
    trend_signal: str


def moneyness_bucket(strike: float, underlying_price: float, step: int = MONEYNESS_STEP) -> str:
    """'ATM', 'ATM+n' or 'ATM-n' by strike distance in *step* increments."""
    distance = int(round((strike - underlying_price) / step))
    if distance == 0:
        return "ATM"
    if distance > 0:
        return f"ATM+{distance}"
    return f"ATM{distance}"


def iv_bucket_key(tick: Tick, info: Optional[InstrumentInfo]) -> Optional[str]:
    """
    Key grouping comparable options across strikes, e.g. 'NIFTY_ATM+1_CE'.

    Returns None when the underlying or strike cannot be resolved.
    """
    underlying = tick.underlying_symbol or (info.underlying_symbol if info else "")
    if not underlying or info is None or info.strike_price <= 0:
        return None
    moneyness = moneyness_bucket(info.strike_price, tick.underlying_price)
    return f"{underlying}_{moneyness}_{info.option_type}"


def position_in_range(value: float, high: float, low: float) -> float:
    span = high - low
    if span <= 0 or not math.isfinite(span):
        return 0.0
    return (value - low) / span * 100


def iv_trend_signal(history: Sequence[float], iv_rank: float) -> str:
    """
    Classify the recent path of the in-day IV percentile.

    Args:
        history: Percentile history, oldest first, latest last.
        iv_rank: Current 90-day IV rank.
    """
    if len(history) < MIN_TREND_HISTORY:
        return BUILDING_HISTORY

    series = np.asarray(history, dtype=np.float64)
    latest = series[-1]
    previous = series[-2]
    avg5 = series[-5:].mean()
    avg10 = series.mean()

    if latest > previous + 15 and latest > 60:
        return "IV Spike Up"
    if latest < previous - 15 and latest < 40:
        return "IV Contraction"
    if iv_rank > 85 and latest < avg5 and latest < avg10:
        return "IV Crush Warning"
    if iv_rank < 60 and latest > avg5 and previous < avg10:
        return "IV Rising (Momentum)"
    if iv_rank < 20 and latest < 20:
        return "IV Low & Stable"
    return "Neutral"


def iv_spike_signal(current_iv: float, history: Sequence[float], threshold: float) -> tuple[float, str]:
    """
    Tick-level IV versus its recent average.

    Returns:
        (average IV, signal); the average is 0 until enough readings exist.
    """
    valid = [iv for iv in history if iv > 0]
    if len(valid) >= MIN_SPIKE_HISTORY:
        avg = float(np.mean(valid))
        if current_iv > avg + threshold:
            return avg, "IV Spike Up"
        if current_iv < avg - threshold:
            return avg, "IV Drop Down"
        return avg, "Neutral"
    if current_iv > 0:
        return 0.0, BUILDING_HISTORY
    return 0.0, "Neutral"


class IvTracker:
    """
    Intraday IV state per bucket key.

    Day ranges are session-scoped: the first observation on a later session
    date discards every bucket's state. Observations dated before the
    current session fold into the current state.
    """

    def __init__(self, store: IvRangeStore):
        self.store = store
        self._states: dict[str, IntradayIvState] = {}
        self._session: Optional[date] = None

    def state(self, key: str) -> IntradayIvState:
        return self._states.setdefault(key, IntradayIvState())

    def _roll(self, today: date) -> None:
        if self._session is None or today > self._session:
            if self._session is not None:
                log.debug("IV tracker rolling from %s to %s (%d buckets)", self._session, today, len(self._states))
            self._states.clear()
            self._session = today

    def observe(self, key: str, iv: float, today: date) -> IvReading:
        self._roll(today)
        state = self.state(key)
        state.observe(iv)

        self.store.record_daily_iv(key, today, state.day_high_iv, state.day_low_iv)

        percentile = round(position_in_range(iv, state.day_high_iv, state.day_low_iv), 2)
        hist_high, hist_low = self.store.get_90_day_range(key, today)
        rank = round(position_in_range(iv, hist_high, hist_low), 2)

        state.percentile_history.append(percentile)
        signal = iv_trend_signal(list(state.percentile_history), rank)
        return IvReading(key=key, iv_rank=rank, iv_percentile=percentile, trend_signal=signal)
