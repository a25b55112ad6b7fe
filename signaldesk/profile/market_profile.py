"""Intraday TPO / volume profile with Initial Balance and developing levels."""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Mapping, Optional

from signaldesk.marketdata.candle import Candle

from .types import MarketProfileData, TpoInfo, VolumeProfileInfo

log = logging.getLogger(__name__)


VALUE_AREA_SHARE = 0.70
TPO_PERIOD_MINUTES = 30
INITIAL_BALANCE_MINUTES = 60


def point_of_control(levels: Mapping[float, float]) -> Optional[float]:
    """Price with the largest weight; ties resolve to the lowest price."""
    if not levels:
        return None
    return min(levels, key=lambda price: (-levels[price], price))


def value_area(counts: Mapping[float, int], share: float = VALUE_AREA_SHARE) -> Optional[TpoInfo]:
    """
    Expand from the POC until the included levels hold ``share`` of all TPOs.

    At each step the nearest unvisited level above and below the POC are
    compared and the one with more letters is added; equal counts prefer the
    level above.
    """
    poc = point_of_control(counts)
    if poc is None:
        return None

    target = sum(counts.values()) * share
    accumulated = counts[poc]

    prices = sorted(counts)
    idx = prices.index(poc)
    above = prices[idx + 1:]
    below = prices[:idx][::-1]
    a = b = 0
    high = low = poc

    while accumulated < target:
        next_above = above[a] if a < len(above) else None
        next_below = below[b] if b < len(below) else None
        if next_above is None and next_below is None:
            break
        if next_above is not None and (next_below is None or counts[next_above] >= counts[next_below]):
            accumulated += counts[next_above]
            high = next_above
            a += 1
        else:
            accumulated += counts[next_below]
            low = next_below
            b += 1

    return TpoInfo(point_of_control=poc, value_area_high=high, value_area_low=low)


def _tick_decimals(tick_size: float) -> int:
    exponent = Decimal(str(tick_size)).normalize().as_tuple().exponent
    return max(0, -int(exponent))


class MarketProfile:
    """
    One instrument's profile for one trading session.

    Prices are stored quantized to the tick size. Lifecycle: built from
    closed 1-minute candles, then ``finalize()``d at the day boundary, after
    which it rejects further candles.
    """

    def __init__(self, tick_size: float, session_start: datetime, session_date: date):
        if tick_size <= 0:
            raise ValueError(f"tick_size must be > 0, got {tick_size}")
        self.tick_size = tick_size
        self.session_start = session_start
        self.session_date = session_date
        self._decimals = _tick_decimals(tick_size)

        self.tpo_levels: dict[float, set[str]] = {}
        self.volume_levels: dict[float, int] = {}

        self.initial_balance_high: float = 0.0
        self.initial_balance_low: Optional[float] = None
        self.is_initial_balance_set = False

        self.developing_tpo = TpoInfo()
        self.developing_volume = VolumeProfileInfo()
        self.finalized = False

    def tpo_period(self, timestamp: datetime) -> str:
        """Letter of the 30-minute period containing *timestamp* ('A' first)."""
        elapsed = max(timedelta(0), timestamp - self.session_start)
        return chr(ord("A") + int(elapsed / timedelta(minutes=TPO_PERIOD_MINUTES)))

    def update_initial_balance(self, candle: Candle) -> None:
        cutoff = self.session_start + timedelta(minutes=INITIAL_BALANCE_MINUTES)
        if candle.timestamp >= cutoff:
            if not self.is_initial_balance_set:
                self.is_initial_balance_set = True
                log.debug("Initial balance set at %s: %s-%s", candle.timestamp, self.initial_balance_low, self.initial_balance_high)
            return
        if candle.timestamp < self.session_start or self.is_initial_balance_set:
            return
        self.initial_balance_high = max(self.initial_balance_high, candle.high)
        self.initial_balance_low = (
            candle.low if self.initial_balance_low is None else min(self.initial_balance_low, candle.low)
        )

    def add_candle(self, candle: Candle) -> None:
        """Record a closed 1-minute candle and refresh developing levels."""
        if self.finalized:
            raise RuntimeError(f"Profile for {self.session_date} is finalized")

        self.update_initial_balance(candle)
        letter = self.tpo_period(candle.timestamp)

        lo = round(candle.low / self.tick_size)
        hi = round(candle.high / self.tick_size)
        for step in range(lo, hi + 1):
            price = round(step * self.tick_size, self._decimals)
            self.tpo_levels.setdefault(price, set()).add(letter)
            self.volume_levels[price] = self.volume_levels.get(price, 0) + candle.volume

        self.recompute()

    def recompute(self) -> None:
        counts = {price: len(letters) for price, letters in self.tpo_levels.items()}
        tpo = value_area(counts)
        if tpo is None:
            return
        self.developing_tpo = tpo

        vpoc = point_of_control(self.volume_levels)
        if vpoc is not None:
            self.developing_volume = VolumeProfileInfo(volume_poc=vpoc)

    def tpo_counts(self) -> dict[float, int]:
        """Letter count per price, ascending by price."""
        return {price: len(self.tpo_levels[price]) for price in sorted(self.tpo_levels)}

    def to_data(self) -> MarketProfileData:
        return MarketProfileData(
            date=self.session_date,
            tpo=self.developing_tpo,
            volume=self.developing_volume,
        )

    def finalize(self) -> MarketProfileData:
        self.finalized = True
        return self.to_data()

    def __repr__(self) -> str:
        t = self.developing_tpo
        return (
            f"MarketProfile(date={self.session_date}, levels={len(self.tpo_levels)}, "
            f"POC={t.point_of_control}, VAH={t.value_area_high}, VAL={t.value_area_low})"
        )
