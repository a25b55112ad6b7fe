"""Volume, open-interest, price-action and custom-level signals."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from signaldesk.marketdata.candle import Candle
from signaldesk.marketdata.instrument import Tick


BUILDING_HISTORY = "Building History..."


# ---------------------------------------------------------------------------
# Volume burst
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VolumeReading:
    signal: str
    current_volume: int
    average_volume: int


def volume_signal(candles: Sequence[Candle], history_length: int, burst_multiplier: float) -> VolumeReading:
    """Latest candle volume against the average of up to *history_length* prior candles."""
    if not candles:
        return VolumeReading("N/A", 0, 0)

    candles = list(candles)
    current = candles[-1].volume
    prior = candles[:-1][-history_length:] if history_length > 0 else []
    if not prior:
        return VolumeReading(BUILDING_HISTORY, current, 0)

    average = float(np.mean([c.volume for c in prior]))
    if average > 0 and current > average * burst_multiplier:
        return VolumeReading("Volume Burst", current, int(average))
    return VolumeReading("Neutral", current, int(average))


# ---------------------------------------------------------------------------
# Open interest
# ---------------------------------------------------------------------------


def oi_signal(candles: Sequence[Candle]) -> str:
    """Classify the last candle's price and OI change against the one before."""
    if len(candles) < 2:
        return BUILDING_HISTORY

    current, previous = candles[-1], candles[-2]
    if previous.open_interest == 0 or current.open_interest == 0:
        return BUILDING_HISTORY

    price_up = current.close > previous.close
    price_down = current.close < previous.close
    oi_up = current.open_interest > previous.open_interest
    oi_down = current.open_interest < previous.open_interest

    if price_up and oi_up:
        return "Long Buildup"
    if price_up and oi_down:
        return "Short Covering"
    if price_down and oi_up:
        return "Short Buildup"
    if price_down and oi_down:
        return "Long Unwinding"
    return "Neutral"


# ---------------------------------------------------------------------------
# Price action
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriceActionSignals:
    price_vs_vwap: str = "Neutral"
    price_vs_close: str = "Neutral"
    day_range: str = "Neutral"
    open_drive: str = "No"


def price_action_signals(tick: Tick, day_vwap: float) -> PriceActionSignals:
    ltp = tick.ltp

    vs_vwap = "Neutral"
    if day_vwap > 0:
        if ltp > day_vwap:
            vs_vwap = "Above VWAP"
        elif ltp < day_vwap:
            vs_vwap = "Below VWAP"

    vs_close = "Neutral"
    if tick.close > 0:
        if ltp > tick.close:
            vs_close = "Above Close"
        elif ltp < tick.close:
            vs_close = "Below Close"

    day_range = "Neutral"
    span = tick.high - tick.low
    if span > 0:
        position = (ltp - tick.low) / span
        if position > 0.8:
            day_range = "Near High"
        elif position < 0.2:
            day_range = "Near Low"
        else:
            day_range = "Mid-Range"

    open_drive = "No"
    if tick.open > 0 and tick.low > 0 and tick.high > 0:
        if tick.open == tick.low:
            open_drive = "Drive Up"
        elif tick.open == tick.high:
            open_drive = "Drive Down"

    return PriceActionSignals(vs_vwap, vs_close, day_range, open_drive)


# ---------------------------------------------------------------------------
# Custom no-trade levels
# ---------------------------------------------------------------------------


class PriceZone(Enum):
    INSIDE = "inside"
    ABOVE = "above"
    BELOW = "below"


_ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def ordinal(n: int) -> str:
    if n <= 0:
        return str(n)
    if n % 100 in (11, 12, 13):
        return f"{n}th"
    suffix = _ORDINAL_SUFFIXES.get(n % 10, "th")
    return f"{n}{suffix}"


class CustomLevelTracker:
    """Counts breakouts/breakdowns out of a configured no-trade band."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.breakout_count = 0
        self.breakdown_count = 0
        self.last_zone = PriceZone.INSIDE

    def update(self, ltp: float, upper: float, lower: float) -> str:
        if ltp > upper:
            zone = PriceZone.ABOVE
        elif ltp < lower:
            zone = PriceZone.BELOW
        else:
            zone = PriceZone.INSIDE

        # a gap straight across the band still counts as leaving it
        if zone != self.last_zone:
            if zone is PriceZone.ABOVE:
                self.breakout_count += 1
            elif zone is PriceZone.BELOW:
                self.breakdown_count += 1
            self.last_zone = zone

        if zone is PriceZone.ABOVE:
            return f"{ordinal(self.breakout_count)} Breakout"
        if zone is PriceZone.BELOW:
            return f"{ordinal(self.breakdown_count)} Breakdown"
        return "No trade zone"


def custom_level_signal(
    tick: Tick,
    levels: Optional[tuple[float, float]],
    tracker: Optional[CustomLevelTracker],
) -> str:
    """
    Args:
        levels: (upper, lower) no-trade band for the tick's symbol, if any.
    """
    if not tick.is_index:
        return "N/A"
    if levels is None or tracker is None:
        return "No Levels Set"
    upper, lower = levels
    return tracker.update(tick.ltp, upper, lower)
