"""Candle aggregation: live ticks into candles, and minute history into coarser timeframes."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from signaldesk.marketdata.candle import Candle
from signaldesk.marketdata.chart_history import ChartHistory
from signaldesk.marketdata.instrument import Tick
from signaldesk.time_utils import bucket_start

log = logging.getLogger(__name__)


__all__ = [
    "CandleAggregator",
    "CandleUpdate",
    "aggregate_candles",
    "period_to_seconds",
]


def period_to_seconds(period: str) -> int:
    """Convert period string to seconds."""
    p = period.strip().upper()

    if p == "SECOND":
        return 1
    if p.endswith("MINUTE"):
        n = int(p.removesuffix("MINUTE") or 1)
        if n <= 0:
            raise ValueError(f"Unsupported period: {period!r}")
        return n * 60
    if p == "HOUR":
        return 60 * 60

    raise ValueError(f"Unsupported period: {period!r}")


@dataclass(frozen=True)
class CandleUpdate:
    """Outcome of folding one tick into a timeframe.

    Attributes:
        candle: The live candle after the update.
        is_new: True when the tick opened a new bucket.
        closed: The candle that was closed by opening the new bucket, if any.
    """
    candle: Candle
    is_new: bool
    closed: Optional[Candle] = None


class CandleAggregator:
    """
    Build fixed-width candles from ticks using wall-clock bucketing.

    - Buckets are aligned to period boundaries (UTC epoch).
    - Candle storage lives in the caller's ChartHistory, so one aggregator
      can serve every instrument for its period.
    - Ticks older than the live bucket are ignored; history stays ordered.

    Usage:
        aggregator = CandleAggregator(period="5MINUTE")
        update = aggregator.update(history, tick)
    """

    def __init__(self, *, period: str):
        self.period = period.strip().upper()
        self.width_s = period_to_seconds(self.period)

    def bucket_for(self, ts: datetime) -> datetime:
        return bucket_start(ts, self.width_s)

    def update(self, history: ChartHistory, tick: Tick) -> Optional[CandleUpdate]:
        """
        Fold a tick into the live candle of *history*.

        Returns:
            The resulting update, or None when the tick belongs to a bucket
            older than the live candle.
        """
        bucket = self.bucket_for(tick.timestamp)
        current = history.latest

        if current is not None and bucket < current.timestamp:
            log.debug(
                "Ignoring late tick for %s %s at %s (live bucket %s)",
                history.instrument,
                self.period,
                tick.timestamp,
                current.timestamp,
            )
            return None

        if current is None or current.timestamp != bucket:
            quantity = int(tick.last_traded_quantity)
            avg_price = tick.avg_trade_price if tick.avg_trade_price > 0 else tick.ltp
            candle = Candle(
                timestamp=bucket,
                open=tick.ltp,
                high=tick.ltp,
                low=tick.ltp,
                close=tick.ltp,
                volume=quantity,
                open_interest=int(tick.open_interest),
                vwap=avg_price,
                cumulative_price_volume=avg_price * quantity,
                cumulative_volume=quantity,
            )
            history.add_candle(candle)
            return CandleUpdate(candle=candle, is_new=True, closed=current)

        avg_price = tick.avg_trade_price if tick.avg_trade_price > 0 else tick.ltp
        current.apply_trade(
            price=tick.ltp,
            quantity=int(tick.last_traded_quantity),
            avg_trade_price=avg_price,
            open_interest=int(tick.open_interest),
        )
        return CandleUpdate(candle=current, is_new=False)


def aggregate_candles(minute_candles: Iterable[Candle], period: str) -> list[Candle]:
    """
    Aggregate an ordered minute-level candle sequence into *period* candles.

    Grouping is by truncated timestamp: open = first, high = max, low = min,
    close = last, volume = sum, open interest = last and
    VWAP = sum(close * volume) / sum(volume) with a divisor of 1 when the
    bucket traded nothing.
    """
    width_s = period_to_seconds(period)
    groups: dict[datetime, list[Candle]] = {}
    for candle in minute_candles:
        groups.setdefault(bucket_start(candle.timestamp, width_s), []).append(candle)

    out: list[Candle] = []
    for bucket, members in groups.items():
        volume = sum(c.volume for c in members)
        price_volume = sum(c.close * c.volume for c in members)
        out.append(
            Candle(
                timestamp=bucket,
                open=members[0].open,
                high=max(c.high for c in members),
                low=min(c.low for c in members),
                close=members[-1].close,
                volume=volume,
                open_interest=members[-1].open_interest,
                vwap=price_volume / (volume if volume != 0 else 1),
                cumulative_price_volume=price_volume,
                cumulative_volume=volume,
            )
        )
    return out
