"""
Provider-neutral interfaces.

The analysis core talks to the outside world only through these contracts:
instrument metadata, intraday history, the 90-day IV range store and the
persisted profile store. Broker-specific clients implement them elsewhere.
"""

import abc
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from signaldesk.marketdata import Candle, InstrumentInfo
from signaldesk.profile.types import MarketProfileData
from signaldesk.time_utils import epoch_seconds_to_utc

log = logging.getLogger(__name__)


__all__ = [
    "HistoricalDataClient",
    "HistoricalDataError",
    "InstrumentLookup",
    "IntradayHistory",
    "IvRangeStore",
    "ProfileStore",
]


class HistoricalDataError(Exception):
    """Raised by a historical data client when the upstream request fails."""
    pass


@dataclass(frozen=True)
class IntradayHistory:
    """
    Parallel arrays of minute bars as returned by the broker.

    ``start_time`` is epoch seconds. Arrays are expected to be of equal
    length; the shortest one bounds the usable bars.
    """

    start_time: list[float] = field(default_factory=list)
    open: list[float] = field(default_factory=list)
    high: list[float] = field(default_factory=list)
    low: list[float] = field(default_factory=list)
    close: list[float] = field(default_factory=list)
    volume: list[float] = field(default_factory=list)
    open_interest: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.open)

    def to_candles(self) -> list[Candle]:
        """
        Convert to minute candles, stopping at the first index missing from
        any required array. Open interest is optional per bar.
        """
        required = (self.start_time, self.high, self.low, self.close, self.volume)
        usable = min([len(self.open)] + [len(a) for a in required])
        if usable < len(self.open):
            log.warning(
                "Intraday history arrays disagree in length (open=%d, usable=%d); truncating",
                len(self.open),
                usable,
            )

        candles: list[Candle] = []
        for i in range(usable):
            volume = int(self.volume[i])
            candle = Candle(
                timestamp=epoch_seconds_to_utc(self.start_time[i]),
                open=float(self.open[i]),
                high=float(self.high[i]),
                low=float(self.low[i]),
                close=float(self.close[i]),
                volume=volume,
                open_interest=int(self.open_interest[i]) if i < len(self.open_interest) else 0,
            )
            candle.vwap = candle.typical_price
            candle.cumulative_price_volume = candle.vwap * volume
            candle.cumulative_volume = volume
            candles.append(candle)
        return candles


class InstrumentLookup(abc.ABC):
    """Security master lookup."""

    @abc.abstractmethod
    def find(self, security_id: str, instrument_type: Optional[str] = None) -> Optional[InstrumentInfo]:
        """
        Find metadata for a security.

        Args:
            security_id: Broker security identifier.
            instrument_type: Optional type to disambiguate ids shared across segments.

        Returns:
            The metadata, or None if unknown.
        """
        raise NotImplementedError


class HistoricalDataClient(abc.ABC):
    """Source of today's intraday minute bars."""

    @abc.abstractmethod
    async def get_intraday_history(self, info: InstrumentInfo) -> Optional[IntradayHistory]:
        """
        Fetch intraday minute bars for an instrument.

        Raises:
            HistoricalDataError: If the upstream request fails.
        """
        raise NotImplementedError


class IvRangeStore(abc.ABC):
    """Trailing implied-volatility ranges per option bucket key."""

    @abc.abstractmethod
    def record_daily_iv(self, key: str, day: date, high: float, low: float) -> None:
        """Record (or overwrite) the day's IV high/low for a bucket."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_90_day_range(self, key: str, today: date) -> tuple[float, float]:
        """Return (high, low) over the trailing 90 days, (0, 0) when unknown."""
        raise NotImplementedError


class ProfileStore(abc.ABC):
    """Persisted daily market profiles."""

    @abc.abstractmethod
    def get_historical_profiles(self, security_id: str) -> list[MarketProfileData]:
        """Return stored profiles, most recent first."""
        raise NotImplementedError

    @abc.abstractmethod
    def upsert(self, security_id: str, data: MarketProfileData) -> None:
        """Insert or replace the record for ``data.date``."""
        raise NotImplementedError
