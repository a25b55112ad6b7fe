from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Candle:
    """
    Represents a single OHLCV candle.

    The live candle of a timeframe is mutated in place as ticks arrive; once a
    newer bucket opens it is treated as immutable history.

    Attributes:
        timestamp: Bucket start (UTC-aware)
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Traded quantity during period
        open_interest: Latest open interest seen in the period
        vwap: Volume-weighted average price for the period
        cumulative_price_volume: Running sum of price * quantity feeding ``vwap``
        cumulative_volume: Running quantity feeding ``vwap``
    """

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int = 0
    open_interest: int = 0
    vwap: float = 0.0
    cumulative_price_volume: float = field(default=0.0, repr=False)
    cumulative_volume: int = field(default=0, repr=False)

    @property
    def typical_price(self) -> float:
        """
        Calculate typical price (HLC/3).
        Used as the VWAP proxy for backfilled minute candles.
        """
        return (self.high + self.low + self.close) / 3

    @property
    def range(self) -> float:
        """Calculate candle range (high - low)."""
        return self.high - self.low

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    def apply_trade(self, price: float, quantity: int, avg_trade_price: float, open_interest: int) -> None:
        """Fold one tick into this (live) candle."""
        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price
        self.volume += quantity
        self.open_interest = open_interest
        self.cumulative_price_volume += avg_trade_price * quantity
        self.cumulative_volume += quantity
        self.vwap = (
            self.cumulative_price_volume / self.cumulative_volume
            if self.cumulative_volume > 0
            else self.close
        )

    def __repr__(self) -> str:
        return (
            f"Candle(timestamp={self.timestamp:%Y-%m-%d %H:%M:%S}, "
            f"O={self.open:.2f}, H={self.high:.2f}, "
            f"L={self.low:.2f}, C={self.close:.2f}, "
            f"V={self.volume}, OI={self.open_interest})"
        )
