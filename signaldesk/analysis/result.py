"""Published per-instrument analysis snapshot."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from signaldesk.indicators.engine import IndicatorReadings


@dataclass(frozen=True)
class TimeframeSnapshot:
    """Indicator readings and candle pattern for one timeframe."""
    timeframe: str
    indicators: IndicatorReadings = field(default_factory=IndicatorReadings)
    candle_signal: str = "N/A"

    @property
    def ema_signal(self) -> str:
        return self.indicators.ema_signal

    @property
    def vwap_ema_signal(self) -> str:
        return self.indicators.vwap_ema_signal

    @property
    def rsi(self) -> float:
        return self.indicators.rsi


@dataclass(frozen=True)
class AnalysisResult:
    """
    Everything known about one instrument as of its latest tick.

    A new instance replaces the previous one on every tick; nothing here is
    mutated after publication.
    """

    instrument_id: str
    symbol: str = ""
    timestamp: Optional[datetime] = None
    last_price: float = 0.0
    instrument_group: str = ""
    underlying_group: str = ""

    vwap: float = 0.0
    current_iv: float = 0.0
    avg_iv: float = 0.0
    iv_signal: str = "Neutral"
    iv_rank: float = 0.0
    iv_percentile: float = 0.0
    iv_trend_signal: str = "N/A"

    current_volume: int = 0
    avg_volume: int = 0
    volume_signal: str = "Neutral"
    oi_signal: str = "N/A"
    custom_level_signal: str = "N/A"

    price_vs_vwap: str = "Neutral"
    price_vs_close: str = "Neutral"
    day_range: str = "Neutral"
    open_drive: str = "No"

    timeframes: dict[str, TimeframeSnapshot] = field(default_factory=dict)

    developing_poc: float = 0.0
    developing_vah: float = 0.0
    developing_val: float = 0.0
    developing_vpoc: float = 0.0
    initial_balance_high: float = 0.0
    initial_balance_low: float = 0.0
    initial_balance_signal: str = "IB Forming"
    market_profile_signal: str = "Building"

    market_structure: str = "N/A"
    daily_bias: str = "N/A"

    def for_timeframe(self, timeframe: str) -> Optional[TimeframeSnapshot]:
        return self.timeframes.get(timeframe.strip().upper())
