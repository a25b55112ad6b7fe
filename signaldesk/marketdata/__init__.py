from .aggregation import CandleAggregator, CandleUpdate, aggregate_candles, period_to_seconds
from .candle import Candle
from .chart_history import ChartHistory
from .events import CandleUpdatedEvent
from .instrument import (
    InstrumentInfo,
    Tick,
    default_tick_size,
    instrument_group,
    resolve_tick_size,
)

__all__ = [
    "Candle",
    "CandleAggregator",
    "CandleUpdate",
    "CandleUpdatedEvent",
    "ChartHistory",
    "InstrumentInfo",
    "Tick",
    "aggregate_candles",
    "default_tick_size",
    "instrument_group",
    "period_to_seconds",
    "resolve_tick_size",
]
