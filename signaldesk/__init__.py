# signaldesk/__init__.py
"""
Signaldesk - streaming market analytics.

Turns a tick stream into multi-timeframe candles, incremental indicators,
a session market profile, a multi-day bias and IV rank/percentile, and
publishes one consolidated snapshot per tick.
"""

from .analysis import AnalysisResult, AnalysisService, AnalysisUpdatedEvent, SessionRolledEvent
from .config import AnalysisConfig, CustomLevels
from .events import EventDispatcher
from .marketdata import Candle, CandleUpdatedEvent, ChartHistory, InstrumentInfo, Tick
from .runner import configure_logging, run_analysis

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AnalysisConfig",
    "AnalysisResult",
    "AnalysisService",
    "AnalysisUpdatedEvent",
    "Candle",
    "CandleUpdatedEvent",
    "ChartHistory",
    "CustomLevels",
    "EventDispatcher",
    "InstrumentInfo",
    "SessionRolledEvent",
    "Tick",
    "configure_logging",
    "run_analysis",
]
