"""
Provider-agnostic interfaces.

This module defines the contracts the analysis service consumes. Concrete
broker implementations should implement these; in-memory versions are
provided for tests and offline use.
"""

from .base import (
    HistoricalDataClient,
    HistoricalDataError,
    InstrumentLookup,
    IntradayHistory,
    IvRangeStore,
    ProfileStore,
)
from .memory import (
    InMemoryHistoricalDataClient,
    InMemoryInstrumentLookup,
    InMemoryIvRangeStore,
    InMemoryProfileStore,
)

__all__ = [
    "HistoricalDataClient",
    "HistoricalDataError",
    "InMemoryHistoricalDataClient",
    "InMemoryInstrumentLookup",
    "InMemoryIvRangeStore",
    "InMemoryProfileStore",
    "InstrumentLookup",
    "IntradayHistory",
    "IvRangeStore",
    "ProfileStore",
]
