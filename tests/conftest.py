# tests/conftest.py
from datetime import date, datetime, timedelta, timezone

import pytest

from signaldesk.config import AnalysisConfig
from signaldesk.events import EventDispatcher
from signaldesk.marketdata.candle import Candle
from signaldesk.marketdata.instrument import InstrumentInfo, Tick
from signaldesk.profile.types import MarketProfileData, TpoInfo, VolumeProfileInfo
from signaldesk.providers.memory import (
    InMemoryHistoricalDataClient,
    InMemoryInstrumentLookup,
    InMemoryIvRangeStore,
    InMemoryProfileStore,
)

# 2026-01-05 09:15 IST, a Monday session open
SESSION_OPEN = datetime(2026, 1, 5, 3, 45, tzinfo=timezone.utc)
SESSION_DAY = date(2026, 1, 5)


def make_candle(minute: int, open_, high, low, close, volume=100, oi=0, start=SESSION_OPEN) -> Candle:
    """Candle *minute* minutes after *start*."""
    return Candle(
        timestamp=start + timedelta(minutes=minute),
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
        open_interest=oi,
        vwap=(high + low + close) / 3,
    )


def make_tick(security_id="13", ltp=100.0, *, at=SESSION_OPEN, seconds=0, **kwargs) -> Tick:
    kwargs.setdefault("instrument_type", "INDEX")
    kwargs.setdefault("symbol", "NIFTY")
    kwargs.setdefault("last_traded_quantity", 10)
    return Tick(security_id=security_id, ltp=ltp, timestamp=at + timedelta(seconds=seconds), **kwargs)


def profile_record(day: date, poc: float, vah: float, val: float, vpoc: float = 0.0) -> MarketProfileData:
    return MarketProfileData(
        date=day,
        tpo=TpoInfo(point_of_control=poc, value_area_high=vah, value_area_low=val),
        volume=VolumeProfileInfo(volume_poc=vpoc or poc),
    )


@pytest.fixture
def candle_factory():
    return make_candle


@pytest.fixture
def tick_factory():
    return make_tick


@pytest.fixture
def profile_factory():
    return profile_record


@pytest.fixture
def session_open() -> datetime:
    return SESSION_OPEN


@pytest.fixture
def session_day() -> date:
    return SESSION_DAY


@pytest.fixture
def config() -> AnalysisConfig:
    return AnalysisConfig()


@pytest.fixture
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def lookup() -> InMemoryInstrumentLookup:
    return InMemoryInstrumentLookup(
        [
            InstrumentInfo(security_id="13", instrument_type="INDEX", tick_size=0.05),
            InstrumentInfo(security_id="25", instrument_type="INDEX", tick_size=0.05),
        ]
    )


@pytest.fixture
def history_client() -> InMemoryHistoricalDataClient:
    return InMemoryHistoricalDataClient()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def iv_store() -> InMemoryIvRangeStore:
    return InMemoryIvRangeStore()
