"""In-memory implementations of the provider contracts."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from signaldesk.marketdata import InstrumentInfo
from signaldesk.profile.types import MarketProfileData

from .base import HistoricalDataClient, InstrumentLookup, IntradayHistory, IvRangeStore, ProfileStore

log = logging.getLogger(__name__)


PROFILE_RETENTION_DAYS = 30
IV_RANGE_DAYS = 90


class InMemoryInstrumentLookup(InstrumentLookup):
    def __init__(self, instruments: list[InstrumentInfo] | None = None):
        self._by_id: dict[str, list[InstrumentInfo]] = {}
        for info in instruments or []:
            self.add(info)

    def add(self, info: InstrumentInfo) -> None:
        self._by_id.setdefault(info.security_id, []).append(info)

    def find(self, security_id: str, instrument_type: Optional[str] = None) -> Optional[InstrumentInfo]:
        candidates = self._by_id.get(security_id, [])
        if instrument_type:
            for info in candidates:
                if info.instrument_type.upper() == instrument_type.upper():
                    return info
        return candidates[0] if candidates else None


class InMemoryHistoricalDataClient(HistoricalDataClient):
    """Serves intraday history from a dict keyed by security id."""

    def __init__(self, history: dict[str, IntradayHistory] | None = None):
        self._history = dict(history or {})
        self.requests: list[str] = []

    async def get_intraday_history(self, info: InstrumentInfo) -> Optional[IntradayHistory]:
        self.requests.append(info.security_id)
        return self._history.get(info.security_id)


class InMemoryIvRangeStore(IvRangeStore):
    def __init__(self):
        self._days: dict[str, dict[date, tuple[float, float]]] = {}

    def record_daily_iv(self, key: str, day: date, high: float, low: float) -> None:
        self._days.setdefault(key, {})[day] = (high, low)

    def get_90_day_range(self, key: str, today: date) -> tuple[float, float]:
        cutoff = today - timedelta(days=IV_RANGE_DAYS)
        window = [hl for d, hl in self._days.get(key, {}).items() if cutoff < d <= today]
        if not window:
            return (0.0, 0.0)
        return (max(h for h, _ in window), min(lo for _, lo in window))


class InMemoryProfileStore(ProfileStore):
    def __init__(self, records: dict[str, list[MarketProfileData]] | None = None):
        self._records: dict[str, dict[date, MarketProfileData]] = {}
        for security_id, items in (records or {}).items():
            for data in items:
                self.upsert(security_id, data)

    def get_historical_profiles(self, security_id: str) -> list[MarketProfileData]:
        records = self._records.get(security_id, {})
        return sorted(records.values(), key=lambda p: p.date, reverse=True)

    def upsert(self, security_id: str, data: MarketProfileData) -> None:
        if not security_id:
            return
        self._records.setdefault(security_id, {})[data.date] = data

    def prune(self, today: date, retention_days: int = PROFILE_RETENTION_DAYS) -> int:
        """Drop records older than the retention window; returns how many were removed."""
        cutoff = today - timedelta(days=retention_days)
        removed = 0
        for records in self._records.values():
            stale = [d for d in records if d < cutoff]
            for d in stale:
                del records[d]
            removed += len(stale)
        if removed:
            log.debug("Pruned %d stored profiles older than %s", removed, cutoff)
        return removed
