from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from signaldesk.time_utils import now_utc


INDEX_TICK_SIZE = 1.0
DEFAULT_TICK_SIZE = 0.05


@dataclass(frozen=True)
class InstrumentInfo:
    """
    Static metadata for a security, as returned by the instrument lookup.

    Attributes:
        security_id: Broker security identifier.
        instrument_type: Exchange instrument type (e.g. 'INDEX', 'EQUITY',
            'FUTIDX', 'OPTIDX').
        tick_size: Minimum price increment, 0 if the lookup does not know it.
        strike_price: Option strike, 0 for non-options.
        option_type: 'CE'/'PE' for options, empty otherwise.
        underlying_symbol: Underlying for derivatives, empty otherwise.
    """
    security_id: str
    instrument_type: str = ""
    tick_size: float = 0.0
    strike_price: float = 0.0
    option_type: str = ""
    underlying_symbol: str = ""


@dataclass(frozen=True)
class Tick:
    """
    A single market update for one instrument.

    ``open``/``high``/``low`` are the session's running values and ``close``
    the previous session close, as published by the feed.
    """

    security_id: str
    ltp: float
    symbol: str = ""
    display_name: str = ""
    instrument_type: str = ""
    last_traded_quantity: int = 0
    avg_trade_price: float = 0.0
    open_interest: int = 0
    implied_volatility: float = 0.0
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    underlying_symbol: str = ""
    underlying_price: float = 0.0
    timestamp: datetime = field(default_factory=now_utc)

    @property
    def is_index(self) -> bool:
        return self.instrument_type.upper() == "INDEX"

    @property
    def is_future(self) -> bool:
        return self.instrument_type.upper().startswith("FUT")

    @property
    def is_option(self) -> bool:
        return self.instrument_type.upper().startswith("OPT")

    @property
    def name(self) -> str:
        return self.display_name or self.symbol or self.security_id


def default_tick_size(instrument_type: str) -> float:
    """Tick size used when the lookup cannot supply one."""
    return INDEX_TICK_SIZE if instrument_type.upper() == "INDEX" else DEFAULT_TICK_SIZE


def resolve_tick_size(info: Optional[InstrumentInfo], instrument_type: str) -> float:
    if info is not None and info.tick_size > 0:
        return info.tick_size
    return default_tick_size(instrument_type)


def instrument_group(tick: Tick) -> str:
    """Coarse grouping used by display layers to bucket snapshots."""
    if tick.is_index:
        return "Indices"
    if tick.is_future:
        return "Futures"
    name = tick.name.upper()
    if tick.is_option or "CALL" in name or "PUT" in name:
        return "Options"
    return "Stocks"
