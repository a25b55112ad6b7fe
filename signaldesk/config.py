from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import time
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from signaldesk.marketdata.aggregation import period_to_seconds


@dataclass(frozen=True)
class CustomLevels:
    """No-trade band for an index symbol."""
    upper: float
    lower: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.upper, self.lower)


_INT_KEYS = (
    "short_ema_period",
    "long_ema_period",
    "rsi_period",
    "rsi_divergence_lookback",
    "atr_period",
    "atr_sma_period",
    "volume_history_length",
    "iv_history_length",
    "obv_moving_average_period",
    "max_candles",
    "warmup_buffer_size",
)

_FLOAT_KEYS = (
    "volume_burst_multiplier",
    "iv_spike_threshold",
)


@dataclass(frozen=True)
class AnalysisConfig:
    timeframes: tuple[str, ...] = ("1MINUTE", "5MINUTE", "15MINUTE")
    short_ema_period: int = 9
    long_ema_period: int = 21
    rsi_period: int = 14
    rsi_divergence_lookback: int = 20
    atr_period: int = 14
    atr_sma_period: int = 10
    volume_history_length: int = 12
    volume_burst_multiplier: float = 2.0
    iv_history_length: int = 15
    iv_spike_threshold: float = 2.0
    obv_moving_average_period: int = 20
    max_candles: int = 200
    session_start: time = time(9, 15)
    session_timezone: str = "Asia/Kolkata"
    warmup_buffer_size: int = 5000
    custom_levels: Mapping[str, CustomLevels] = field(default_factory=dict)

    def __post_init__(self):
        for name in _INT_KEYS:
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")
        if not self.timeframes:
            raise ValueError("timeframes must not be empty")
        if "1MINUTE" not in self.timeframes:
            raise ValueError("timeframes must include 1MINUTE (it drives the market profile)")
        if self.short_ema_period >= self.long_ema_period:
            raise ValueError(
                f"short_ema_period ({self.short_ema_period}) must be less than "
                f"long_ema_period ({self.long_ema_period})"
            )

    def levels_for(self, symbol: str) -> Optional[CustomLevels]:
        return self.custom_levels.get(symbol)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> AnalysisConfig:
        """Validate and construct from a plain mapping (e.g. parsed YAML/JSON).

        Missing keys keep their defaults. Raises ``ValueError`` naming the
        offending key instead of letting ``KeyError`` or ``TypeError``
        propagate.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(f"Unknown analysis config keys: {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = {}

        for key in _INT_KEYS:
            if key in raw:
                try:
                    kwargs[key] = int(raw[key])
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"analysis.{key} is not an integer: {raw[key]!r}") from exc

        for key in _FLOAT_KEYS:
            if key in raw:
                try:
                    kwargs[key] = float(raw[key])
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"analysis.{key} is not numeric: {raw[key]!r}") from exc

        if "timeframes" in raw:
            periods = raw["timeframes"]
            if isinstance(periods, str):
                periods = [periods]
            try:
                normalized = tuple(str(p).strip().upper() for p in periods)
                for period in normalized:
                    period_to_seconds(period)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"analysis.timeframes is invalid: {raw['timeframes']!r}") from exc
            kwargs["timeframes"] = normalized

        if "session_start" in raw:
            value = raw["session_start"]
            if isinstance(value, time):
                kwargs["session_start"] = value
            else:
                try:
                    kwargs["session_start"] = time.fromisoformat(str(value))
                except ValueError as exc:
                    raise ValueError(f"analysis.session_start must be HH:MM, got {value!r}") from exc

        if "session_timezone" in raw:
            tz = str(raw["session_timezone"])
            try:
                ZoneInfo(tz)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"analysis.session_timezone is unknown: {tz!r}") from exc
            kwargs["session_timezone"] = tz

        if "custom_levels" in raw:
            levels: dict[str, CustomLevels] = {}
            for symbol, band in (raw["custom_levels"] or {}).items():
                try:
                    levels[str(symbol)] = CustomLevels(upper=float(band["upper"]), lower=float(band["lower"]))
                except (KeyError, TypeError, ValueError) as exc:
                    raise ValueError(
                        f"analysis.custom_levels.{symbol} needs numeric 'upper' and 'lower'"
                    ) from exc
            kwargs["custom_levels"] = levels

        return cls(**kwargs)
