"""Per (instrument, timeframe) indicator bundle driven by a candle history."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from signaldesk.marketdata.chart_history import ChartHistory

from .atr import AverageTrueRange, atr_signal
from .divergence import detect_divergence
from .ema import EmaPair, ema_cross_signal
from .obv import BUILDING_HISTORY, OnBalanceVolume, obv_signal
from .rsi import RelativeStrengthIndex

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndicatorParams:
    short_ema_period: int = 9
    long_ema_period: int = 21
    rsi_period: int = 14
    rsi_divergence_lookback: int = 20
    atr_period: int = 14
    atr_sma_period: int = 10
    obv_moving_average_period: int = 20

    @classmethod
    def from_config(cls, config) -> "IndicatorParams":
        return cls(
            short_ema_period=config.short_ema_period,
            long_ema_period=config.long_ema_period,
            rsi_period=config.rsi_period,
            rsi_divergence_lookback=config.rsi_divergence_lookback,
            atr_period=config.atr_period,
            atr_sma_period=config.atr_sma_period,
            obv_moving_average_period=config.obv_moving_average_period,
        )


@dataclass(frozen=True)
class IndicatorReadings:
    ema_signal: str = BUILDING_HISTORY
    vwap_ema_signal: str = BUILDING_HISTORY
    rsi: float = 0.0
    rsi_signal: str = "N/A"
    atr: float = 0.0
    atr_signal: str = "N/A"
    obv: float = 0.0
    obv_moving_average: float = 0.0
    obv_signal: str = BUILDING_HISTORY
    obv_divergence: str = "N/A"


class IndicatorSet:
    """
    EMA (close and VWAP), RSI, ATR and OBV for one candle series.

    Every closed candle is committed exactly once, in timestamp order; the
    live candle only ever produces provisional values, so repeated ticks
    inside one bucket never compound into the recurrences.
    """

    def __init__(self, params: IndicatorParams):
        self.params = params
        self.price_ema = EmaPair(params.short_ema_period, params.long_ema_period, source="close")
        self.vwap_ema = EmaPair(params.short_ema_period, params.long_ema_period, source="vwap")
        self.rsi = RelativeStrengthIndex(params.rsi_period)
        self.atr = AverageTrueRange(params.atr_period)
        self.obv = OnBalanceVolume(params.obv_moving_average_period)
        self._last_committed: Optional[datetime] = None

    @property
    def last_committed(self) -> Optional[datetime]:
        return self._last_committed

    def _commit_closed(self, history: ChartHistory) -> None:
        for candle in history.closed:
            if self._last_committed is not None and candle.timestamp <= self._last_committed:
                continue
            self.price_ema.commit(candle)
            self.vwap_ema.commit(candle)
            self.rsi.commit(candle)
            self.atr.commit(candle)
            self.obv.commit(candle)
            self._last_committed = candle.timestamp

    def prime(self, history: ChartHistory) -> None:
        """Commit every closed candle in *history* not yet seen."""
        self._commit_closed(history)

    def update(self, history: ChartHistory) -> IndicatorReadings:
        live = history.latest
        if live is None:
            return IndicatorReadings()

        self._commit_closed(history)
        p = self.params
        count = len(history)

        ema_signal = vwap_ema_signal = BUILDING_HISTORY
        if count >= p.long_ema_period:
            price_pair = self.price_ema.peek(live)
            vwap_pair = self.vwap_ema.peek(live)
            if price_pair is not None:
                ema_signal = ema_cross_signal(*price_pair)
            if vwap_pair is not None:
                vwap_ema_signal = ema_cross_signal(*vwap_pair)

        highs = history.get_highs()
        lows = history.get_lows()

        rsi_value = 0.0
        rsi_div = "N/A"
        live_rsi = self.rsi.peek(live) if count > p.rsi_period else None
        if live_rsi is not None:
            rsi_value = round(live_rsi, 2)
            rsi_series = list(self.rsi.state.values) + [live_rsi]
            rsi_div = detect_divergence(highs, lows, rsi_series, p.rsi_divergence_lookback)

        atr_value = 0.0
        atr_sig = "N/A"
        live_atr = self.atr.peek(live) if count >= p.atr_period else None
        if live_atr is not None:
            atr_value = round(live_atr, 2)
            atr_sig = atr_signal(list(self.atr.state.values) + [live_atr], p.atr_sma_period)

        obv_value = 0.0
        obv_sig = BUILDING_HISTORY
        obv_ma = 0.0
        obv_div = "N/A"
        live_obv = self.obv.peek(live) if count >= 2 else None
        if live_obv is not None:
            obv_value = live_obv
            obv_series = list(self.obv.state.values) + [live_obv]
            obv_sig, obv_ma = obv_signal(obv_series, p.obv_moving_average_period)
            obv_div = detect_divergence(highs, lows, obv_series, p.rsi_divergence_lookback)

        return IndicatorReadings(
            ema_signal=ema_signal,
            vwap_ema_signal=vwap_ema_signal,
            rsi=rsi_value,
            rsi_signal=rsi_div,
            atr=atr_value,
            atr_signal=atr_sig,
            obv=obv_value,
            obv_moving_average=obv_ma,
            obv_signal=obv_sig,
            obv_divergence=obv_div,
        )
