"""
Per-instrument streaming analysis.

``AnalysisService.on_tick`` is the single entry point. Each instrument moves
through two phases:

WARMING
    First sight of the instrument. Live ticks are buffered while the intraday
    backfill runs in its own task; other instruments keep flowing.
LIVE
    Backfill applied, bias computed, buffered ticks replayed in timestamp
    order. Every tick now folds into the candles and produces a snapshot.
"""

import asyncio
import dataclasses
import logging
from collections import deque
from datetime import date
from enum import Enum
from typing import Optional

from signaldesk.config import AnalysisConfig
from signaldesk.events import EventDispatcher
from signaldesk.indicators.engine import IndicatorParams, IndicatorSet
from signaldesk.marketdata.aggregation import CandleAggregator, aggregate_candles
from signaldesk.marketdata.candle import Candle
from signaldesk.marketdata.chart_history import ChartHistory
from signaldesk.marketdata.events import CandleUpdatedEvent
from signaldesk.marketdata.instrument import InstrumentInfo, Tick, instrument_group, resolve_tick_size
from signaldesk.profile.bias import BiasResult, DailyBias, synthesize_daily_bias
from signaldesk.profile.market_profile import MarketProfile
from signaldesk.profile.signals import initial_balance_signal, market_profile_signal
from signaldesk.profile.types import MarketProfileData
from signaldesk.providers.base import (
    HistoricalDataClient,
    HistoricalDataError,
    InstrumentLookup,
    IvRangeStore,
    ProfileStore,
)
from signaldesk.signals.patterns import recognize_candlestick_pattern
from signaldesk.signals.price_action import (
    CustomLevelTracker,
    custom_level_signal,
    oi_signal,
    price_action_signals,
    volume_signal,
)
from signaldesk.time_utils import session_date, session_start
from signaldesk.volatility.iv_tracker import IvReading, IvTracker, iv_bucket_key, iv_spike_signal

from .events import AnalysisUpdatedEvent, SessionRolledEvent
from .result import AnalysisResult, TimeframeSnapshot

log = logging.getLogger(__name__)


PROFILE_TIMEFRAME = "1MINUTE"
PATTERN_CANDLES = 3


class Phase(Enum):
    WARMING = "warming"
    LIVE = "live"


class InstrumentState:
    """Everything the service owns for one instrument."""

    def __init__(
        self,
        instrument_id: str,
        info: Optional[InstrumentInfo],
        profile: MarketProfile,
        config: AnalysisConfig,
    ):
        self.instrument_id = instrument_id
        self.info = info
        self.phase = Phase.WARMING
        self.lock = asyncio.Lock()
        self.live = asyncio.Event()
        self.pending: deque[Tick] = deque(maxlen=config.warmup_buffer_size)
        self.warmup_task: Optional[asyncio.Task] = None

        params = IndicatorParams.from_config(config)
        self.charts: dict[str, ChartHistory] = {
            tf: ChartHistory(instrument_id, tf, config.max_candles) for tf in config.timeframes
        }
        self.indicators: dict[str, IndicatorSet] = {tf: IndicatorSet(params) for tf in config.timeframes}

        self.profile = profile
        self.previous_sessions: list[MarketProfileData] = []
        self.bias: Optional[BiasResult] = None

        self.day_price_volume = 0.0
        self.day_volume = 0
        self.iv_history: deque[float] = deque(maxlen=config.iv_history_length)
        self.iv_reading: Optional[IvReading] = None
        self.custom_levels = CustomLevelTracker()

        self.result: Optional[AnalysisResult] = None

    @property
    def session_date(self) -> date:
        return self.profile.session_date

    @property
    def day_vwap(self) -> float:
        return self.day_price_volume / self.day_volume if self.day_volume > 0 else 0.0

    @property
    def previous_day(self) -> Optional[MarketProfileData]:
        return self.previous_sessions[0] if self.previous_sessions else None


class AnalysisService:
    """
    Streaming analytics across many instruments.

    Example:
        service = AnalysisService(
            AnalysisConfig(),
            dispatcher,
            lookup=lookup,
            history_client=client,
            profile_store=profiles,
            iv_store=iv_ranges,
        )
        dispatcher.subscribe(AnalysisUpdatedEvent, on_result)
        await service.on_tick(tick)
    """

    def __init__(
        self,
        config: AnalysisConfig,
        dispatcher: EventDispatcher,
        *,
        lookup: InstrumentLookup,
        history_client: HistoricalDataClient,
        profile_store: ProfileStore,
        iv_store: IvRangeStore,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.lookup = lookup
        self.history_client = history_client
        self.profile_store = profile_store
        self.iv_tracker = IvTracker(iv_store)

        self._states: dict[str, InstrumentState] = {}
        self._aggregators = self._build_aggregators(config)

    @staticmethod
    def _build_aggregators(config: AnalysisConfig) -> dict[str, CandleAggregator]:
        return {tf: CandleAggregator(period=tf) for tf in config.timeframes}

    # ------------------------------------------------------------------
    # Tick entry point
    # ------------------------------------------------------------------

    async def on_tick(self, tick: Tick) -> Optional[AnalysisResult]:
        """
        Feed one tick.

        Returns:
            The new snapshot, or None when the tick was buffered (instrument
            still warming up) or ignored.
        """
        if not tick.security_id:
            log.debug("Ignoring tick without security id: %r", tick)
            return None

        state = self._states.get(tick.security_id)
        if state is None:
            state = self._start_instrument(tick)

        if state.phase is Phase.WARMING:
            if len(state.pending) == state.pending.maxlen:
                log.warning(
                    "Warm-up buffer full for %s (%d ticks); dropping oldest",
                    tick.name,
                    state.pending.maxlen,
                )
            state.pending.append(tick)
            return None

        async with state.lock:
            return await self._process_tick(state, tick)

    def _start_instrument(self, tick: Tick) -> InstrumentState:
        info = self.lookup.find(tick.security_id, tick.instrument_type or None)
        if info is None:
            log.warning("No instrument metadata for %s (%s)", tick.name, tick.security_id)

        day = session_date(tick.timestamp, self.config.session_timezone)
        profile = self._new_profile(info, tick.instrument_type, day)
        state = InstrumentState(tick.security_id, info, profile, self.config)
        self._states[tick.security_id] = state

        state.warmup_task = asyncio.create_task(
            self._warm_up(state, tick), name=f"warmup-{tick.security_id}"
        )
        return state

    def _new_profile(self, info: Optional[InstrumentInfo], instrument_type: str, day: date) -> MarketProfile:
        cfg = self.config
        return MarketProfile(
            tick_size=resolve_tick_size(info, instrument_type),
            session_start=session_start(day, cfg.session_start, cfg.session_timezone),
            session_date=day,
        )

    # ------------------------------------------------------------------
    # Warm-up
    # ------------------------------------------------------------------

    async def _warm_up(self, state: InstrumentState, first_tick: Tick) -> None:
        candles: list[Candle] = []
        replayed = 0
        try:
            candles = await self._fetch_backfill(state, first_tick)

            async with state.lock:
                if candles:
                    try:
                        self._apply_backfill(state, candles)
                    except Exception:
                        log.exception("Failed to apply backfill for %s; continuing live-only", first_tick.name)
                self._run_bias(state, first_tick.open)

                while state.pending:
                    batch = sorted(state.pending, key=lambda t: t.timestamp)
                    state.pending.clear()
                    for tick in batch:
                        try:
                            await self._process_tick(state, tick)
                        except Exception:
                            log.exception("Dropping buffered tick for %s at %s", tick.name, tick.timestamp)
                            continue
                        replayed += 1
        except Exception:
            log.exception("Warm-up failed for %s; continuing live-only", first_tick.name)

        # Cancellation skips this; only close() cancels a warm-up.
        state.phase = Phase.LIVE
        state.live.set()

        log.info(
            "%s is live (%d backfilled minutes, %d buffered ticks replayed)",
            first_tick.name,
            len(candles),
            replayed,
        )

    async def _fetch_backfill(self, state: InstrumentState, tick: Tick) -> list[Candle]:
        if state.info is None:
            return []

        log.debug("Starting backfill for %s (%s)", tick.name, state.instrument_id)
        try:
            history = await self.history_client.get_intraday_history(state.info)
        except HistoricalDataError as e:
            log.warning("Backfill failed for %s: %s", tick.name, e)
            return []
        except Exception:
            log.exception("Unexpected error during backfill for %s", tick.name)
            return []

        if history is None or len(history) == 0:
            log.info("No intraday history returned for %s", tick.name)
            return []

        try:
            candles = sorted(history.to_candles(), key=lambda c: c.timestamp)
        except (TypeError, ValueError):
            log.exception("Malformed intraday history for %s", tick.name)
            return []
        log.info("Backfill received %d minute bars for %s", len(candles), tick.name)
        return candles

    def _apply_backfill(self, state: InstrumentState, minute_candles: list[Candle]) -> None:
        for tf, chart in state.charts.items():
            chart.replace(aggregate_candles(minute_candles, tf))
            log.debug("Backfilled %d %s candles for %s", len(chart), tf, state.instrument_id)

        # The newest minute may still be trading; it reaches the profile when it closes.
        added = 0
        for candle in minute_candles[:-1]:
            if self._in_session(candle, state.profile):
                state.profile.add_candle(candle)
                added += 1
        if added:
            self._save_profile(state.instrument_id, state.profile.to_data())

    def _in_session(self, candle: Candle, profile: MarketProfile) -> bool:
        return session_date(candle.timestamp, self.config.session_timezone) == profile.session_date

    def _save_profile(self, instrument_id: str, data: MarketProfileData) -> None:
        try:
            self.profile_store.upsert(instrument_id, data)
        except Exception:
            log.exception("Failed to persist %s profile for %s", data.date, instrument_id)

    # ------------------------------------------------------------------
    # Bias
    # ------------------------------------------------------------------

    def _run_bias(self, state: InstrumentState, open_price: float) -> BiasResult:
        try:
            history = self.profile_store.get_historical_profiles(state.instrument_id)
        except Exception:
            log.exception("Could not load profile history for %s", state.instrument_id)
            history = []
        today = state.session_date
        state.previous_sessions = sorted(
            (p for p in history if p.date < today), key=lambda p: p.date, reverse=True
        )
        state.bias = synthesize_daily_bias(state.previous_sessions, open_price, today)
        log.debug(
            "Bias for %s on %s: %s / %s",
            state.instrument_id,
            today,
            state.bias.structure.value,
            state.bias.bias.value,
        )
        return state.bias

    async def run_daily_bias(self, instrument_id: str, open_price: float) -> Optional[BiasResult]:
        """Recompute the bias on demand and republish the latest snapshot."""
        state = self._states.get(instrument_id)
        if state is None:
            return None

        async with state.lock:
            bias = self._run_bias(state, open_price)
            if state.result is not None:
                state.result = dataclasses.replace(
                    state.result,
                    market_structure=bias.structure.value,
                    daily_bias=bias.bias.value,
                )
                await self.dispatcher.publish(AnalysisUpdatedEvent(result=state.result))
        return bias

    # ------------------------------------------------------------------
    # Session rollover
    # ------------------------------------------------------------------

    async def _roll_session(self, state: InstrumentState, day: date, tick: Tick) -> None:
        old = state.profile
        live_minute = state.charts[PROFILE_TIMEFRAME].latest
        if live_minute is not None and self._in_session(live_minute, old):
            old.add_candle(live_minute)

        archived = old.finalize()
        if old.tpo_levels:
            self._save_profile(state.instrument_id, archived)
            await self.dispatcher.publish(
                SessionRolledEvent(instrument_id=state.instrument_id, archived=archived)
            )

        state.profile = self._new_profile(state.info, tick.instrument_type, day)
        state.day_price_volume = 0.0
        state.day_volume = 0
        state.custom_levels.reset()
        self._run_bias(state, tick.open)

        log.info("Session rolled for %s: %s -> %s", tick.name, archived.date, day)

    # ------------------------------------------------------------------
    # Per-tick processing
    # ------------------------------------------------------------------

    async def _process_tick(self, state: InstrumentState, tick: Tick) -> AnalysisResult:
        day = session_date(tick.timestamp, self.config.session_timezone)
        if day > state.session_date:
            await self._roll_session(state, day, tick)

        for tf, aggregator in self._aggregators.items():
            update = aggregator.update(state.charts[tf], tick)
            if update is None:
                continue
            if tf == PROFILE_TIMEFRAME and update.closed is not None:
                self._add_to_profile(state, update.closed)
            await self.dispatcher.publish(
                CandleUpdatedEvent(
                    instrument_id=state.instrument_id,
                    timeframe=tf,
                    candle=update.candle,
                    is_new=update.is_new,
                )
            )

        quantity = tick.last_traded_quantity
        avg_price = tick.avg_trade_price if tick.avg_trade_price > 0 else tick.ltp
        state.day_price_volume += avg_price * quantity
        state.day_volume += quantity

        if tick.implied_volatility > 0:
            state.iv_history.append(tick.implied_volatility)
            if tick.is_option:
                key = iv_bucket_key(tick, state.info)
                if key is not None:
                    state.iv_reading = self.iv_tracker.observe(key, tick.implied_volatility, day)

        if (
            state.bias is not None
            and state.bias.bias is DailyBias.AWAITING_OPEN
            and tick.open > 0
        ):
            self._run_bias(state, tick.open)

        result = self._build_result(state, tick)
        state.result = result
        await self.dispatcher.publish(AnalysisUpdatedEvent(result=result))
        return result

    def _add_to_profile(self, state: InstrumentState, candle: Candle) -> None:
        if not self._in_session(candle, state.profile):
            return
        state.profile.add_candle(candle)
        self._save_profile(state.instrument_id, state.profile.to_data())

    def _build_result(self, state: InstrumentState, tick: Tick) -> AnalysisResult:
        cfg = self.config

        snapshots: dict[str, TimeframeSnapshot] = {}
        for tf, chart in state.charts.items():
            snapshots[tf] = TimeframeSnapshot(
                timeframe=tf,
                indicators=state.indicators[tf].update(chart),
                candle_signal=recognize_candlestick_pattern(chart.get_candles(PATTERN_CANDLES)),
            )

        minute_candles = state.charts[PROFILE_TIMEFRAME].get_candles()
        volume = volume_signal(minute_candles, cfg.volume_history_length, cfg.volume_burst_multiplier)

        avg_iv, iv_signal = iv_spike_signal(tick.implied_volatility, state.iv_history, cfg.iv_spike_threshold)

        levels = cfg.levels_for(tick.symbol)
        custom_signal = custom_level_signal(
            tick, levels.as_tuple() if levels else None, state.custom_levels
        )

        day_vwap = state.day_vwap
        pa = price_action_signals(tick, day_vwap)

        profile = state.profile
        tpo = profile.developing_tpo
        iv = state.iv_reading
        bias = state.bias

        return AnalysisResult(
            instrument_id=state.instrument_id,
            symbol=tick.name,
            timestamp=tick.timestamp,
            last_price=tick.ltp,
            instrument_group=instrument_group(tick),
            underlying_group=tick.underlying_symbol,
            vwap=day_vwap,
            current_iv=tick.implied_volatility,
            avg_iv=avg_iv,
            iv_signal=iv_signal,
            iv_rank=iv.iv_rank if iv else 0.0,
            iv_percentile=iv.iv_percentile if iv else 0.0,
            iv_trend_signal=iv.trend_signal if iv else "N/A",
            current_volume=volume.current_volume,
            avg_volume=volume.average_volume,
            volume_signal=volume.signal,
            oi_signal=oi_signal(minute_candles) if minute_candles else "N/A",
            custom_level_signal=custom_signal,
            price_vs_vwap=pa.price_vs_vwap,
            price_vs_close=pa.price_vs_close,
            day_range=pa.day_range,
            open_drive=pa.open_drive,
            timeframes=snapshots,
            developing_poc=tpo.point_of_control,
            developing_vah=tpo.value_area_high,
            developing_val=tpo.value_area_low,
            developing_vpoc=profile.developing_volume.volume_poc,
            initial_balance_high=profile.initial_balance_high,
            initial_balance_low=profile.initial_balance_low or 0.0,
            initial_balance_signal=initial_balance_signal(tick.ltp, profile),
            market_profile_signal=market_profile_signal(tick.ltp, profile, state.previous_day),
            market_structure=bias.structure.value if bias else "N/A",
            daily_bias=bias.bias.value if bias else "N/A",
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, config: AnalysisConfig) -> None:
        """
        Swap parameters between ticks.

        Indicator sets whose parameters changed are rebuilt and re-primed
        from the candles already held; new timeframes are derived from the
        retained 1-minute history.
        """
        old = self.config
        if config == old:
            return

        self.config = config
        self._aggregators = self._build_aggregators(config)
        params = IndicatorParams.from_config(config)

        for state in self._states.values():
            minute_history = state.charts[PROFILE_TIMEFRAME].get_candles()
            charts: dict[str, ChartHistory] = {}
            for tf in config.timeframes:
                existing = state.charts.get(tf)
                chart = ChartHistory(state.instrument_id, tf, config.max_candles)
                if existing is not None:
                    chart.replace(existing.get_candles())
                else:
                    chart.replace(aggregate_candles(minute_history, tf))
                charts[tf] = chart
            state.charts = charts

            indicators: dict[str, IndicatorSet] = {}
            for tf, chart in charts.items():
                current = state.indicators.get(tf)
                if current is None or current.params != params:
                    current = IndicatorSet(params)
                    current.prime(chart)
                indicators[tf] = current
            state.indicators = indicators

            state.iv_history = deque(state.iv_history, maxlen=config.iv_history_length)
            state.pending = deque(state.pending, maxlen=config.warmup_buffer_size)

        log.info(
            "Analysis config reloaded (%d instruments, timeframes=%s)",
            len(self._states),
            ",".join(config.timeframes),
        )

    # ------------------------------------------------------------------
    # Accessors and lifecycle
    # ------------------------------------------------------------------

    def get_result(self, instrument_id: str) -> Optional[AnalysisResult]:
        state = self._states.get(instrument_id)
        return state.result if state else None

    def get_candles(self, instrument_id: str, timeframe: str) -> Optional[list[Candle]]:
        state = self._states.get(instrument_id)
        if state is None:
            return None
        chart = state.charts.get(timeframe.strip().upper())
        return chart.get_candles() if chart else None

    def get_profile(self, instrument_id: str) -> Optional[MarketProfile]:
        state = self._states.get(instrument_id)
        return state.profile if state else None

    def is_live(self, instrument_id: str) -> bool:
        state = self._states.get(instrument_id)
        return state is not None and state.phase is Phase.LIVE

    async def wait_until_live(self, instrument_id: str) -> None:
        """Block until *instrument_id* has finished warming up."""
        state = self._states.get(instrument_id)
        if state is None:
            raise KeyError(f"Unknown instrument {instrument_id!r}")
        await state.live.wait()

    def _pending_warmups(self) -> list[asyncio.Task]:
        return [
            s.warmup_task
            for s in self._states.values()
            if s.warmup_task is not None and not s.warmup_task.done()
        ]

    @staticmethod
    async def _gather_warmups(tasks: list[asyncio.Task]) -> None:
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for task, outcome in zip(tasks, outcomes):
            if isinstance(outcome, Exception):
                log.error("Warm-up task %s failed", task.get_name(), exc_info=outcome)

    async def drain(self) -> None:
        """Wait for every in-flight warm-up to finish and replay its buffer."""
        tasks = self._pending_warmups()
        if tasks:
            await self._gather_warmups(tasks)

    async def close(self) -> None:
        """Cancel any warm-ups still in flight."""
        tasks = self._pending_warmups()
        for task in tasks:
            task.cancel()
        if tasks:
            log.info("Cancelling %d pending warm-up%s", len(tasks), "s" if len(tasks) != 1 else "")
            await self._gather_warmups(tasks)
