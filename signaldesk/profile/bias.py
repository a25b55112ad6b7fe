"""Multi-day structure and opening-condition bias from persisted profiles."""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Sequence

from .types import MarketProfileData

log = logging.getLogger(__name__)


MAX_PROFILES = 8


class MarketStructure(str, Enum):
    TRENDING_UP = "Trending Up"
    TRENDING_DOWN = "Trending Down"
    BALANCING = "Balancing"
    TRANSITIONING = "Transitioning"
    BUILDING = "Building"


class OpeningCondition(str, Enum):
    ABOVE_VALUE = "Opening Above Value"
    BELOW_VALUE = "Opening Below Value"
    INSIDE_VALUE_HIGH = "Opening Inside Value (High)"
    INSIDE_VALUE_LOW = "Opening Inside Value (Low)"
    AT_POC = "Opening at POC"
    AWAITING_OPEN = "Awaiting Open"


class DailyBias(str, Enum):
    STRONG_BULLISH = "Strong Bullish"
    STRONG_BEARISH = "Strong Bearish"
    BULLISH_ROTATIONAL = "Bullish Rotational"
    BEARISH_ROTATIONAL = "Bearish Rotational"
    BULLISH_BREAKOUT_WATCH = "Bullish Breakout Watch"
    BEARISH_BREAKOUT_WATCH = "Bearish Breakout Watch"
    PURE_ROTATIONAL = "Pure Rotational"
    NEUTRAL = "Neutral"
    AWAITING_OPEN = "Awaiting Open"
    INSUFFICIENT_HISTORY = "Insufficient History"


_BIAS_TABLE: dict[tuple[MarketStructure, OpeningCondition], DailyBias] = {
    (MarketStructure.TRENDING_UP, OpeningCondition.ABOVE_VALUE): DailyBias.STRONG_BULLISH,
    (MarketStructure.TRENDING_DOWN, OpeningCondition.BELOW_VALUE): DailyBias.STRONG_BEARISH,
    (MarketStructure.TRENDING_UP, OpeningCondition.INSIDE_VALUE_HIGH): DailyBias.BULLISH_ROTATIONAL,
    (MarketStructure.TRENDING_UP, OpeningCondition.INSIDE_VALUE_LOW): DailyBias.BULLISH_ROTATIONAL,
    (MarketStructure.TRENDING_DOWN, OpeningCondition.INSIDE_VALUE_HIGH): DailyBias.BEARISH_ROTATIONAL,
    (MarketStructure.TRENDING_DOWN, OpeningCondition.INSIDE_VALUE_LOW): DailyBias.BEARISH_ROTATIONAL,
    (MarketStructure.BALANCING, OpeningCondition.ABOVE_VALUE): DailyBias.BULLISH_BREAKOUT_WATCH,
    (MarketStructure.BALANCING, OpeningCondition.BELOW_VALUE): DailyBias.BEARISH_BREAKOUT_WATCH,
    (MarketStructure.BALANCING, OpeningCondition.INSIDE_VALUE_HIGH): DailyBias.PURE_ROTATIONAL,
    (MarketStructure.BALANCING, OpeningCondition.INSIDE_VALUE_LOW): DailyBias.PURE_ROTATIONAL,
}


@dataclass(frozen=True)
class BiasResult:
    structure: MarketStructure
    opening: Optional[OpeningCondition]
    bias: DailyBias


def analyze_market_structure(profiles: Sequence[MarketProfileData]) -> MarketStructure:
    """
    Classify the last three finalized sessions (most recent first).

    Value-area lows rising into yesterday mean an up trend, value-area highs
    falling into yesterday a down trend; otherwise overlapping value areas
    for the last two sessions mean balance.
    """
    if len(profiles) < 3:
        return MarketStructure.BUILDING

    day1, day2, day3 = (p.tpo for p in profiles[:3])

    if day1.value_area_low > day2.value_area_low > day3.value_area_low:
        return MarketStructure.TRENDING_UP
    if day1.value_area_high < day2.value_area_high < day3.value_area_high:
        return MarketStructure.TRENDING_DOWN

    overlapping = day1.value_area_high >= day2.value_area_low and day1.value_area_low <= day2.value_area_high
    if overlapping:
        return MarketStructure.BALANCING
    return MarketStructure.TRANSITIONING


def analyze_opening_condition(open_price: float, previous_day: MarketProfileData) -> OpeningCondition:
    if open_price == 0:
        return OpeningCondition.AWAITING_OPEN

    tpo = previous_day.tpo
    if open_price > tpo.value_area_high:
        return OpeningCondition.ABOVE_VALUE
    if open_price < tpo.value_area_low:
        return OpeningCondition.BELOW_VALUE
    if open_price > tpo.point_of_control:
        return OpeningCondition.INSIDE_VALUE_HIGH
    if open_price < tpo.point_of_control:
        return OpeningCondition.INSIDE_VALUE_LOW
    return OpeningCondition.AT_POC


def synthesize_bias(structure: MarketStructure, opening: OpeningCondition) -> DailyBias:
    if opening is OpeningCondition.AWAITING_OPEN:
        return DailyBias.AWAITING_OPEN
    return _BIAS_TABLE.get((structure, opening), DailyBias.NEUTRAL)


def synthesize_daily_bias(
    profiles: Sequence[MarketProfileData],
    open_price: float,
    today: date,
) -> BiasResult:
    """
    Full bias pipeline for one instrument.

    Args:
        profiles: Persisted history, any order; records dated *today* or later
            are ignored.
        open_price: Today's opening price, 0 when not yet known.
        today: Current session date.
    """
    history = sorted((p for p in profiles if p.date < today), key=lambda p: p.date, reverse=True)
    history = history[:MAX_PROFILES]

    if len(history) < 2:
        log.debug("Bias: only %d finalized sessions before %s", len(history), today)
        return BiasResult(MarketStructure.BUILDING, None, DailyBias.INSUFFICIENT_HISTORY)

    structure = analyze_market_structure(history)
    opening = analyze_opening_condition(open_price, history[0])
    return BiasResult(structure, opening, synthesize_bias(structure, opening))
