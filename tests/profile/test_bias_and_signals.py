"""Tests for multi-day bias synthesis and profile-derived intraday signals."""

from datetime import timedelta

import pytest

from signaldesk.profile.bias import (
    DailyBias,
    MarketStructure,
    OpeningCondition,
    analyze_market_structure,
    analyze_opening_condition,
    synthesize_bias,
    synthesize_daily_bias,
)
from signaldesk.profile.market_profile import MarketProfile
from signaldesk.profile.signals import developing_value_signal, initial_balance_signal, market_profile_signal
from signaldesk.profile.types import TpoInfo, VolumeProfileInfo


@pytest.fixture
def sessions(session_day, profile_factory):
    """Build most-recent-first history from (poc, vah, val) triples."""
    def build(*levels):
        return [
            profile_factory(session_day - timedelta(days=i + 1), poc, vah, val)
            for i, (poc, vah, val) in enumerate(levels)
        ]
    return build


# ---------------------------------------------------------------------------
# Market structure
# ---------------------------------------------------------------------------

class TestMarketStructure:

    def test_trending_up(self, sessions):
        history = sessions((110, 115, 105), (105, 110, 100), (100, 105, 95))
        assert analyze_market_structure(history) is MarketStructure.TRENDING_UP

    def test_trending_down(self, sessions):
        history = sessions((95, 100, 90), (100, 105, 95), (105, 110, 100))
        assert analyze_market_structure(history) is MarketStructure.TRENDING_DOWN

    def test_balancing(self, sessions):
        history = sessions((100, 105, 95), (101, 104, 97), (100, 108, 92))
        assert analyze_market_structure(history) is MarketStructure.BALANCING

    def test_transitioning(self, sessions):
        history = sessions((120, 125, 118), (100, 104, 96), (110, 130, 100))
        assert analyze_market_structure(history) is MarketStructure.TRANSITIONING

    def test_building_with_two_sessions(self, sessions):
        history = sessions((110, 115, 105), (105, 110, 100))
        assert analyze_market_structure(history) is MarketStructure.BUILDING


# ---------------------------------------------------------------------------
# Opening condition and synthesis
# ---------------------------------------------------------------------------

class TestOpeningCondition:

    @pytest.mark.parametrize(
        "open_price,expected",
        [
            (0, OpeningCondition.AWAITING_OPEN),
            (111, OpeningCondition.ABOVE_VALUE),
            (99, OpeningCondition.BELOW_VALUE),
            (107, OpeningCondition.INSIDE_VALUE_HIGH),
            (110, OpeningCondition.INSIDE_VALUE_HIGH),
            (102, OpeningCondition.INSIDE_VALUE_LOW),
            (105, OpeningCondition.AT_POC),
        ],
    )
    def test_against_previous_day(self, sessions, open_price, expected):
        (yesterday,) = sessions((105, 110, 100))
        assert analyze_opening_condition(open_price, yesterday) is expected


class TestSynthesizeBias:

    @pytest.mark.parametrize(
        "structure,opening,expected",
        [
            (MarketStructure.TRENDING_UP, OpeningCondition.ABOVE_VALUE, DailyBias.STRONG_BULLISH),
            (MarketStructure.TRENDING_DOWN, OpeningCondition.BELOW_VALUE, DailyBias.STRONG_BEARISH),
            (MarketStructure.TRENDING_UP, OpeningCondition.INSIDE_VALUE_LOW, DailyBias.BULLISH_ROTATIONAL),
            (MarketStructure.TRENDING_DOWN, OpeningCondition.INSIDE_VALUE_HIGH, DailyBias.BEARISH_ROTATIONAL),
            (MarketStructure.BALANCING, OpeningCondition.ABOVE_VALUE, DailyBias.BULLISH_BREAKOUT_WATCH),
            (MarketStructure.BALANCING, OpeningCondition.BELOW_VALUE, DailyBias.BEARISH_BREAKOUT_WATCH),
            (MarketStructure.BALANCING, OpeningCondition.INSIDE_VALUE_HIGH, DailyBias.PURE_ROTATIONAL),
            (MarketStructure.TRENDING_UP, OpeningCondition.BELOW_VALUE, DailyBias.NEUTRAL),
            (MarketStructure.TRANSITIONING, OpeningCondition.AT_POC, DailyBias.NEUTRAL),
            (MarketStructure.BALANCING, OpeningCondition.AWAITING_OPEN, DailyBias.AWAITING_OPEN),
        ],
    )
    def test_table(self, structure, opening, expected):
        assert synthesize_bias(structure, opening) is expected

    def test_full_pipeline(self, sessions, session_day):
        history = sessions((110, 115, 105), (105, 110, 100), (100, 105, 95))
        result = synthesize_daily_bias(history, open_price=120, today=session_day)

        assert result.structure is MarketStructure.TRENDING_UP
        assert result.opening is OpeningCondition.ABOVE_VALUE
        assert result.bias is DailyBias.STRONG_BULLISH

    def test_needs_two_prior_sessions(self, sessions, session_day):
        result = synthesize_daily_bias(sessions((110, 115, 105)), open_price=120, today=session_day)
        assert result.bias is DailyBias.INSUFFICIENT_HISTORY
        assert result.opening is None

    def test_ignores_todays_record_and_order(self, sessions, session_day, profile_factory):
        history = sessions((110, 115, 105), (105, 110, 100), (100, 105, 95))
        today = profile_factory(session_day, 50, 55, 45)
        shuffled = [history[2], today, history[0], history[1]]

        result = synthesize_daily_bias(shuffled, open_price=112, today=session_day)

        assert result.structure is MarketStructure.TRENDING_UP
        assert result.opening is OpeningCondition.INSIDE_VALUE_HIGH
        assert result.bias is DailyBias.BULLISH_ROTATIONAL


# ---------------------------------------------------------------------------
# Intraday profile signals
# ---------------------------------------------------------------------------

@pytest.fixture
def live_profile(session_open, session_day):
    profile = MarketProfile(tick_size=0.05, session_start=session_open, session_date=session_day)
    profile.developing_tpo = TpoInfo(point_of_control=100.0, value_area_high=102.0, value_area_low=98.0)
    profile.developing_volume = VolumeProfileInfo(volume_poc=100.0)
    profile.tpo_levels[100.0] = {"A"}
    return profile


class TestInitialBalanceSignal:

    def test_forming_until_set(self, live_profile):
        assert initial_balance_signal(100.0, live_profile) == "IB Forming"

    @pytest.mark.parametrize(
        "ltp,expected",
        [
            (101.0, "Breakout > IB"),
            (89.0, "Breakdown < IB"),
            (99.96, "Testing IB High"),
            (90.03, "Testing IB Low"),
            (95.0, "Inside IB"),
        ],
    )
    def test_against_range(self, live_profile, ltp, expected):
        live_profile.initial_balance_high = 100.0
        live_profile.initial_balance_low = 90.0
        live_profile.is_initial_balance_set = True
        assert initial_balance_signal(ltp, live_profile) == expected


class TestMarketProfileSignal:

    def test_building_without_profile_or_price(self, live_profile):
        assert market_profile_signal(100.0, None, None) == "Building"
        assert market_profile_signal(0.0, live_profile, None) == "Building"

    def test_building_until_a_minute_closes(self, session_open, session_day):
        empty = MarketProfile(tick_size=0.05, session_start=session_open, session_date=session_day)
        assert market_profile_signal(100.0, empty, None) == "Building"

    @pytest.mark.parametrize(
        "ltp,expected",
        [
            (111.0, "Acceptance > Y-VAH"),
            (99.0, "Acceptance < Y-VAL"),
            (107.0, "Inside Y-VA, > Y-POC"),
            (102.0, "Inside Y-VA, < Y-POC"),
        ],
    )
    def test_against_yesterday(self, live_profile, sessions, ltp, expected):
        (yesterday,) = sessions((105, 110, 100))
        assert market_profile_signal(ltp, live_profile, yesterday) == expected

    def test_at_yesterdays_poc_falls_back_to_developing(self, live_profile, sessions):
        (yesterday,) = sessions((100, 110, 95))
        assert market_profile_signal(100.0, live_profile, yesterday) == "At POC & VPOC - High conviction"

    @pytest.mark.parametrize(
        "ltp,expected",
        [
            (103.0, "Breakout above value"),
            (97.0, "Breakdown below value"),
            (102.01, "At VAH Band"),
            (97.99, "At VAL Band"),
            (100.0, "At POC & VPOC - High conviction"),
            (101.0, "Inside Value Area"),
        ],
    )
    def test_developing_levels(self, live_profile, ltp, expected):
        assert developing_value_signal(ltp, live_profile) == expected

    def test_poc_band_without_vpoc(self, live_profile):
        live_profile.developing_volume = VolumeProfileInfo(volume_poc=101.5)
        assert developing_value_signal(100.0, live_profile) == "At POC Band"
        assert developing_value_signal(101.5, live_profile) == "At VPOC Band"
