"""Intraday signals read off the live profile and yesterday's value area."""

from typing import Optional

from .market_profile import MarketProfile
from .types import MarketProfileData


IB_TOLERANCE = 0.0005
VALUE_BAND_TOLERANCE = 0.0002


def initial_balance_signal(ltp: float, profile: MarketProfile) -> str:
    if not profile.is_initial_balance_set or profile.initial_balance_low is None:
        return "IB Forming"

    high = profile.initial_balance_high
    low = profile.initial_balance_low
    if ltp > high:
        return "Breakout > IB"
    if ltp < low:
        return "Breakdown < IB"

    tolerance = high * IB_TOLERANCE
    if abs(ltp - high) < tolerance:
        return "Testing IB High"
    if abs(ltp - low) < tolerance:
        return "Testing IB Low"
    return "Inside IB"


def developing_value_signal(ltp: float, profile: MarketProfile) -> str:
    """Position of *ltp* relative to today's developing levels, with a small band."""
    tpo = profile.developing_tpo
    vpoc = profile.developing_volume.volume_poc
    tolerance = ltp * VALUE_BAND_TOLERANCE

    if ltp > tpo.value_area_high + tolerance:
        return "Breakout above value"
    if ltp < tpo.value_area_low - tolerance:
        return "Breakdown below value"
    if abs(ltp - tpo.value_area_high) <= tolerance:
        return "At VAH Band"
    if abs(ltp - tpo.value_area_low) <= tolerance:
        return "At VAL Band"

    in_poc = abs(ltp - tpo.point_of_control) <= tolerance
    in_vpoc = vpoc > 0 and abs(ltp - vpoc) <= tolerance
    if in_poc and in_vpoc:
        return "At POC & VPOC - High conviction"
    if in_poc:
        return "At POC Band"
    if in_vpoc:
        return "At VPOC Band"
    return "Inside Value Area"


def market_profile_signal(
    ltp: float,
    profile: Optional[MarketProfile],
    previous_day: Optional[MarketProfileData],
) -> str:
    """
    Acceptance relative to yesterday's value area, falling back to the
    developing profile when yesterday gives no verdict.
    """
    if profile is None or ltp == 0:
        return "Building"

    if previous_day is not None:
        vah = previous_day.tpo.value_area_high
        val = previous_day.tpo.value_area_low
        poc = previous_day.tpo.point_of_control
        if ltp > vah:
            return "Acceptance > Y-VAH"
        if ltp < val:
            return "Acceptance < Y-VAL"
        if poc < ltp < vah:
            return "Inside Y-VA, > Y-POC"
        if val < ltp < poc:
            return "Inside Y-VA, < Y-POC"

    if not profile.tpo_levels:
        return "Building"
    return developing_value_signal(ltp, profile)
