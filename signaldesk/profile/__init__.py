from .bias import (
    BiasResult,
    DailyBias,
    MarketStructure,
    OpeningCondition,
    analyze_market_structure,
    analyze_opening_condition,
    synthesize_bias,
    synthesize_daily_bias,
)
from .market_profile import MarketProfile, point_of_control, value_area
from .signals import developing_value_signal, initial_balance_signal, market_profile_signal
from .types import MarketProfileData, TpoInfo, VolumeProfileInfo

__all__ = [
    "BiasResult",
    "DailyBias",
    "MarketProfile",
    "MarketProfileData",
    "MarketStructure",
    "OpeningCondition",
    "TpoInfo",
    "VolumeProfileInfo",
    "analyze_market_structure",
    "analyze_opening_condition",
    "developing_value_signal",
    "initial_balance_signal",
    "market_profile_signal",
    "point_of_control",
    "synthesize_bias",
    "synthesize_daily_bias",
    "value_area",
]
