from .patterns import recognize_candlestick_pattern, volume_confirmation
from .price_action import (
    CustomLevelTracker,
    PriceActionSignals,
    PriceZone,
    VolumeReading,
    custom_level_signal,
    oi_signal,
    ordinal,
    price_action_signals,
    volume_signal,
)

__all__ = [
    "CustomLevelTracker",
    "PriceActionSignals",
    "PriceZone",
    "VolumeReading",
    "custom_level_signal",
    "oi_signal",
    "ordinal",
    "price_action_signals",
    "recognize_candlestick_pattern",
    "volume_confirmation",
    "volume_signal",
]
