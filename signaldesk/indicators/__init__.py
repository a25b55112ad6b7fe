from .atr import AtrState, AverageTrueRange, atr_signal, true_range
from .divergence import detect_divergence, find_swing_points
from .ema import EmaPair, EmaState, ema_cross_signal, ema_step
from .engine import IndicatorParams, IndicatorReadings, IndicatorSet
from .obv import ObvState, OnBalanceVolume, obv_signal
from .rsi import RelativeStrengthIndex, RsiState, rsi_from_averages

__all__ = [
    "AtrState",
    "AverageTrueRange",
    "EmaPair",
    "EmaState",
    "IndicatorParams",
    "IndicatorReadings",
    "IndicatorSet",
    "ObvState",
    "OnBalanceVolume",
    "RelativeStrengthIndex",
    "RsiState",
    "atr_signal",
    "detect_divergence",
    "ema_cross_signal",
    "ema_step",
    "find_swing_points",
    "obv_signal",
    "rsi_from_averages",
    "true_range",
]
