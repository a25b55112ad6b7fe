from .iv_tracker import (
    IntradayIvState,
    IvReading,
    IvTracker,
    iv_bucket_key,
    iv_spike_signal,
    iv_trend_signal,
    moneyness_bucket,
    position_in_range,
)

__all__ = [
    "IntradayIvState",
    "IvReading",
    "IvTracker",
    "iv_bucket_key",
    "iv_spike_signal",
    "iv_trend_signal",
    "moneyness_bucket",
    "position_in_range",
]
