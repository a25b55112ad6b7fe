from signaldesk.events import DomainEvent, event

from .candle import Candle


@event
class CandleUpdatedEvent(DomainEvent):
    """Emitted for every candle creation (``is_new``) or in-place update."""

    instrument_id: str
    timeframe: str
    candle: Candle
    is_new: bool
