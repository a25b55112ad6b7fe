from signaldesk.events import DomainEvent, event
from signaldesk.profile.types import MarketProfileData

from .result import AnalysisResult


@event
class AnalysisUpdatedEvent(DomainEvent):
    """A fresh snapshot for ``result.instrument_id``."""

    result: AnalysisResult


@event
class SessionRolledEvent(DomainEvent):
    """The previous session's profile was finalized and archived."""

    instrument_id: str
    archived: MarketProfileData
