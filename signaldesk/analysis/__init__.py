from .events import AnalysisUpdatedEvent, SessionRolledEvent
from .result import AnalysisResult, TimeframeSnapshot
from .service import AnalysisService, InstrumentState, Phase

__all__ = [
    "AnalysisResult",
    "AnalysisService",
    "AnalysisUpdatedEvent",
    "InstrumentState",
    "Phase",
    "SessionRolledEvent",
    "TimeframeSnapshot",
]
