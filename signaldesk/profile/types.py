"""Value types shared by the live profile, the persisted store and bias analysis."""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class TpoInfo:
    """Key levels of a TPO profile."""
    point_of_control: float = 0.0
    value_area_high: float = 0.0
    value_area_low: float = 0.0


@dataclass(frozen=True)
class VolumeProfileInfo:
    volume_poc: float = 0.0


@dataclass(frozen=True)
class MarketProfileData:
    """Durable, finalized form of one instrument's profile for one session."""
    date: date
    tpo: TpoInfo = field(default_factory=TpoInfo)
    volume: VolumeProfileInfo = field(default_factory=VolumeProfileInfo)
