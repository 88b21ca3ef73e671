"""
Sample and Series dataclasses.

Sample is the universal in-memory representation of one recorded point. It is
a plain frozen dataclass; values are in metric base units (meters, m/s, °C)
except the two elapsed keys, which are milliseconds and kilometers.

A Series is one altitude source: the native recording ("native") or one DEM
provider ("dem:<provider id>"). DEM series are rebuilt on every fetch and
never mutated in place.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ridedata.analysis.metrics import ALTITUDE

NATIVE_SOURCE = "native"
DEM_SOURCE_PREFIX = "dem:"


@dataclass(frozen=True)
class Sample:
    """
    One point of the canonical series.

    elapsed_time_ms and elapsed_distance_km are measured from the first
    retained record of the recording. Position is optional (indoor rides,
    GPS dropouts); absent stays None, never 0.
    """

    elapsed_time_ms: int
    elapsed_distance_km: float
    timestamp: datetime
    latitude: Optional[float] = None    # decimal degrees
    longitude: Optional[float] = None   # decimal degrees
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def altitude(self) -> Optional[float]:
        return self.metrics.get(ALTITUDE)

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class Series:
    source_id: str
    samples: Tuple[Sample, ...] = ()
    unit: str = "metric-base"

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def is_dem(self) -> bool:
        return self.source_id.startswith(DEM_SOURCE_PREFIX)

    def altitude_points(self) -> List[Tuple[float, float]]:
        """(elapsed_distance_km, altitude_m) for every sample that has altitude."""
        return [
            (s.elapsed_distance_km, s.altitude)
            for s in self.samples
            if s.altitude is not None
        ]


def dem_source_id(provider_id: str) -> str:
    return f"{DEM_SOURCE_PREFIX}{provider_id}"
