"""
Align a DEM altitude series onto the canonical series.

DEM samples carry the exact elapsed time/distance of the canonical samples
they were fetched for, so alignment is an exact-key lookup. A canonical
sample without a DEM counterpart (no position, or the provider had no data)
gets None; nothing is interpolated or back-filled.
"""
from enum import Enum
from typing import Dict, List, Optional, Union

from ridedata.analysis.timeseries import Sample, Series


class AlignmentKey(str, Enum):
    ELAPSED_TIME = "elapsed_time"
    ELAPSED_DISTANCE = "elapsed_distance"


def _key(sample: Sample, key: AlignmentKey) -> Union[int, float]:
    if key == AlignmentKey.ELAPSED_TIME:
        return sample.elapsed_time_ms
    return sample.elapsed_distance_km


def align_series(
    canonical: Series,
    dem: Series,
    key: AlignmentKey = AlignmentKey.ELAPSED_TIME,
) -> List[Optional[float]]:
    """
    DEM altitude for each canonical sample, by exact key match.

    Args:
        canonical: The native series (defines the rows).
        dem: A DEM series produced by DemFetchOrchestrator.
        key: Coordinate used for matching. Elapsed time is the default since
             distance repeats while the rider is stopped.

    Returns:
        List parallel to canonical.samples; None where there is no match.
    """
    lookup: Dict[Union[int, float], float] = {}
    for s in dem.samples:
        if s.altitude is not None:
            lookup.setdefault(_key(s, key), s.altitude)
    return [lookup.get(_key(s, key)) for s in canonical.samples]
