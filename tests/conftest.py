"""Shared test fixtures."""
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from ridedata.analysis.metrics import ALTITUDE
from ridedata.analysis.timeseries import NATIVE_SOURCE, Sample, Series
from ridedata.ingest.decoded import DecodedMessageSet

FIXTURES_DIR = Path(__file__).parent / "fixtures"

T0 = datetime(2025, 5, 4, 14, 9, 45, tzinfo=timezone.utc)


def load_fixture(name: str):
    return json.loads((FIXTURES_DIR / name).read_text())


def make_series(
    altitudes: Sequence[Optional[float]],
    distances_km: Optional[Sequence[float]] = None,
    source_id: str = NATIVE_SOURCE,
    with_position: bool = True,
) -> Series:
    """Series with one sample every 5 s; altitude None leaves the metric out."""
    if distances_km is None:
        distances_km = [i * 0.1 for i in range(len(altitudes))]
    samples: List[Sample] = []
    for i, (alt, dist) in enumerate(zip(altitudes, distances_km)):
        samples.append(Sample(
            elapsed_time_ms=i * 5000,
            elapsed_distance_km=dist,
            timestamp=T0 + timedelta(seconds=i * 5),
            latitude=39.74 + i * 0.0001 if with_position else None,
            longitude=-104.99 + i * 0.0001 if with_position else None,
            metrics={} if alt is None else {ALTITUDE: alt},
        ))
    return Series(source_id=source_id, samples=tuple(samples))


@pytest.fixture
def ride_messages() -> dict:
    """Decoded ride in FIT SDK shape (recordMesgs / sessionMesgs)."""
    return load_fixture("decoded_ride.json")


@pytest.fixture
def decoded_ride(ride_messages) -> DecodedMessageSet:
    return DecodedMessageSet.from_fit_sdk_messages(ride_messages)


@pytest.fixture
def positioned_series() -> Series:
    """10 positioned samples with a simple up-down altitude profile."""
    return make_series([100, 102, 105, 103, 101, 104, 108, 110, 107, 106])
