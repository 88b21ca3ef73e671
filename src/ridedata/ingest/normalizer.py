"""
Decoded-record normalizer.

Converts the RawRecord list of a DecodedMessageSet into the canonical Series
(source "native"). No I/O here and nothing is raised for bad input: the
result carries an InputError instead, so callers can show the user a specific
message ("no records at all" vs "records present but unusable").

Field mapping from FIT to the canonical sample:
  FIT field                        → sample
  timestamp                        → timestamp, elapsed_time_ms (from first kept record)
  enhanced_distance | distance     → elapsed_distance_km (from first kept record)
  position_lat / position_long     → latitude / longitude (semicircles → degrees)
  enhanced_altitude | altitude     → metrics["altitude"]  (m)
  enhanced_speed | speed           → metrics["speed"]     (m/s)
  heart_rate                       → metrics["heartRate"] (bpm)
  cadence                          → metrics["cadence"]   (rpm)
  power                            → metrics["power"]     (W)
  grade                            → metrics["grade"]     (%)
  temperature                      → metrics["temperature"] (°C)

The enhanced variant wins whenever both are present.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ridedata.analysis.metrics import (
    ALTITUDE,
    CADENCE,
    GRADE,
    HEART_RATE,
    METRICS,
    POWER,
    SPEED,
    TEMPERATURE,
)
from ridedata.analysis.timeseries import NATIVE_SOURCE, Sample, Series
from ridedata.ingest.decoded import DecodedMessageSet, RawRecord

# Garmin stores lat/lon as 32-bit signed integers in "semicircles"
# Degrees = semicircles * (180 / 2^31)
SEMICIRCLE_TO_DEGREES = 180.0 / (2**31)


class InputErrorKind(str, Enum):
    NO_RECORDS = "no_records"
    NO_USABLE_RECORDS = "no_usable_records"


class InputError(Exception):
    """The decoded input cannot produce a canonical series."""

    def __init__(self, kind: InputErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class NormalizationResult:
    series: Optional[Series] = None
    available_metrics: Tuple[str, ...] = ()
    error: Optional[InputError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def semicircles_to_degrees(value: Optional[float], limit: float) -> Optional[float]:
    """Decode one semicircle coordinate; out-of-range values count as absent."""
    if value is None:
        return None
    degrees = value * SEMICIRCLE_TO_DEGREES
    if not -limit <= degrees <= limit:
        return None
    return degrees


def _first_present(*values: Optional[float]) -> Optional[float]:
    for v in values:
        if v is not None:
            return v
    return None


def _as_utc(ts: datetime) -> datetime:
    # fitparse yields naive UTC datetimes; JSON input usually carries an offset.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _record_metrics(record: RawRecord) -> Dict[str, float]:
    candidates = {
        ALTITUDE: _first_present(record.enhanced_altitude, record.altitude),
        SPEED: _first_present(record.enhanced_speed, record.speed),
        HEART_RATE: record.heart_rate,
        CADENCE: record.cadence,
        POWER: record.power,
        GRADE: record.grade,
        TEMPERATURE: record.temperature,
    }
    return {k: float(v) for k, v in candidates.items() if v is not None}


def normalize_records(messages: DecodedMessageSet) -> NormalizationResult:
    """
    Build the canonical native Series from decoded messages.

    Steps:
    1. Drop records without a timestamp or without any distance field.
    2. Sort the survivors by timestamp (stable; the decoder is not trusted).
    3. Measure elapsed time/distance from the first survivor. Distance is
       carried forward as a running maximum so the series never moves
       backwards when the device reports a small distance correction.
    4. Field availability = metric keys populated on the first sample.

    Returns:
        NormalizationResult with either series + available_metrics, or error.
    """
    if not messages.records:
        if messages.session_summary is not None:
            msg = "File contains session data but no detailed record data for an altitude profile."
        else:
            msg = "No record messages found in the file to create an altitude profile."
        return NormalizationResult(error=InputError(InputErrorKind.NO_RECORDS, msg))

    usable: List[Tuple[datetime, float, RawRecord]] = []
    for record in messages.records:
        if record.timestamp is None:
            continue
        distance_m = _first_present(record.enhanced_distance, record.distance)
        if distance_m is None:
            continue
        usable.append((_as_utc(record.timestamp), float(distance_m), record))

    if not usable:
        return NormalizationResult(error=InputError(
            InputErrorKind.NO_USABLE_RECORDS,
            f"{len(messages.records)} records found, but none has both a timestamp and a distance.",
        ))

    usable.sort(key=lambda item: item[0])

    first_ts, first_distance_m, _ = usable[0]
    max_distance_m = first_distance_m
    samples: List[Sample] = []
    for ts, distance_m, record in usable:
        max_distance_m = max(max_distance_m, distance_m)
        elapsed_ms = int(round((ts - first_ts).total_seconds() * 1000))
        samples.append(Sample(
            elapsed_time_ms=elapsed_ms,
            elapsed_distance_km=(max_distance_m - first_distance_m) / 1000.0,
            timestamp=ts,
            latitude=semicircles_to_degrees(record.position_lat, 90.0),
            longitude=semicircles_to_degrees(record.position_long, 180.0),
            metrics=_record_metrics(record),
        ))

    # Keep registry order so the metric picker is stable across files
    available = tuple(m for m in METRICS if m in samples[0].metrics)

    return NormalizationResult(
        series=Series(source_id=NATIVE_SOURCE, samples=tuple(samples)),
        available_metrics=available,
    )
