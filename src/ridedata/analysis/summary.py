"""
Session summary projector: the device-reported totals, formatted for display.

SUMMARY_FIELDS is the fixed table of which session fields are shown, their
labels and how their values convert. Fields missing from the source record
are skipped (never shown as 0); a field that is present but null renders
as "N/A".
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from ridedata.analysis.units import (
    UnitSystem,
    display_distance,
    display_length,
    display_speed,
    display_temperature,
    distance_label,
    format_duration,
    length_label,
    speed_label,
    temperature_label,
)
from ridedata.ingest.decoded import RawSessionRecord

NOT_AVAILABLE = "N/A"

# Value kinds → how to format. "plain" values print as-is (integers) or with
# two decimals.
_TIMESTAMP = "timestamp"
_DURATION = "duration"
_DISTANCE = "distance"
_SPEED = "speed"
_LENGTH = "length"
_TEMPERATURE = "temperature"
_PLAIN = "plain"


@dataclass(frozen=True)
class SummaryField:
    field: str          # attribute on RawSessionRecord
    label: str          # label template; "{unit}" is filled per unit system
    kind: str


SUMMARY_FIELDS: List[SummaryField] = [
    SummaryField("start_time", "Start Time", _TIMESTAMP),
    SummaryField("total_elapsed_time", "Total Elapsed Time (hh:mm:ss)", _DURATION),
    SummaryField("total_timer_time", "Total Timer Time (hh:mm:ss)", _DURATION),
    SummaryField("total_distance", "Total Distance ({unit})", _DISTANCE),
    SummaryField("avg_speed", "Average Speed ({unit})", _SPEED),
    SummaryField("max_speed", "Max Speed ({unit})", _SPEED),
    SummaryField("total_ascent", "Total Ascent ({unit})", _LENGTH),
    SummaryField("total_descent", "Total Descent ({unit})", _LENGTH),
    SummaryField("min_altitude", "Min Altitude ({unit})", _LENGTH),
    SummaryField("avg_altitude", "Avg Altitude ({unit})", _LENGTH),
    SummaryField("max_altitude", "Max Altitude ({unit})", _LENGTH),
    SummaryField("avg_heart_rate", "Average Heart Rate (bpm)", _PLAIN),
    SummaryField("max_heart_rate", "Max Heart Rate (bpm)", _PLAIN),
    SummaryField("avg_cadence", "Average Cadence (rpm)", _PLAIN),
    SummaryField("max_cadence", "Max Cadence (rpm)", _PLAIN),
    SummaryField("avg_power", "Average Power (W)", _PLAIN),
    SummaryField("max_power", "Max Power (W)", _PLAIN),
    SummaryField("total_calories", "Total Calories (kcal)", _PLAIN),
    SummaryField("normalized_power", "Normalized Power (W)", _PLAIN),
    SummaryField("avg_temperature", "Avg Temperature ({unit})", _TEMPERATURE),
    SummaryField("max_temperature", "Max Temperature ({unit})", _TEMPERATURE),
]


@dataclass(frozen=True)
class SummaryRow:
    field: str
    label: str
    value: str


def _unit_for(kind: str, units: UnitSystem) -> str:
    if kind == _DISTANCE:
        return distance_label(units)
    if kind == _SPEED:
        return speed_label(units)
    if kind == _LENGTH:
        return length_label(units)
    if kind == _TEMPERATURE:
        return temperature_label(units)
    return ""


def format_summary_value(kind: str, value: Any, units: UnitSystem) -> str:
    """Format one session value for display; None renders as "N/A"."""
    if value is None:
        return NOT_AVAILABLE
    if kind == _TIMESTAMP:
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        return str(value)
    if not isinstance(value, (int, float)):
        return str(value)

    if kind == _DURATION:
        return format_duration(value)
    if kind == _DISTANCE:
        return f"{display_distance(value, units):.2f}"
    if kind == _SPEED:
        return f"{display_speed(value, units):.1f}"
    if kind == _LENGTH:
        return f"{display_length(value, units):.0f}"
    if kind == _TEMPERATURE:
        return f"{display_temperature(value, units):.0f}"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def project_summary(
    summary: Optional[RawSessionRecord],
    units: UnitSystem = UnitSystem.IMPERIAL,
) -> List[SummaryRow]:
    """
    Build the display rows for a session summary.

    Returns an empty list when the recording has no session message.
    """
    if summary is None:
        return []
    present = summary.model_fields_set
    rows: List[SummaryRow] = []
    for spec in SUMMARY_FIELDS:
        if spec.field not in present:
            continue
        value = getattr(summary, spec.field)
        rows.append(SummaryRow(
            field=spec.field,
            label=spec.label.format(unit=_unit_for(spec.kind, units)),
            value=format_summary_value(spec.kind, value, units),
        ))
    return rows
