"""
Metric registry: per-sample metric ids and how to display them.

METRICS is the single source of truth for everything the chart layer needs to
know about a metric: its label, line color, unit class and the name of the
display field in chart rows. Display field names are written out explicitly
rather than derived from the metric id.

Unit classes:
  distance       → m / ft       (altitude, DEM elevation)
  speed          → km/h / mph
  temperature    → °C / °F
  rate           → unchanged    (bpm, rpm)
  power          → unchanged    (W)
  dimensionless  → unchanged    (grade %)
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ridedata.analysis.units import (
    UnitSystem,
    display_length,
    display_speed,
    display_temperature,
    length_label,
    speed_label,
    temperature_label,
)


class UnitClass(str, Enum):
    DISTANCE = "distance"
    SPEED = "speed"
    TEMPERATURE = "temperature"
    RATE = "rate"
    POWER = "power"
    DIMENSIONLESS = "dimensionless"


@dataclass(frozen=True)
class MetricDescriptor:
    metric_id: str
    display_name: str
    color: str
    unit_class: UnitClass
    display_field: str            # key used in chart rows
    fixed_unit: str = ""          # label for unit classes that never convert


ALTITUDE = "altitude"
HEART_RATE = "heartRate"
CADENCE = "cadence"
POWER = "power"
GRADE = "grade"
SPEED = "speed"
TEMPERATURE = "temperature"

METRICS: Dict[str, MetricDescriptor] = {
    ALTITUDE: MetricDescriptor(ALTITUDE, "Altitude", "#8884d8", UnitClass.DISTANCE, "displayAltitude"),
    HEART_RATE: MetricDescriptor(HEART_RATE, "Heart Rate", "#e0474c", UnitClass.RATE, "displayHeartRate", "bpm"),
    CADENCE: MetricDescriptor(CADENCE, "Cadence", "#82ca9d", UnitClass.RATE, "displayCadence", "rpm"),
    POWER: MetricDescriptor(POWER, "Power", "#ffc658", UnitClass.POWER, "displayPower", "W"),
    GRADE: MetricDescriptor(GRADE, "Grade", "#a4a4a4", UnitClass.DIMENSIONLESS, "displayGrade", "%"),
    SPEED: MetricDescriptor(SPEED, "Speed", "#413ea0", UnitClass.SPEED, "displaySpeed"),
    TEMPERATURE: MetricDescriptor(TEMPERATURE, "Temperature", "#ff7300", UnitClass.TEMPERATURE, "displayTemperature"),
}

# DEM sources are charted as extra altitude lines, one color per provider.
_DEM_COLORS = ["#2e8b57", "#d2691e", "#1e90ff", "#9932cc"]


def dem_source_descriptor(source_id: str, display_name: str, index: int = 0) -> MetricDescriptor:
    """
    Descriptor for a DEM altitude series, e.g. source_id "dem:epqs".

    The display field is built from an explicit prefix plus the provider
    part of the source id ("dem:epqs" → "displayDem_epqs").
    """
    provider_part = source_id.split(":", 1)[-1]
    return MetricDescriptor(
        metric_id=source_id,
        display_name=display_name,
        color=_DEM_COLORS[index % len(_DEM_COLORS)],
        unit_class=UnitClass.DISTANCE,
        display_field=f"displayDem_{provider_part}",
    )


def convert_for_display(value: Optional[float], unit_class: UnitClass, units: UnitSystem) -> Optional[float]:
    """Convert a metric-base value into the display unit for its unit class."""
    if value is None:
        return None
    if unit_class == UnitClass.DISTANCE:
        return display_length(value, units)
    if unit_class == UnitClass.SPEED:
        return display_speed(value, units)
    if unit_class == UnitClass.TEMPERATURE:
        return display_temperature(value, units)
    return value


def unit_label(descriptor: MetricDescriptor, units: UnitSystem) -> str:
    if descriptor.unit_class == UnitClass.DISTANCE:
        return length_label(units)
    if descriptor.unit_class == UnitClass.SPEED:
        return speed_label(units)
    if descriptor.unit_class == UnitClass.TEMPERATURE:
        return temperature_label(units)
    return descriptor.fixed_unit
