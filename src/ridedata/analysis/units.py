"""
Unit conversion and display formatting utilities.

Every quantity inside the package is kept in metric base units (meters, m/s,
degrees Celsius, seconds). Conversion to display units happens only at the
edges: chart rows, the session summary table and the climb table.

Two unit systems are supported:
  - "metric":   km, m, km/h, °C
  - "imperial": mi, ft, mph, °F
"""
from enum import Enum

METERS_TO_FEET = 3.28084
METERS_TO_MILES = 0.000621371
MPS_TO_KPH = 3.6
MPS_TO_MPH = 2.23694


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


def meters_to_feet(meters: float) -> float:
    return meters * METERS_TO_FEET


def feet_to_meters(feet: float) -> float:
    return feet / METERS_TO_FEET


def meters_to_km(meters: float) -> float:
    return meters / 1000.0


def meters_to_miles(meters: float) -> float:
    return meters * METERS_TO_MILES


def km_to_miles(km: float) -> float:
    """Convert kilometers to miles (same factor as meters_to_miles, scaled by 1000)."""
    return meters_to_miles(km * 1000.0)


def mps_to_kph(mps: float) -> float:
    return mps * MPS_TO_KPH


def mps_to_mph(mps: float) -> float:
    return mps * MPS_TO_MPH


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds as HH:MM:SS.

    Fractional seconds are truncated, not rounded. Hours are not wrapped at
    24, so a 30-hour ultra renders as "30:00:00".

    Args:
        seconds: duration in seconds (non-negative)

    Returns:
        Zero-padded string like "04:59:17"
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


# ─── Unit-system aware helpers ────────────────────────────────────────────────

def display_distance(meters: float, units: UnitSystem) -> float:
    """Long distance (route length): km or miles."""
    if units == UnitSystem.METRIC:
        return meters_to_km(meters)
    return meters_to_miles(meters)


def display_length(meters: float, units: UnitSystem) -> float:
    """Short length (altitude, climb): m or ft."""
    if units == UnitSystem.METRIC:
        return meters
    return meters_to_feet(meters)


def display_speed(mps: float, units: UnitSystem) -> float:
    if units == UnitSystem.METRIC:
        return mps_to_kph(mps)
    return mps_to_mph(mps)


def display_temperature(celsius: float, units: UnitSystem) -> float:
    if units == UnitSystem.METRIC:
        return celsius
    return celsius_to_fahrenheit(celsius)


def distance_label(units: UnitSystem) -> str:
    return "km" if units == UnitSystem.METRIC else "mi"


def length_label(units: UnitSystem) -> str:
    return "m" if units == UnitSystem.METRIC else "ft"


def speed_label(units: UnitSystem) -> str:
    return "km/h" if units == UnitSystem.METRIC else "mph"


def temperature_label(units: UnitSystem) -> str:
    return "°C" if units == UnitSystem.METRIC else "°F"
