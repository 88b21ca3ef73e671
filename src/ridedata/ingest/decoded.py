"""
Boundary models for decoded activity messages.

The decoder (fitparse, or the Garmin FIT SDK in other front-ends) hands us
loosely-typed dicts. These pydantic models are the narrow interface the rest
of the package reads: only the fields the normalizer and summary projector
use, validated and coerced once here.

Both naming conventions are accepted:
  FIT SDK (JavaScript)   → camelCase:  enhancedAltitude, positionLat, heartRate
  fitparse (Python)      → snake_case: enhanced_altitude, position_lat, heart_rate

Garbage in a numeric field (a string like "n/a", a bool, NaN or infinity) is
coerced to None rather than failing the whole file. Unknown fields are
ignored.
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _alias(*names: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*names))


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return value


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


class RawRecord(BaseModel):
    """One FIT 'record' message (typically ~1 per second)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    timestamp: Optional[datetime] = None
    altitude: Optional[float] = None
    enhanced_altitude: Optional[float] = _alias("enhancedAltitude", "enhanced_altitude")
    distance: Optional[float] = None
    enhanced_distance: Optional[float] = _alias("enhancedDistance", "enhanced_distance")
    position_lat: Optional[float] = _alias("positionLat", "position_lat")     # semicircles
    position_long: Optional[float] = _alias("positionLong", "position_long")  # semicircles
    heart_rate: Optional[float] = _alias("heartRate", "heart_rate")
    cadence: Optional[float] = None
    power: Optional[float] = None
    grade: Optional[float] = None
    speed: Optional[float] = None
    enhanced_speed: Optional[float] = _alias("enhancedSpeed", "enhanced_speed")
    temperature: Optional[float] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, v):
        return _coerce_datetime(v)

    @field_validator(
        "altitude", "enhanced_altitude", "distance", "enhanced_distance",
        "position_lat", "position_long", "heart_rate", "cadence", "power",
        "grade", "speed", "enhanced_speed", "temperature",
        mode="before",
    )
    @classmethod
    def _numeric(cls, v):
        return _coerce_number(v)


class RawSessionRecord(BaseModel):
    """
    The first FIT 'session' message: totals computed by the device.

    Which fields were actually present in the source is preserved through
    pydantic's model_fields_set, so the summary projector can skip missing
    fields instead of showing zeros.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    start_time: Optional[datetime] = _alias("startTime", "start_time")
    total_elapsed_time: Optional[float] = _alias("totalElapsedTime", "total_elapsed_time")
    total_timer_time: Optional[float] = _alias("totalTimerTime", "total_timer_time")
    total_distance: Optional[float] = _alias("totalDistance", "total_distance")
    avg_speed: Optional[float] = _alias("enhancedAvgSpeed", "enhanced_avg_speed", "avgSpeed", "avg_speed")
    max_speed: Optional[float] = _alias("enhancedMaxSpeed", "enhanced_max_speed", "maxSpeed", "max_speed")
    total_ascent: Optional[float] = _alias("totalAscent", "total_ascent")
    total_descent: Optional[float] = _alias("totalDescent", "total_descent")
    min_altitude: Optional[float] = _alias("enhancedMinAltitude", "enhanced_min_altitude", "minAltitude", "min_altitude")
    avg_altitude: Optional[float] = _alias("enhancedAvgAltitude", "enhanced_avg_altitude", "avgAltitude", "avg_altitude")
    max_altitude: Optional[float] = _alias("enhancedMaxAltitude", "enhanced_max_altitude", "maxAltitude", "max_altitude")
    avg_heart_rate: Optional[float] = _alias("avgHeartRate", "avg_heart_rate")
    max_heart_rate: Optional[float] = _alias("maxHeartRate", "max_heart_rate")
    avg_cadence: Optional[float] = _alias("avgCadence", "avg_cadence")
    max_cadence: Optional[float] = _alias("maxCadence", "max_cadence")
    avg_power: Optional[float] = _alias("avgPower", "avg_power")
    max_power: Optional[float] = _alias("maxPower", "max_power")
    total_calories: Optional[float] = _alias("totalCalories", "total_calories")
    normalized_power: Optional[float] = _alias("normalizedPower", "normalized_power")
    avg_temperature: Optional[float] = _alias("avgTemperature", "avg_temperature")
    max_temperature: Optional[float] = _alias("maxTemperature", "max_temperature")

    @field_validator("start_time", mode="before")
    @classmethod
    def _start_time(cls, v):
        return _coerce_datetime(v)

    @field_validator(
        "total_elapsed_time", "total_timer_time", "total_distance", "avg_speed",
        "max_speed", "total_ascent", "total_descent", "min_altitude",
        "avg_altitude", "max_altitude", "avg_heart_rate", "max_heart_rate",
        "avg_cadence", "max_cadence", "avg_power", "max_power",
        "total_calories", "normalized_power", "avg_temperature",
        "max_temperature",
        mode="before",
    )
    @classmethod
    def _numeric(cls, v):
        return _coerce_number(v)


class DecodedMessageSet(BaseModel):
    """Everything the core reads from one decoded activity file."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    records: List[RawRecord] = Field(default_factory=list)
    session_summary: Optional[RawSessionRecord] = Field(
        default=None,
        validation_alias=AliasChoices("sessionSummary", "session_summary"),
    )

    @classmethod
    def from_fit_sdk_messages(cls, messages: Dict[str, Any]) -> "DecodedMessageSet":
        """
        Build from the Garmin FIT SDK `decoder.read().messages` shape:
        {"recordMesgs": [...], "sessionMesgs": [...]}.
        """
        sessions = messages.get("sessionMesgs") or []
        return cls.model_validate({
            "records": messages.get("recordMesgs") or [],
            "session_summary": sessions[0] if sessions else None,
        })
