"""
Chart rows for the profile chart.

One row per canonical sample. The x-axis key is `displayDistance` (km or mi);
each selected metric or DEM source adds its own display field, converted to
the requested unit system and rounded to two decimals. DEM values come from
SeriesAligner, so rows without a DEM match simply lack that field.

Example row (imperial, altitude + EPQS selected):
    {
        "distance": 1.25,              # km, unconverted
        "displayDistance": 0.78,       # mi
        "elapsedTimeMs": 315000,
        "timestamp": "2025-05-04T14:15:00+00:00",
        "displayAltitude": 1023.62,    # ft
        "displayDem_epqs": 1019.03,    # ft
    }
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ridedata.analysis.aligner import AlignmentKey, align_series
from ridedata.analysis.metrics import (
    ALTITUDE,
    METRICS,
    MetricDescriptor,
    convert_for_display,
    dem_source_descriptor,
)
from ridedata.analysis.timeseries import Series
from ridedata.analysis.units import UnitSystem, display_distance

DEFAULT_SELECTION = (ALTITUDE,)


class UnknownMetricError(ValueError):
    """A selected metric id is neither an available metric nor a fetched DEM source."""


def chart_descriptors(
    available_metrics: Sequence[str],
    dem_sources: Mapping[str, str],
) -> Dict[str, MetricDescriptor]:
    """
    Selectable chart lines for the current recording.

    Args:
        available_metrics: metric ids populated on the recording.
        dem_sources: DEM source id → provider display name, for fetched series.
    """
    descriptors = {m: METRICS[m] for m in available_metrics if m in METRICS}
    for index, (source_id, name) in enumerate(dem_sources.items()):
        descriptors[source_id] = dem_source_descriptor(source_id, name, index)
    return descriptors


def build_chart_rows(
    canonical: Series,
    selected: Sequence[str],
    units: UnitSystem,
    descriptors: Mapping[str, MetricDescriptor],
    dem_series: Optional[Mapping[str, Series]] = None,
    key: AlignmentKey = AlignmentKey.ELAPSED_TIME,
) -> List[Dict[str, Any]]:
    """
    Build display rows for the selected lines.

    Raises:
        UnknownMetricError: a selected id is not in `descriptors`.
    """
    dem_series = dem_series or {}
    unknown = [m for m in selected if m not in descriptors]
    if unknown:
        raise UnknownMetricError(f"Unknown chart metric(s): {', '.join(unknown)}")

    aligned: Dict[str, List[Optional[float]]] = {
        m: align_series(canonical, dem_series[m], key)
        for m in selected
        if m in dem_series
    }

    rows: List[Dict[str, Any]] = []
    for i, sample in enumerate(canonical.samples):
        row: Dict[str, Any] = {
            "distance": sample.elapsed_distance_km,
            "displayDistance": round(display_distance(sample.elapsed_distance_km * 1000.0, units), 2),
            "elapsedTimeMs": sample.elapsed_time_ms,
            "timestamp": sample.timestamp.isoformat(),
        }
        for metric_id in selected:
            descriptor = descriptors[metric_id]
            if metric_id in aligned:
                raw = aligned[metric_id][i]
            else:
                raw = sample.metrics.get(metric_id)
            value = convert_for_display(raw, descriptor.unit_class, units)
            if value is not None:
                row[descriptor.display_field] = round(value, 2)
        rows.append(row)
    return rows
