"""Tests for the metric registry and chart rows."""
from dataclasses import replace

import pytest
from conftest import make_series

from ridedata.analysis.chart import (
    UnknownMetricError,
    build_chart_rows,
    chart_descriptors,
)
from ridedata.analysis.metrics import (
    ALTITUDE,
    HEART_RATE,
    METRICS,
    SPEED,
    UnitClass,
    convert_for_display,
    dem_source_descriptor,
    unit_label,
)
from ridedata.analysis.timeseries import Series
from ridedata.analysis.units import UnitSystem


class TestMetricRegistry:
    def test_display_fields_are_explicit(self):
        assert METRICS[ALTITUDE].display_field == "displayAltitude"
        assert METRICS[HEART_RATE].display_field == "displayHeartRate"

    def test_dem_descriptor(self):
        d = dem_source_descriptor("dem:opentopography", "OpenTopography", 1)
        assert d.display_field == "displayDem_opentopography"
        assert d.unit_class == UnitClass.DISTANCE
        assert d.color != dem_source_descriptor("dem:epqs", "EPQS", 0).color

    def test_convert_for_display(self):
        assert convert_for_display(100.0, UnitClass.DISTANCE, UnitSystem.IMPERIAL) == pytest.approx(328.084)
        assert convert_for_display(150, UnitClass.RATE, UnitSystem.IMPERIAL) == 150
        assert convert_for_display(None, UnitClass.SPEED, UnitSystem.METRIC) is None

    def test_unit_labels(self):
        assert unit_label(METRICS[ALTITUDE], UnitSystem.IMPERIAL) == "ft"
        assert unit_label(METRICS[SPEED], UnitSystem.METRIC) == "km/h"
        assert unit_label(METRICS[HEART_RATE], UnitSystem.METRIC) == "bpm"


class TestChartDescriptors:
    def test_only_available_metrics(self):
        descriptors = chart_descriptors([ALTITUDE, HEART_RATE], {})
        assert list(descriptors) == [ALTITUDE, HEART_RATE]

    def test_dem_sources_added(self):
        descriptors = chart_descriptors([ALTITUDE], {"dem:epqs": "USGS 3DEP (EPQS)"})
        assert descriptors["dem:epqs"].display_name == "USGS 3DEP (EPQS)"


class TestBuildChartRows:
    def test_row_per_sample(self, positioned_series):
        descriptors = chart_descriptors([ALTITUDE], {})
        rows = build_chart_rows(positioned_series, [ALTITUDE], UnitSystem.METRIC, descriptors)
        assert len(rows) == 10
        assert rows[2]["displayAltitude"] == 105
        assert rows[2]["elapsedTimeMs"] == 10000
        assert rows[2]["displayDistance"] == pytest.approx(0.2)

    def test_imperial_conversion_and_rounding(self, positioned_series):
        descriptors = chart_descriptors([ALTITUDE], {})
        rows = build_chart_rows(positioned_series, [ALTITUDE], UnitSystem.IMPERIAL, descriptors)
        assert rows[0]["displayAltitude"] == 328.08
        assert rows[1]["displayDistance"] == 0.06

    def test_dem_line_aligned(self, positioned_series):
        dem = Series("dem:epqs", tuple(
            replace(s, metrics={ALTITUDE: 200.0 + i})
            for i, s in enumerate(positioned_series.samples)
            if i % 2 == 0
        ))
        descriptors = chart_descriptors([ALTITUDE], {"dem:epqs": "EPQS"})
        rows = build_chart_rows(
            positioned_series, [ALTITUDE, "dem:epqs"], UnitSystem.METRIC,
            descriptors, dem_series={"dem:epqs": dem},
        )
        assert rows[0]["displayDem_epqs"] == 200.0
        assert "displayDem_epqs" not in rows[1]
        assert rows[1]["displayAltitude"] == 102

    def test_absent_values_omitted(self):
        series = make_series([100, None, 110])
        descriptors = chart_descriptors([ALTITUDE], {})
        rows = build_chart_rows(series, [ALTITUDE], UnitSystem.METRIC, descriptors)
        assert "displayAltitude" not in rows[1]

    def test_unknown_metric_raises(self, positioned_series):
        descriptors = chart_descriptors([ALTITUDE], {})
        with pytest.raises(UnknownMetricError):
            build_chart_rows(positioned_series, ["dem:epqs"], UnitSystem.METRIC, descriptors)
