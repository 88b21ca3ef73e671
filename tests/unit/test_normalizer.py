"""Tests for the decoded-record normalizer."""
import pytest

from ridedata.analysis.metrics import ALTITUDE, CADENCE, GRADE, HEART_RATE, POWER, SPEED
from ridedata.analysis.timeseries import NATIVE_SOURCE
from ridedata.ingest.decoded import DecodedMessageSet
from ridedata.ingest.normalizer import (
    SEMICIRCLE_TO_DEGREES,
    InputErrorKind,
    normalize_records,
    semicircles_to_degrees,
)


def _decoded(records, session=None) -> DecodedMessageSet:
    return DecodedMessageSet.model_validate({"records": records, "session_summary": session})


def _rec(second: int, distance=None, **extra) -> dict:
    rec = {"timestamp": f"2025-05-04T14:10:{second:02d}Z", **extra}
    if distance is not None:
        rec["distance"] = distance
    return rec


class TestNormalizeRide:
    def test_builds_native_series(self, decoded_ride):
        result = normalize_records(decoded_ride)
        assert result.ok
        assert result.series.source_id == NATIVE_SOURCE
        assert len(result.series) == 8

    def test_first_sample_is_zero_point(self, decoded_ride):
        first = normalize_records(decoded_ride).series.samples[0]
        assert first.elapsed_time_ms == 0
        assert first.elapsed_distance_km == 0.0

    def test_elapsed_keys(self, decoded_ride):
        samples = normalize_records(decoded_ride).series.samples
        assert samples[1].elapsed_time_ms == 5000
        assert samples[-1].elapsed_time_ms == 35000
        assert samples[-1].elapsed_distance_km == pytest.approx(0.2029)

    def test_positions_decoded_from_semicircles(self, decoded_ride):
        first = normalize_records(decoded_ride).series.samples[0]
        assert first.latitude == pytest.approx(401449142 * SEMICIRCLE_TO_DEGREES)
        assert first.longitude == pytest.approx(-1021630874 * SEMICIRCLE_TO_DEGREES)
        assert -90 <= first.latitude <= 90
        assert -180 <= first.longitude <= 180

    def test_available_metrics_from_first_sample(self, decoded_ride):
        result = normalize_records(decoded_ride)
        assert result.available_metrics == (ALTITUDE, HEART_RATE, CADENCE, POWER, GRADE, SPEED)

    def test_idempotent(self, decoded_ride):
        assert normalize_records(decoded_ride).series == normalize_records(decoded_ride).series


class TestFieldSelection:
    def test_enhanced_altitude_takes_precedence(self):
        result = normalize_records(_decoded([
            _rec(0, distance=0, altitude=100.0, enhancedAltitude=100.4),
        ]))
        assert result.series.samples[0].altitude == 100.4

    def test_enhanced_distance_takes_precedence(self):
        result = normalize_records(_decoded([
            _rec(0, distance=0, enhancedDistance=1000.0),
            _rec(5, distance=10, enhancedDistance=1500.0),
        ]))
        assert result.series.samples[1].elapsed_distance_km == pytest.approx(0.5)

    def test_zero_altitude_is_kept(self):
        result = normalize_records(_decoded([_rec(0, distance=0, altitude=0.0)]))
        assert result.series.samples[0].altitude == 0.0

    def test_missing_position_stays_absent(self):
        result = normalize_records(_decoded([_rec(0, distance=0, altitude=5.0)]))
        sample = result.series.samples[0]
        assert sample.latitude is None
        assert sample.longitude is None
        assert not sample.has_position

    def test_out_of_range_position_treated_as_absent(self):
        # 0x7FFFFFFF is the FIT "invalid" value for sint32
        result = normalize_records(_decoded([
            _rec(0, distance=0, positionLat=0x7FFFFFFF, positionLong=0x7FFFFFFF),
        ]))
        assert result.series.samples[0].latitude is None


class TestFiltering:
    def test_records_without_timestamp_dropped(self):
        result = normalize_records(_decoded([
            {"distance": 0, "altitude": 1.0},
            _rec(0, distance=5, altitude=2.0),
        ]))
        assert len(result.series) == 1
        assert result.series.samples[0].altitude == 2.0

    def test_records_without_distance_dropped(self):
        result = normalize_records(_decoded([
            _rec(0, altitude=1.0),
            _rec(5, distance=10, altitude=2.0),
            _rec(10, distance=20, altitude=3.0),
        ]))
        assert len(result.series) == 2
        # zero point comes from the first *kept* record
        assert result.series.samples[0].elapsed_time_ms == 0
        assert result.series.samples[1].elapsed_distance_km == pytest.approx(0.01)

    def test_out_of_order_input_sorted(self):
        result = normalize_records(_decoded([
            _rec(10, distance=200, altitude=3.0),
            _rec(0, distance=0, altitude=1.0),
            _rec(5, distance=100, altitude=2.0),
        ]))
        samples = result.series.samples
        assert [s.altitude for s in samples] == [1.0, 2.0, 3.0]
        times = [s.elapsed_time_ms for s in samples]
        dists = [s.elapsed_distance_km for s in samples]
        assert times == sorted(times)
        assert dists == sorted(dists)

    def test_distance_never_decreases(self):
        result = normalize_records(_decoded([
            _rec(0, distance=0),
            _rec(5, distance=100),
            _rec(10, distance=95),   # device correction
            _rec(15, distance=150),
        ]))
        dists = [s.elapsed_distance_km for s in result.series.samples]
        assert all(b >= a for a, b in zip(dists, dists[1:]))
        assert dists[2] == pytest.approx(0.1)


class TestErrors:
    def test_no_records(self):
        result = normalize_records(_decoded([]))
        assert not result.ok
        assert result.series is None
        assert result.error.kind == InputErrorKind.NO_RECORDS

    def test_no_records_but_session_present(self):
        result = normalize_records(_decoded([], session={"totalAscent": 10}))
        assert result.error.kind == InputErrorKind.NO_RECORDS
        assert "session data" in result.error.message

    def test_records_present_but_unusable(self):
        result = normalize_records(_decoded([{"altitude": 1.0}, _rec(0, altitude=2.0)]))
        assert result.error.kind == InputErrorKind.NO_USABLE_RECORDS
        assert "2 records" in result.error.message

    def test_errors_are_returned_not_raised(self):
        # must not raise
        normalize_records(_decoded([{"heartRate": 100}]))


class TestSemicircles:
    def test_none_passthrough(self):
        assert semicircles_to_degrees(None, 90.0) is None

    def test_half_circle(self):
        assert semicircles_to_degrees(2**30, 180.0) == pytest.approx(90.0)
