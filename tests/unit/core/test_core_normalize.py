"""
정규화 함수 테스트

원시 레코드가 HazardRecord/ResourceRecord로 변환되는 규칙을 확인합니다.
"""

import pytest
from refuge.core.models import Location, RawRecord
from refuge.core.normalize import (
    parse_hazard_type, normalize_status, to_hazard, to_resource
)


class TestParseHazardType:

    @pytest.mark.parametrize("raw,expected", [
        ("earthquake", "earthquake"),
        ("Earthquake", "earthquake"),
        ("quake", "earthquake"),
        ("fire", "wildfire"),
        ("hurricane", "storm"),
        ("flood", "flood"),
        ("quarry blast", "other"),
        (None, "other"),
        ("", "other"),
    ])
    def test_aliases(self, raw, expected):
        assert parse_hazard_type(raw) == expected


class TestNormalizeStatus:

    @pytest.mark.parametrize("raw,expected", [
        ("open", "open"),
        ("OPEN", "open"),
        ("limited", "limited"),
        ("closed", "closed"),
        ("unknown", "unknown"),
        (None, "unknown"),
        ("  ", "unknown"),
        ("full", "limited"),
    ])
    def test_status(self, raw, expected):
        assert normalize_status(raw) == expected


class TestToHazard:

    def test_distance_and_severity(self, observer):
        raw = RawRecord(id="7", lat=37.78, lon=-122.42, source="usgs",
                        type="earthquake", attributes={"magnitude": "6.5"})
        hazard = to_hazard(raw, observer)

        assert hazard is not None
        assert hazard.severity == "critical"
        assert hazard.attributes["mag"] == 6.5
        assert "magnitude" not in hazard.attributes
        assert hazard.source_id == "7"
        assert hazard.source_tag == "usgs"
        assert 0 < hazard.distance_km < 1.0

    def test_missing_coordinates(self, observer):
        assert to_hazard(RawRecord(id="x", lat=None, lon=10.0), observer) is None

    def test_invalid_coordinates(self, observer):
        assert to_hazard(RawRecord(id="x", lat=95.0, lon=10.0), observer) is None

    def test_missing_magnitude_is_moderate(self, observer):
        hazard = to_hazard(RawRecord(id="x", lat=37.0, lon=-122.0, type="flood"), observer)
        assert hazard.severity == "moderate"
        assert hazard.hazard_type == "flood"
        assert hazard.magnitude is None

    def test_wire_shape(self, observer):
        hazard = to_hazard(RawRecord(id="5", lat=37.0, lon=-122.0, source="usgs",
                                     source_id="us7000abcd", attributes={"mag": 5}), observer)
        wire = hazard.to_wire()
        assert wire["id"] == "5"
        assert wire["source_event_id"] == "us7000abcd"
        assert wire["severity"] == "high"
        assert wire["lat"] == 37.0 and wire["lon"] == -122.0
        assert wire["dist_km"] == hazard.distance_km


class TestToResource:

    def test_categorized(self, observer):
        raw = RawRecord(id="10", lat=37.776, lon=-122.418, type="Hospital",
                        attributes={"name": " General ", "status": "open",
                                    "capacity": "120", "phone": 5551234})
        resource = to_resource(raw, observer)

        assert resource.category == "medical"
        assert resource.label == "Hospital"
        assert resource.raw_type == "hospital"
        assert resource.name == "General"
        assert resource.status == "open"
        assert resource.capacity == 120
        assert resource.phone == "5551234"

    def test_defaults(self, observer):
        resource = to_resource(RawRecord(id="11", lat=37.0, lon=-122.0), observer)

        assert resource.category == "shelter"
        assert resource.label == "Emergency Shelter"
        assert resource.name == "Emergency Shelter"
        assert resource.status == "unknown"
        assert resource.capacity is None

    def test_bad_capacity_dropped(self, observer):
        raw = RawRecord(id="12", lat=37.0, lon=-122.0, attributes={"capacity": "many"})
        assert to_resource(raw, observer).capacity is None

    def test_missing_coordinates(self, observer):
        assert to_resource(RawRecord(id="13", lat=37.0), observer) is None
